"""
Configuración global de pytest para tests del motor de pagos

Cada test usa una base SQLite en memoria nueva (StaticPool: todas las
sesiones comparten la misma conexión) y una UnitOfWork por operación,
igual que en producción.
"""
import os
import sys
import tempfile
import pytest
from pathlib import Path
from datetime import datetime
from decimal import Decimal

# Agregar el directorio raíz al path para imports
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

# Antes de importar finanzas: base y logs fuera del árbol del proyecto
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="finanzas_logs_"))

from sqlalchemy import create_engine, func
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from finanzas.db import Base, _import_all_models
from finanzas.domain.enums import EstadoPago, EstadoRegistro, TipoTransaccion
from finanzas.domain.models import Cliente, CategoriaGasto, CuentaDinero
from finanzas.domain.models_obligaciones import Venta, Gasto
from finanzas.domain.models_pagos import TransaccionPago
from finanzas.domain.models_ajustes import DimAjusteFinanciero
from finanzas.infrastructure.unit_of_work import UnitOfWork
from finanzas.application.reglas_cuentas import ReglasCuentas


@pytest.fixture
def engine():
    _import_all_models()
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def uow_factory(session_factory):
    """Una UnitOfWork nueva por operación (la transacción la cierra al terminar)"""
    def _nueva():
        return UnitOfWork(db=session_factory())
    return _nueva


@pytest.fixture
def reglas():
    return ReglasCuentas()


@pytest.fixture
def datos_base(session_factory):
    """Cuentas CASH/BANK x UYU/USD, dos clientes, una categoría con sub-categoría y la dimensión BONIFICACION"""
    db = session_factory()
    cuentas = []
    for tipo in ("CASH", "BANK"):
        for moneda in ("UYU", "USD"):
            cuentas.append(CuentaDinero(nombre=f"{tipo} {moneda}", tipo=tipo, moneda=moneda, activa=True))
    cliente = Cliente(nombre="Juan", apellido="Pérez")
    otro_cliente = Cliente(nombre="Ana")
    categoria = CategoriaGasto(nombre="Insumos")
    db.add_all(cuentas + [cliente, otro_cliente, categoria])
    db.flush()
    subcategoria = CategoriaGasto(nombre="Semillas", id_padre=categoria.id)
    bonificacion = DimAjusteFinanciero(codigo="BONIFICACION", descripcion="Bonificación de proveedor", naturaleza="INGRESO")
    db.add_all([subcategoria, bonificacion])
    db.commit()

    datos = {
        "cuentas": {c.nombre: c.id for c in cuentas},
        "cliente": cliente.id,
        "otro_cliente": otro_cliente.id,
        "categoria": categoria.id,
        "subcategoria": subcategoria.id,
        "dim_bonificacion": bonificacion.id,
    }
    db.close()
    return datos


@pytest.fixture
def crear_venta(session_factory, datos_base):
    """Inserta una venta pendiente sin pagos, con fecha controlada (para probar el orden FIFO)"""
    def _crear(total, fecha=None, id_cliente=None, moneda="UYU", estado=EstadoPago.PENDIENTE):
        db = session_factory()
        venta = Venta(
            fecha_venta=fecha or datetime(2026, 1, 1),
            id_cliente=id_cliente or datos_base["cliente"],
            total=Decimal(str(total)),
            moneda=moneda,
            saldo_pendiente=Decimal(str(total)),
            estado=estado.value,
        )
        db.add(venta)
        db.commit()
        id_venta = venta.id
        db.close()
        return id_venta
    return _crear


@pytest.fixture
def crear_gasto(session_factory, datos_base):
    def _crear(total, fecha=None, moneda="UYU"):
        db = session_factory()
        gasto = Gasto(
            fecha=fecha or datetime(2026, 1, 1),
            id_categoria=datos_base["categoria"],
            monto_total=Decimal(str(total)),
            moneda=moneda,
            saldo_pendiente=Decimal(str(total)),
            estado=EstadoPago.PENDIENTE.value,
        )
        db.add(gasto)
        db.commit()
        id_gasto = gasto.id
        db.close()
        return id_gasto
    return _crear


@pytest.fixture
def fondear(session_factory, datos_base):
    """Deja saldo en una cuenta con un ingreso directo (sin obligación)"""
    def _fondear(nombre_cuenta, monto):
        db = session_factory()
        cuenta = db.query(CuentaDinero).filter_by(nombre=nombre_cuenta).one()
        db.add(TransaccionPago(
            tipo=TipoTransaccion.INGRESO.value,
            fecha=datetime(2026, 1, 1),
            monto=Decimal(str(monto)),
            moneda=cuenta.moneda,
            metodo_pago="EFECTIVO" if cuenta.tipo == "CASH" else "TRANSFERENCIA",
            id_cuenta=cuenta.id,
            estado=EstadoRegistro.ACTIVO.value,
        ))
        db.commit()
        db.close()
    return _fondear


@pytest.fixture
def contar(session_factory):
    """Cantidad de filas de un modelo"""
    def _contar(modelo):
        db = session_factory()
        try:
            return db.query(func.count(modelo.id)).scalar()
        finally:
            db.close()
    return _contar


@pytest.fixture
def leer(session_factory):
    """Lee una fila en una sesión nueva (lo que quedó realmente persistido)"""
    def _leer(modelo, id_fila):
        db = session_factory()
        try:
            fila = db.get(modelo, id_fila)
            if fila is not None:
                db.expunge(fila)
            return fila
        finally:
            db.close()
    return _leer
