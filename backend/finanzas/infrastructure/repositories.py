from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from ..domain.models import Cliente, CategoriaGasto, CuentaDinero
from ..domain.models_obligaciones import Venta, Gasto
from ..domain.models_pagos import TransaccionPago, AplicacionPago
from ..domain.models_cambios import CambioMoneda
from ..domain.models_ajustes import DimAjusteFinanciero, AjusteFinanciero, AjusteDetalle
from ..domain.enums import EstadoPago, EstadoRegistro, TipoTransaccion, Naturaleza

CENTAVO = Decimal("0.01")

def _dec(valor) -> Decimal:
    """Normaliza el resultado de un SUM (None, int, float o Decimal) a 2 decimales"""
    return Decimal(str(valor or 0)).quantize(CENTAVO)


class ClienteRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, c: Cliente): self.db.add(c); return c
    def get(self, id:int): return self.db.get(Cliente, id)


class CategoriaRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, c: CategoriaGasto): self.db.add(c); return c
    def get(self, id:int): return self.db.get(CategoriaGasto, id)


class CuentaRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, c: CuentaDinero): self.db.add(c); return c
    def get(self, id:int): return self.db.get(CuentaDinero, id)
    def get_for_update(self, id:int):
        return self.db.query(CuentaDinero).filter(CuentaDinero.id==id).with_for_update().first()
    def by_nombre(self, nombre:str):
        return self.db.query(CuentaDinero).filter(CuentaDinero.nombre==nombre).first()
    def list(self, solo_activas: bool = True):
        q = self.db.query(CuentaDinero)
        if solo_activas:
            q = q.filter(CuentaDinero.activa == True)  # noqa: E712
        return q.order_by(CuentaDinero.moneda, CuentaDinero.nombre).all()

    def saldo(self, id_cuenta:int) -> Decimal:
        """
        Saldo derivado en tiempo real (nunca almacenado):
        + transacciones INGRESO - transacciones EGRESO
        + cambios entrantes - cambios salientes
        + ajustes INGRESO - ajustes EGRESO
        Solo cuentan los registros ACTIVO.
        """
        activo = EstadoRegistro.ACTIVO.value

        def sum_transacciones(tipo: TipoTransaccion):
            return self.db.query(func.coalesce(func.sum(TransaccionPago.monto), 0)).filter(
                TransaccionPago.id_cuenta == id_cuenta,
                TransaccionPago.tipo == tipo.value,
                TransaccionPago.estado == activo,
            ).scalar()

        def sum_ajustes(naturaleza: Naturaleza):
            return self.db.query(func.coalesce(func.sum(AjusteFinanciero.monto), 0)).join(
                DimAjusteFinanciero, DimAjusteFinanciero.id == AjusteFinanciero.id_tipo_ajuste
            ).filter(
                AjusteFinanciero.id_cuenta == id_cuenta,
                AjusteFinanciero.estado == activo,
                DimAjusteFinanciero.naturaleza == naturaleza.value,
            ).scalar()

        cambios_in = self.db.query(func.coalesce(func.sum(CambioMoneda.monto_destino), 0)).filter(
            CambioMoneda.id_cuenta_destino == id_cuenta, CambioMoneda.estado == activo
        ).scalar()
        cambios_out = self.db.query(func.coalesce(func.sum(CambioMoneda.monto_origen), 0)).filter(
            CambioMoneda.id_cuenta_origen == id_cuenta, CambioMoneda.estado == activo
        ).scalar()

        return (
            _dec(sum_transacciones(TipoTransaccion.INGRESO)) - _dec(sum_transacciones(TipoTransaccion.EGRESO))
            + _dec(cambios_in) - _dec(cambios_out)
            + _dec(sum_ajustes(Naturaleza.INGRESO)) - _dec(sum_ajustes(Naturaleza.EGRESO))
        )


class VentaRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, v: Venta): self.db.add(v); return v
    def get(self, id:int): return self.db.get(Venta, id)
    def get_for_update(self, id:int):
        return self.db.query(Venta).filter(Venta.id==id).with_for_update().first()

    def pendientes(self, id_cliente: Optional[int] = None, moneda: Optional[str] = None, lock: bool = False) -> List[Venta]:
        """Ventas con saldo > 0, más antigua primero (empate por id)"""
        q = self.db.query(Venta).filter(
            Venta.saldo_pendiente > 0,
            Venta.estado != EstadoPago.CANCELADO.value,
        )
        if id_cliente is not None:
            q = q.filter(Venta.id_cliente == id_cliente)
        if moneda:
            q = q.filter(Venta.moneda == moneda)
        q = q.order_by(Venta.fecha_venta.asc(), Venta.id.asc())
        if lock:
            q = q.with_for_update()
        return q.all()

    def list(self, desde: Optional[datetime] = None, hasta: Optional[datetime] = None,
             canal: Optional[str] = None, id_cliente: Optional[int] = None,
             limit: int = 100, offset: int = 0) -> List[Venta]:
        q = self.db.query(Venta)
        if desde:
            q = q.filter(Venta.fecha_venta >= desde)
        if hasta:
            q = q.filter(Venta.fecha_venta <= hasta)
        if canal:
            q = q.filter(Venta.canal == canal)
        if id_cliente is not None:
            q = q.filter(Venta.id_cliente == id_cliente)
        return q.order_by(Venta.fecha_venta.desc(), Venta.id.desc()).offset(offset).limit(limit).all()

    def deuda_por_cliente(self, id_cliente: Optional[int] = None, moneda: Optional[str] = None):
        """Filas (id_cliente, moneda, saldo_total, cantidad) de ventas con saldo pendiente, una por moneda"""
        q = self.db.query(
            Venta.id_cliente,
            Venta.moneda,
            func.coalesce(func.sum(Venta.saldo_pendiente), 0),
            func.count(Venta.id),
        ).filter(
            Venta.saldo_pendiente > 0,
            Venta.estado != EstadoPago.CANCELADO.value,
        )
        if id_cliente is not None:
            q = q.filter(Venta.id_cliente == id_cliente)
        if moneda:
            q = q.filter(Venta.moneda == moneda.upper())
        filas = q.group_by(Venta.id_cliente, Venta.moneda).order_by(Venta.id_cliente, Venta.moneda).all()
        return [(row[0], row[1], _dec(row[2]), row[3]) for row in filas]


class GastoRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, g: Gasto): self.db.add(g); return g
    def get(self, id:int): return self.db.get(Gasto, id)
    def get_for_update(self, id:int):
        return self.db.query(Gasto).filter(Gasto.id==id).with_for_update().first()

    def pendientes(self, moneda: Optional[str] = None, id_categoria: Optional[int] = None, lock: bool = False) -> List[Gasto]:
        """Gastos con saldo > 0, más antiguo primero (empate por id)"""
        q = self.db.query(Gasto).filter(Gasto.saldo_pendiente > 0)
        if moneda:
            q = q.filter(Gasto.moneda == moneda)
        if id_categoria is not None:
            q = q.filter(Gasto.id_categoria == id_categoria)
        q = q.order_by(Gasto.fecha.asc(), Gasto.id.asc())
        if lock:
            q = q.with_for_update()
        return q.all()

    def list(self, desde: Optional[datetime] = None, hasta: Optional[datetime] = None,
             id_categoria: Optional[int] = None, limit: int = 100, offset: int = 0) -> List[Gasto]:
        q = self.db.query(Gasto)
        if desde:
            q = q.filter(Gasto.fecha >= desde)
        if hasta:
            q = q.filter(Gasto.fecha <= hasta)
        if id_categoria is not None:
            q = q.filter(Gasto.id_categoria == id_categoria)
        return q.order_by(Gasto.fecha.desc(), Gasto.id.desc()).offset(offset).limit(limit).all()


class TransaccionRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, t: TransaccionPago): self.db.add(t); self.db.flush(); return t
    def get(self, id:int): return self.db.get(TransaccionPago, id)


class AplicacionRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, a: AplicacionPago): self.db.add(a); self.db.flush(); return a

    def total_aplicado(self, id_venta: Optional[int] = None, id_gasto: Optional[int] = None) -> Decimal:
        """SUM(monto_aplicado) de una obligación, solo sobre transacciones activas"""
        q = self.db.query(func.coalesce(func.sum(AplicacionPago.monto_aplicado), 0)).join(
            TransaccionPago, TransaccionPago.id == AplicacionPago.id_transaccion
        ).filter(TransaccionPago.estado == EstadoRegistro.ACTIVO.value)
        if id_venta is not None:
            q = q.filter(AplicacionPago.id_venta == id_venta)
        else:
            q = q.filter(AplicacionPago.id_gasto == id_gasto)
        return _dec(q.scalar())

    def por_venta(self, id_venta:int) -> List[AplicacionPago]:
        return self.db.query(AplicacionPago).filter(AplicacionPago.id_venta == id_venta).order_by(AplicacionPago.id).all()

    def por_gasto(self, id_gasto:int) -> List[AplicacionPago]:
        return self.db.query(AplicacionPago).filter(AplicacionPago.id_gasto == id_gasto).order_by(AplicacionPago.id).all()

    def por_transaccion(self, id_transaccion:int) -> List[AplicacionPago]:
        return self.db.query(AplicacionPago).filter(
            AplicacionPago.id_transaccion == id_transaccion
        ).order_by(AplicacionPago.id).all()

    def historial_cliente(self, id_cliente:int, limit: int = 100):
        """Aplicaciones de cobros de un cliente, más recientes primero"""
        return self.db.query(AplicacionPago, TransaccionPago).join(
            TransaccionPago, TransaccionPago.id == AplicacionPago.id_transaccion
        ).filter(
            TransaccionPago.id_cliente == id_cliente,
            AplicacionPago.id_venta.isnot(None),
        ).order_by(TransaccionPago.fecha.desc(), AplicacionPago.id.desc()).limit(limit).all()

    def historial_gasto(self, id_gasto:int):
        return self.db.query(AplicacionPago, TransaccionPago).join(
            TransaccionPago, TransaccionPago.id == AplicacionPago.id_transaccion
        ).filter(AplicacionPago.id_gasto == id_gasto).order_by(TransaccionPago.fecha.asc(), AplicacionPago.id.asc()).all()


class CambioRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, c: CambioMoneda): self.db.add(c); self.db.flush(); return c
    def get(self, id:int): return self.db.get(CambioMoneda, id)
    def list(self, id_cuenta: Optional[int] = None, limit: int = 100, offset: int = 0) -> List[CambioMoneda]:
        q = self.db.query(CambioMoneda)
        if id_cuenta is not None:
            q = q.filter((CambioMoneda.id_cuenta_origen == id_cuenta) | (CambioMoneda.id_cuenta_destino == id_cuenta))
        return q.order_by(CambioMoneda.fecha_cambio.desc(), CambioMoneda.id.desc()).offset(offset).limit(limit).all()


class AjusteRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, a: AjusteFinanciero): self.db.add(a); self.db.flush(); return a
    def add_detalle(self, d: AjusteDetalle): self.db.add(d); return d
    def get(self, id:int): return self.db.get(AjusteFinanciero, id)
    def get_for_update(self, id:int):
        return self.db.query(AjusteFinanciero).filter(AjusteFinanciero.id==id).with_for_update().first()

    def list(self, id_tipo_ajuste: Optional[int] = None, desde: Optional[datetime] = None,
             hasta: Optional[datetime] = None, estado: Optional[str] = None,
             moneda: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[AjusteFinanciero]:
        q = self.db.query(AjusteFinanciero)
        if id_tipo_ajuste is not None:
            q = q.filter(AjusteFinanciero.id_tipo_ajuste == id_tipo_ajuste)
        if desde:
            q = q.filter(AjusteFinanciero.fecha >= desde)
        if hasta:
            q = q.filter(AjusteFinanciero.fecha <= hasta)
        if estado:
            q = q.filter(AjusteFinanciero.estado == estado)
        if moneda:
            q = q.filter(AjusteFinanciero.moneda == moneda)
        return q.order_by(AjusteFinanciero.fecha.desc(), AjusteFinanciero.id.desc()).offset(offset).limit(limit).all()

    # Dimensiones
    def add_dimension(self, d: DimAjusteFinanciero): self.db.add(d); self.db.flush(); return d
    def get_dimension(self, id:int): return self.db.get(DimAjusteFinanciero, id)
    def dimension_by_codigo(self, codigo:str):
        return self.db.query(DimAjusteFinanciero).filter(DimAjusteFinanciero.codigo==codigo).first()
    def dimensiones(self, solo_activas: bool = True) -> List[DimAjusteFinanciero]:
        q = self.db.query(DimAjusteFinanciero)
        if solo_activas:
            q = q.filter(DimAjusteFinanciero.activo == True)  # noqa: E712
        return q.order_by(DimAjusteFinanciero.codigo).all()
