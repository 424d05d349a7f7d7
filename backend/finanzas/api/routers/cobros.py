"""
Router de Cobros (pagos de clientes sobre ventas)

Endpoints:
- GET  /api/cobros/clientes-con-deuda
- GET  /api/cobros/clientes/{id_cliente}/pendientes
- POST /api/cobros/pagos
- GET  /api/cobros/clientes/{id_cliente}/historial
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from ...dependencies import get_db, get_reglas
from ...domain.enums import TipoObligacion
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import RegistrarPagoIn, ResultadoPago, ClienteDeudaOut, ObligacionPendienteOut, HistorialPagoOut
from ...application.errors import FinanzasError, NoEncontradoError
from ...application.reglas_cuentas import ReglasCuentas
from ...application.services_pagos import PagosService
from ...application.services_saldos import clientes_con_deuda, obligaciones_pendientes, deuda_cliente
from ..errores import a_http

router = APIRouter(prefix="/api/cobros", tags=["Cobros"])


@router.get("/clientes-con-deuda", response_model=List[ClienteDeudaOut])
def listar_clientes_con_deuda(moneda: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return clientes_con_deuda(UnitOfWork(db), moneda=moneda)


@router.get("/clientes/{id_cliente}/pendientes")
def ventas_pendientes_cliente(id_cliente: int, moneda: Optional[str] = Query(None), db: Session = Depends(get_db),
                              reglas: ReglasCuentas = Depends(get_reglas)):
    """Ventas pendientes del cliente en una moneda (por defecto la local), en orden FIFO (más antigua primero)"""
    uow = UnitOfWork(db)
    moneda = (moneda or reglas.moneda_local).upper()
    try:
        if not uow.clientes.get(id_cliente):
            raise NoEncontradoError("Cliente", id_cliente)
        pendientes: List[ObligacionPendienteOut] = obligaciones_pendientes(
            uow, TipoObligacion.VENTA, id_cliente=id_cliente, moneda=moneda
        )
        return {
            "id_cliente": id_cliente,
            "moneda": moneda,
            "deuda_total": deuda_cliente(uow, id_cliente, moneda),
            "ventas": pendientes,
        }
    except FinanzasError as e:
        raise a_http(e)


@router.post("/pagos", response_model=ResultadoPago)
def registrar_pago(payload: RegistrarPagoIn, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    """
    Registra un pago con una o varias líneas (métodos de pago).

    - DIRECT: todo a `id_obligacion`; pagar de más se rechaza
    - FIFO: ventas pendientes de `id_cliente`, la más antigua primero
    """
    try:
        return PagosService(UnitOfWork(db), reglas).registrar_pago(
            payload.tipo,
            payload.lineas,
            payload.estrategia,
            id_cliente=payload.id_cliente,
            id_obligacion=payload.id_obligacion,
            modo=payload.modo,
        )
    except FinanzasError as e:
        raise a_http(e)


@router.get("/clientes/{id_cliente}/historial", response_model=List[HistorialPagoOut])
def historial_cliente(id_cliente: int, limit: int = Query(100, ge=1, le=500), db: Session = Depends(get_db),
                      reglas: ReglasCuentas = Depends(get_reglas)):
    return PagosService(UnitOfWork(db), reglas).historial_pagos_cliente(id_cliente, limit=limit)
