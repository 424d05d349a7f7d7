"""
Router de Gastos y Pago de Obligaciones

Endpoints:
- POST /api/gastos/batch - Alta de N gastos con pagos iniciales (todo o nada)
- GET  /api/gastos - Listado
- GET  /api/gastos/obligaciones/pendientes - Gastos con saldo, más antiguo primero
- POST /api/gastos/obligaciones/pagar - Pago DIRECT de un gasto
- GET  /api/gastos/obligaciones/{id_gasto}/historial
- GET  /api/gastos/obligaciones/{id_gasto}/estado
- POST /api/gastos/pagos/{id_transaccion}/bonificacion
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional

from ...dependencies import get_db, get_reglas
from ...domain.enums import TipoObligacion
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import (
    GastosBatchIn, PagarObligacionIn, BonificacionIn, ObligacionCreadaOut, ResultadoPago,
    GastoOut, HistorialPagoOut, ObligacionPendienteOut, EstadoObligacionOut, AjusteOut,
)
from ...application.errors import FinanzasError
from ...application.reglas_cuentas import ReglasCuentas
from ...application.services_ajustes import AjustesService
from ...application.services_gastos import GastosService
from ...application.services_saldos import estado_obligacion, verificar_consistencia
from ..errores import a_http

router = APIRouter(prefix="/api/gastos", tags=["Gastos"])


@router.post("/batch", response_model=List[ObligacionCreadaOut], status_code=201)
def crear_gastos_batch(payload: GastosBatchIn, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    try:
        return GastosService(UnitOfWork(db), reglas).crear_gastos_batch(payload.gastos)
    except FinanzasError as e:
        raise a_http(e)


@router.get("", response_model=List[GastoOut])
def listar_gastos(
    desde: Optional[datetime] = Query(None),
    hasta: Optional[datetime] = Query(None),
    id_categoria: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    reglas: ReglasCuentas = Depends(get_reglas),
):
    return GastosService(UnitOfWork(db), reglas).listar_gastos(
        desde=desde, hasta=hasta, id_categoria=id_categoria, limit=limit, offset=offset
    )


@router.get("/obligaciones/pendientes", response_model=List[ObligacionPendienteOut])
def obligaciones_pendientes(moneda: Optional[str] = Query(None), db: Session = Depends(get_db),
                            reglas: ReglasCuentas = Depends(get_reglas)):
    return GastosService(UnitOfWork(db), reglas).obligaciones_pendientes(moneda=moneda)


@router.post("/obligaciones/pagar", response_model=ResultadoPago)
def pagar_obligacion(payload: PagarObligacionIn, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    try:
        return GastosService(UnitOfWork(db), reglas).pagar_obligacion(payload.id_gasto, payload.lineas)
    except FinanzasError as e:
        raise a_http(e)


@router.get("/obligaciones/{id_gasto}/historial", response_model=List[HistorialPagoOut])
def historial_pagos(id_gasto: int, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    try:
        return GastosService(UnitOfWork(db), reglas).historial_pagos(id_gasto)
    except FinanzasError as e:
        raise a_http(e)


@router.get("/obligaciones/{id_gasto}/estado", response_model=EstadoObligacionOut)
def estado_gasto(id_gasto: int, db: Session = Depends(get_db)):
    try:
        return estado_obligacion(UnitOfWork(db), TipoObligacion.GASTO, id_gasto)
    except FinanzasError as e:
        raise a_http(e)


@router.get("/obligaciones/{id_gasto}/consistencia")
def consistencia_gasto(id_gasto: int, db: Session = Depends(get_db)):
    try:
        return verificar_consistencia(UnitOfWork(db), TipoObligacion.GASTO, id_gasto)
    except FinanzasError as e:
        raise a_http(e)


@router.post("/pagos/{id_transaccion}/bonificacion", response_model=AjusteOut, status_code=201)
def registrar_bonificacion(id_transaccion: int, payload: BonificacionIn, db: Session = Depends(get_db),
                           reglas: ReglasCuentas = Depends(get_reglas)):
    try:
        return AjustesService(UnitOfWork(db), reglas).registrar_bonificacion(id_transaccion, payload)
    except FinanzasError as e:
        raise a_http(e)
