"""
Router de Ajustes Financieros

Endpoints:
- GET  /api/ajustes/dimensiones
- POST /api/ajustes/dimensiones
- PUT  /api/ajustes/dimensiones/{id}
- GET  /api/ajustes
- GET  /api/ajustes/{id}
- POST /api/ajustes
- POST /api/ajustes/{id}/anular
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional

from ...dependencies import get_db, get_reglas
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import AjusteIn, AjusteOut, DimensionIn, DimensionOut
from ...application.errors import FinanzasError
from ...application.reglas_cuentas import ReglasCuentas
from ...application.services_ajustes import AjustesService
from ..errores import a_http

router = APIRouter(prefix="/api/ajustes", tags=["Ajustes Financieros"])


@router.get("/dimensiones", response_model=List[DimensionOut])
def listar_dimensiones(db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    return AjustesService(UnitOfWork(db), reglas).listar_dimensiones_activas()


@router.post("/dimensiones", response_model=DimensionOut, status_code=201)
def crear_dimension(payload: DimensionIn, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    try:
        return AjustesService(UnitOfWork(db), reglas).crear_dimension(payload)
    except FinanzasError as e:
        raise a_http(e)


@router.put("/dimensiones/{id_dimension}", response_model=DimensionOut)
def actualizar_dimension(id_dimension: int, payload: DimensionIn, db: Session = Depends(get_db),
                         reglas: ReglasCuentas = Depends(get_reglas)):
    try:
        return AjustesService(UnitOfWork(db), reglas).actualizar_dimension(id_dimension, payload)
    except FinanzasError as e:
        raise a_http(e)


@router.get("", response_model=List[AjusteOut])
def listar_ajustes(
    id_tipo_ajuste: Optional[int] = Query(None),
    desde: Optional[datetime] = Query(None),
    hasta: Optional[datetime] = Query(None),
    estado: Optional[str] = Query(None),
    moneda: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    reglas: ReglasCuentas = Depends(get_reglas),
):
    return AjustesService(UnitOfWork(db), reglas).listar_ajustes(
        id_tipo_ajuste=id_tipo_ajuste, desde=desde, hasta=hasta, estado=estado, moneda=moneda,
        limit=limit, offset=offset,
    )


@router.get("/{id_ajuste}", response_model=AjusteOut)
def obtener_ajuste(id_ajuste: int, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    try:
        return AjustesService(UnitOfWork(db), reglas).obtener_ajuste(id_ajuste)
    except FinanzasError as e:
        raise a_http(e)


@router.post("", response_model=AjusteOut, status_code=201)
def crear_ajuste(payload: AjusteIn, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    try:
        return AjustesService(UnitOfWork(db), reglas).crear_ajuste(payload)
    except FinanzasError as e:
        raise a_http(e)


@router.post("/{id_ajuste}/anular", response_model=AjusteOut)
def anular_ajuste(id_ajuste: int, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    """Anula el ajuste. No revierte saldos de ventas ni gastos."""
    try:
        return AjustesService(UnitOfWork(db), reglas).anular_ajuste(id_ajuste)
    except FinanzasError as e:
        raise a_http(e)
