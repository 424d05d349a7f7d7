from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional

from ...dependencies import get_db, get_reglas
from ...domain.enums import TipoObligacion
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import VentaIn, ObligacionCreadaOut, VentaOut, VentaDetalleOut, EstadoObligacionOut
from ...application.errors import FinanzasError
from ...application.reglas_cuentas import ReglasCuentas
from ...application.services_saldos import verificar_consistencia
from ...application.services_ventas import VentasService
from ..errores import a_http

router = APIRouter(prefix="/api/ventas", tags=["Ventas"])


@router.post("", response_model=ObligacionCreadaOut, status_code=201)
def crear_venta(payload: VentaIn, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    """Crea una venta con pago inicial opcional (una o varias líneas)"""
    try:
        return VentasService(UnitOfWork(db), reglas).crear_venta(payload)
    except FinanzasError as e:
        raise a_http(e)


@router.get("", response_model=List[VentaOut])
def listar_ventas(
    desde: Optional[datetime] = Query(None),
    hasta: Optional[datetime] = Query(None),
    canal: Optional[str] = Query(None),
    id_cliente: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    reglas: ReglasCuentas = Depends(get_reglas),
):
    return VentasService(UnitOfWork(db), reglas).listar_ventas(
        desde=desde, hasta=hasta, canal=canal, id_cliente=id_cliente, limit=limit, offset=offset
    )


@router.get("/{id_venta}", response_model=VentaDetalleOut)
def obtener_venta(id_venta: int, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    try:
        return VentasService(UnitOfWork(db), reglas).obtener_venta(id_venta)
    except FinanzasError as e:
        raise a_http(e)


@router.get("/{id_venta}/estado", response_model=EstadoObligacionOut)
def estado_venta(id_venta: int, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    try:
        return VentasService(UnitOfWork(db), reglas).estado_venta(id_venta)
    except FinanzasError as e:
        raise a_http(e)


@router.post("/{id_venta}/cancelar", response_model=VentaOut)
def cancelar_venta(id_venta: int, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    try:
        return VentasService(UnitOfWork(db), reglas).cancelar_venta(id_venta)
    except FinanzasError as e:
        raise a_http(e)


@router.get("/{id_venta}/consistencia")
def consistencia_venta(id_venta: int, db: Session = Depends(get_db)):
    try:
        return verificar_consistencia(UnitOfWork(db), TipoObligacion.VENTA, id_venta)
    except FinanzasError as e:
        raise a_http(e)
