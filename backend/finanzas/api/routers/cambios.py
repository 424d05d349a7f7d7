from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from ...dependencies import get_db, get_reglas
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import CambioIn, ResultadoCambio, CambioOut, CuentaSaldoOut
from ...application.errors import FinanzasError
from ...application.reglas_cuentas import ReglasCuentas
from ...application.services_cambios import CambiosService
from ..errores import a_http

router = APIRouter(prefix="/api/cambios", tags=["Cambios"])


@router.get("/cuentas", response_model=List[CuentaSaldoOut])
def cuentas_con_saldo(db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    return CambiosService(UnitOfWork(db), reglas).cuentas_con_saldo()


@router.get("/cuentas/{id_cuenta}/saldo", response_model=CuentaSaldoOut)
def saldo_cuenta(id_cuenta: int, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    try:
        return CambiosService(UnitOfWork(db), reglas).saldo_cuenta(id_cuenta)
    except FinanzasError as e:
        raise a_http(e)


@router.post("", response_model=ResultadoCambio, status_code=201)
def registrar_cambio(payload: CambioIn, db: Session = Depends(get_db), reglas: ReglasCuentas = Depends(get_reglas)):
    """
    Cambio de moneda (UYU <-> USD) o transferencia entre cuentas de la misma moneda.
    `moneda_input` indica si `monto_input` está expresado en la moneda ORIGEN o DESTINO.
    """
    try:
        return CambiosService(UnitOfWork(db), reglas).registrar_cambio(payload)
    except FinanzasError as e:
        raise a_http(e)


@router.get("/historial", response_model=List[CambioOut])
def historial(
    id_cuenta: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    reglas: ReglasCuentas = Depends(get_reglas),
):
    return CambiosService(UnitOfWork(db), reglas).historial(id_cuenta=id_cuenta, limit=limit, offset=offset)
