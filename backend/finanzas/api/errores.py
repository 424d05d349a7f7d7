from fastapi import HTTPException

from ..application.errors import FinanzasError, ErrorKind

STATUS_POR_KIND = {
    ErrorKind.VALIDACION: 422,
    ErrorKind.NO_ENCONTRADO: 404,
    ErrorKind.REGLA_NEGOCIO: 400,
    ErrorKind.CUENTA_NO_ENCONTRADA: 409,
    ErrorKind.SALDO_INSUFICIENTE: 409,
    ErrorKind.CONVERSION_NO_SOPORTADA: 400,
}


def a_http(e: FinanzasError) -> HTTPException:
    """Traduce un error del motor a HTTPException conservando su clasificación"""
    return HTTPException(
        status_code=STATUS_POR_KIND.get(e.kind, 400),
        detail={"error": e.kind.value, "mensaje": str(e), "detalle": e.payload()},
    )
