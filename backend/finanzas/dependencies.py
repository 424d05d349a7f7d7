from typing import Generator
from sqlalchemy.orm import Session

from .config import settings
from .db import SessionLocal
from .application.reglas_cuentas import ReglasCuentas


def get_db() -> Generator[Session, None, None]:
    """Sesión por request. Se devuelve al pool siempre, haya o no error."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_reglas() -> ReglasCuentas:
    """Reglas de cuentas/monedas desde la configuración. Se puede sobreescribir en tests."""
    return ReglasCuentas.desde_settings(settings)
