import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import settings

if settings.database_url.startswith("sqlite:///./"):
    os.makedirs("./data", exist_ok=True)

engine = create_engine(settings.database_url, echo=False, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def _import_all_models():
    """Importa todos los modelos para que Base.metadata los registre."""
    from .domain import models  # noqa: F401 - Cliente, CategoriaGasto, CuentaDinero
    from .domain import models_obligaciones  # noqa: F401 - Venta, Gasto
    from .domain import models_pagos  # noqa: F401 - TransaccionPago, AplicacionPago
    from .domain import models_cambios  # noqa: F401 - CambioMoneda
    from .domain import models_ajustes  # noqa: F401 - DimAjusteFinanciero, AjusteFinanciero, AjusteDetalle


def init_db():
    """Crear tablas si no existen (arranque normal)."""
    _import_all_models()
    Base.metadata.create_all(bind=engine)


def recreate_schema_from_models():
    """Elimina todas las tablas y las recrea desde los modelos. Usar para iniciar como sistema nuevo."""
    _import_all_models()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
