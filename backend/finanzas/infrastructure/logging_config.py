"""
Configuración de logging para la aplicación
Crea archivos de log por día en la carpeta configurada (LOG_DIR)
"""
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime

from ..config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging():
    """Configura el sistema de logging con archivos diarios"""

    log_dir = settings.log_path
    log_dir.mkdir(parents=True, exist_ok=True)

    # Nombre del archivo de log con fecha actual (YYYY-MM-DD)
    today = datetime.now().strftime("%Y-%m-%d")
    log_file = log_dir / f"finanzas_{today}.log"

    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Eliminar handlers existentes para evitar duplicados
    root_logger.handlers.clear()

    # maxBytes=10MB, backupCount=5
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.getLogger("finanzas").setLevel(level)
    logging.getLogger("finanzas.api").setLevel(level)

    # El motor de pagos registra cada aplicación; en DEBUG se ve el detalle por obligación
    pagos_logger = logging.getLogger("finanzas.application.services_pagos")
    pagos_logger.setLevel(logging.DEBUG if settings.debug else level)

    # Logger para base de datos (SQLAlchemy): solo warnings y errores de SQL
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    logging.getLogger("uvicorn").setLevel(logging.INFO)

    logging.info("Sistema de logging configurado. Archivo: %s", log_file)

    return root_logger

