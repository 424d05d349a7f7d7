import logging
from contextlib import contextmanager
from sqlalchemy.orm import Session
from ..db import SessionLocal
from .repositories import (
    ClienteRepository, CategoriaRepository, CuentaRepository, VentaRepository, GastoRepository,
    TransaccionRepository, AplicacionRepository, CambioRepository, AjusteRepository,
)

logger = logging.getLogger(__name__)

class UnitOfWork:
    def __init__(self, db: Session = None):
        self.db: Session = db if db is not None else SessionLocal()
        self.clientes = ClienteRepository(self.db)
        self.categorias = CategoriaRepository(self.db)
        self.cuentas = CuentaRepository(self.db)
        self.ventas = VentaRepository(self.db)
        self.gastos = GastoRepository(self.db)
        self.transacciones = TransaccionRepository(self.db)
        self.aplicaciones = AplicacionRepository(self.db)
        self.cambios = CambioRepository(self.db)
        self.ajustes = AjusteRepository(self.db)

    def flush(self): self.db.flush()
    def commit(self): self.db.commit()
    def rollback(self): self.db.rollback()
    def close(self): self.db.close()

    @contextmanager
    def transaction(self):
        """
        BEGIN ... COMMIT de una operación.
        Cualquier excepción hace ROLLBACK y se re-lanza sin cambios;
        la sesión se libera siempre.
        """
        try:
            yield self
            self.commit()
        except Exception as e:
            self.rollback()
            kind = getattr(e, "kind", None)
            logger.warning(f"Rollback de transacción ({kind.value if kind else type(e).__name__}): {e}")
            raise
        finally:
            self.close()
