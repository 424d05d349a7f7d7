"""
Fixtures para tests de integración API.
Usa TestClient de FastAPI contra la app real, con la sesión de BD
reemplazada por la SQLite en memoria de cada test.
"""
import pytest
import sys
from pathlib import Path

# Asegurar que el path permita imports de finanzas
root_dir = Path(__file__).parent.parent.parent
sys.path.insert(0, str(root_dir))

from fastapi.testclient import TestClient

# Import app después de path
from finanzas.main import app
from finanzas.dependencies import get_db


@pytest.fixture
def client(session_factory, datos_base):
    """Cliente HTTP con get_db apuntando a la BD del test (cuentas, clientes y categorías ya cargados)."""
    def _get_db_test():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db_test
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
