import os
import pytest


@pytest.fixture(scope="session", autouse=True)
def set_test_env(tmp_path_factory):
    db_file = tmp_path_factory.mktemp("data") / "test.db"
    os.environ["DB_PATH"] = str(db_file)
    os.environ["LOG_LEVEL"] = "DEBUG"


@pytest.fixture(scope="session")
def client(set_test_env):
    from fastapi.testclient import TestClient
    from app.main import app
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def scratch_db(tmp_path):
    """A fresh, empty database for tests that need exact row counts."""
    from menu_costing.db.database import init_db, override_db_path
    db_file = tmp_path / "scratch.db"
    with override_db_path(db_file):
        init_db()
        yield db_file
