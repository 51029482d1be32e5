"""
Pytest configuration.

Each test gets its own SQLite file under tmp_path; the global engine is
pointed at a throwaway file so importing the app never needs MySQL.
"""
import os
import tempfile
from datetime import datetime

os.environ.setdefault("DB_URL", "sqlite:///" + os.path.join(tempfile.gettempdir(), "qr_access_import.db"))
os.environ["DB_CREATE_SCHEMA"] = "false"

import pytest
from fastapi.testclient import TestClient

from qr_access.api.dependencies import get_database, get_operations
from qr_access.database import DatabaseManager
from qr_access.main import app
from qr_access.services.operations import AccessOperations
from qr_access.services.policy import Principal
from qr_access.services.role_service import RoleService

FIXED_NOW = datetime(2026, 3, 15, 10, 30)


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'access.db'}")
    manager.create_schema()
    yield manager
    manager.dispose()


@pytest.fixture
def conn(db):
    with db.get_connection() as connection:
        yield connection


@pytest.fixture
def ops():
    return AccessOperations(clock=lambda: FIXED_NOW)


@pytest.fixture
def admin(conn):
    RoleService().grant(conn, "admin-1", "Front Desk")
    return Principal(identity_id="admin-1", display_name="Front Desk")


@pytest.fixture
def client(db, ops):
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_operations] = lambda: ops
    yield TestClient(app)
    app.dependency_overrides.clear()
