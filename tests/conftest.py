# tests/conftest.py
import os
import uuid

# bcrypt con el coste mínimo para que la suite sea rápida
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func
from sqlalchemy.pool import StaticPool

from user_service.bootstrap import create_tables
from user_service.db import Database
from user_service.main import create_app
from user_service.models import Address, User


@pytest.fixture
def database():
    """
    Base de datos SQLite en memoria que sustituye a PostgreSQL.
    StaticPool comparte la única conexión entre todas las sesiones.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db = Database(engine)
    assert create_tables(db)
    yield db
    db.dispose()


@pytest.fixture
def client(database):
    return TestClient(create_app(database))


@pytest.fixture
def session(database):
    s = database.session()
    yield s
    s.close()


@pytest.fixture
def signup_payload():
    """Payload de registro válido con usuario y email únicos."""
    suffix = uuid.uuid4().hex[:8]
    return {
        "username": f"user {suffix}",
        "email": f"user_{suffix}@mail.com",
        "password": "password123",
        "city": "NY",
        "country": "US",
        "street": "Main",
        "pincode": "10001",
    }


@pytest.fixture
def count_rows(database):
    """Cuenta filas de 'users' y 'addresses' con una sesión nueva."""
    def _count():
        s = database.session()
        try:
            users = s.query(func.count(User.id)).scalar()
            addresses = s.query(func.count(Address.id)).scalar()
            return users, addresses
        finally:
            s.close()
    return _count
