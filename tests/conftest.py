from __future__ import annotations

import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import spiceledger.persistence.pg as pg
from spiceledger.core.config import get_settings
from spiceledger.persistence.models import Base


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite"


@pytest.fixture(scope="session", autouse=True)
def configure_test_engine(test_db_path: Path):
    settings = get_settings()
    settings.price_backend = "sql"
    settings.password_hash_iterations = 1_000
    settings.seed_admin_on_startup = True

    engine = create_engine(
        f"sqlite+pysqlite:///{test_db_path}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    pg.engine = engine
    pg.SessionLocal = TestSessionLocal

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(configure_test_engine):
    from spiceledger.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def session(configure_test_engine):
    with pg.session_scope() as s:
        yield s


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(client):
    settings = get_settings()
    resp = client.post(
        "/api/auth/login",
        json={"email": settings.admin_email, "password": settings.admin_password},
    )
    assert resp.status_code == 200
    return _bearer(resp.json()["access_token"])


@pytest.fixture()
def register_user(client):
    def _register(name: str = "Trader") -> dict[str, str]:
        email = f"trader-{uuid.uuid4().hex[:10]}@example.com"
        created = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": "pepper-123"},
        )
        assert created.status_code == 201
        login = client.post("/api/auth/login", json={"email": email, "password": "pepper-123"})
        assert login.status_code == 200
        return _bearer(login.json()["access_token"])

    return _register


@pytest.fixture()
def user_headers(register_user):
    return register_user()


@pytest.fixture()
def catalog(client, admin_headers):
    """A fresh product with two grades, plus an unrelated product with one grade."""
    suffix = uuid.uuid4().hex[:8]

    def _product(name: str) -> str:
        resp = client.post("/api/products", json={"name": name}, headers=admin_headers)
        assert resp.status_code == 201
        return resp.json()["id"]

    def _grade(product_id: str, name: str) -> str:
        resp = client.post(
            "/api/grades",
            json={"product_id": product_id, "name": name},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        return resp.json()["id"]

    pepper = _product(f"Black Pepper {suffix}")
    saffron = _product(f"Saffron {suffix}")
    return {
        "pepper": pepper,
        "pepper_a": _grade(pepper, "A"),
        "pepper_b": _grade(pepper, "B"),
        "saffron": saffron,
        "saffron_a": _grade(saffron, "A"),
    }
