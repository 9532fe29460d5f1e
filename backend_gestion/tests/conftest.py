import os
import tempfile

# La configuración se lee al importar la app: fijarla antes
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_DIR"] = tempfile.mkdtemp(prefix="syp-storage-")
os.environ["ADMIN_PASSWORD"] = "Admin2025*"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SMTP_HOST"] = ""

import pytest
from fastapi.testclient import TestClient

from gestion.database import Base, SessionLocal, engine
from gestion.main import app

ADMIN_PASSWORD = "Admin2025*"


@pytest.fixture
def client():
    """App con BD vacía; el lifespan crea las tablas y los usuarios base."""
    Base.metadata.drop_all(bind=engine)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(client):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def login(client: TestClient, username: str, password: str) -> str:
    res = client.post("/api/auth/login", json={"username": username, "password": password})
    assert res.status_code == 200, res.text
    return res.json()["token"]


@pytest.fixture
def admin_token(client):
    return login(client, "admin", ADMIN_PASSWORD)


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def default_headers(client):
    token = login(client, "default", "no-login-default")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def project(client, admin_headers):
    res = client.post(
        "/api/proyectos",
        json={"area": "TI", "encargado": "Ana", "leader": "Luis", "name": "Portal"},
        headers=admin_headers,
    )
    assert res.status_code == 201, res.text
    return res.json()
