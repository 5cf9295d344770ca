import pytest
from fastapi.testclient import TestClient

from auth import SessionStore
from main import create_app
from storage import DatabaseStorage, MemStorage

PASSWORD = "s3cret-pass"


@pytest.fixture(params=["memory", "sqlite"])
def storage(request):
    if request.param == "memory":
        return MemStorage()
    return DatabaseStorage("sqlite://")


@pytest.fixture
def app():
    return create_app(MemStorage(), SessionStore())


@pytest.fixture
def client(app):
    return TestClient(app)


def register(client, username, password=PASSWORD, **extra):
    response = client.post("/api/register", json={"username": username, "password": password, **extra})
    assert response.status_code == 201, response.text
    return response.json()
