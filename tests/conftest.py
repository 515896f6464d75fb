import uuid

import pytest
from fastapi.testclient import TestClient

from todo_api.config import Settings
from todo_api.database import Database
from todo_api.main import create_app

SECRET = "test-secret"
PASSWORD = "Pass123!"


def make_settings(**overrides) -> Settings:
    values = dict(jwt_secret=SECRET, database_url="sqlite://", bcrypt_rounds=4)
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings():
    return make_settings()


# Recreate all tables for each test
@pytest.fixture
def db(settings):
    database = Database(settings.database_url)
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture
def app(settings, db):
    return create_app(settings, db)


@pytest.fixture
def client(app):
    return TestClient(app)


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}@example.com"


def register(client: TestClient, email: str = None, password: str = PASSWORD, **extra) -> dict:
    email = email or unique_email()
    r = client.post("/api/auth/register", json={"email": email, "password": password, **extra})
    assert r.status_code == 201, r.text
    return r.json()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(client):
    """A registered user: {"token", "user", "headers"}."""
    data = register(client)
    data["headers"] = auth_headers(data["token"])
    return data


@pytest.fixture
def other_user(client):
    data = register(client, unique_email("other"))
    data["headers"] = auth_headers(data["token"])
    return data
