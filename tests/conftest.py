import mongomock
import pytest
from fastapi.testclient import TestClient

from database import ensure_indexes, get_db
from main import app
from security import hash_password


@pytest.fixture
def db():
    database = mongomock.MongoClient()["bookshelf_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    # no context manager: the startup hook would talk to the real server
    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(email, name=None, admin=False):
        res = db["user"].insert_one({"email": email, "name": name, "password_hash": hash_password("secret")})
        if admin:
            db["admin"].insert_one({"user_id": res.inserted_id})
        return str(res.inserted_id)
    return _make_user


@pytest.fixture
def login(client):
    def _login(email, password="secret"):
        r = client.post("/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}
    return _login
