"""Shared pytest fixtures."""

import io
import os
import uuid

import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import Headers, UploadFile

from assetvault.core.config import Settings
from assetvault.core.db import Database
from assetvault.core.security import ROLE_ADMIN, create_access_token
from assetvault.main import create_app
from assetvault.modules.users.repository import UserRepository
from assetvault.platform.ports.object_storage import StoreResult


FAKE_BASE_URL = "https://fake-bucket.example/"


class FakeStorage:
    """In-memory object store that records every call and can be told to fail."""

    def __init__(self):
        self.objects: dict[str, dict] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_put = False
        self.fail_delete = False

    def put_file(self, key, path, content_type, public=False):
        self.calls.append(("put", key))
        if self.fail_put:
            return StoreResult.failure("simulated put failure")
        with open(path, "rb") as f:
            self.objects[key] = {"data": f.read(), "content_type": content_type, "public": public}
        return StoreResult.success(FAKE_BASE_URL + key)

    def delete(self, key):
        self.calls.append(("delete", key))
        if self.fail_delete:
            return StoreResult.failure("simulated delete failure")
        self.objects.pop(key, None)
        return StoreResult.success()

    def key_from_locator(self, locator):
        if not locator.startswith(FAKE_BASE_URL):
            return None
        return locator[len(FAKE_BASE_URL):]

    def presign_download(self, key, expires_seconds=900):
        return f"{FAKE_BASE_URL}{key}?expires={expires_seconds}"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        ENV="test",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        JWT_SECRET="test-secret",
        LOCAL_STORAGE_ROOT=str(tmp_path / "media"),
        UPLOAD_STAGING_DIR=str(tmp_path / "staging"),
    )


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
async def db(settings):
    database = Database(settings)
    await database.init_models()
    yield database
    await database.dispose()


@pytest.fixture
async def session(db):
    async with db.session() as s:
        yield s


@pytest.fixture
def client(settings, storage):
    app = create_app(settings)
    app.state.providers.override_object_storage(storage)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def staged_files(settings):
    """List whatever is left in the upload staging directory."""
    def _list():
        if not os.path.isdir(settings.UPLOAD_STAGING_DIR):
            return []
        return os.listdir(settings.UPLOAD_STAGING_DIR)
    return _list


@pytest.fixture
def make_upload():
    def _make(data: bytes, content_type: str = "image/jpeg", filename: str = "photo.jpg", known_size: bool = True):
        return UploadFile(
            file=io.BytesIO(data),
            filename=filename,
            size=len(data) if known_size else None,
            headers=Headers({"content-type": content_type}),
        )
    return _make


@pytest.fixture
def auth_headers(settings):
    """Bearer headers for an arbitrary identity; the verifier trusts signed claims only."""
    def _make(user_id: uuid.UUID | None = None, role: str | None = "user"):
        token = create_access_token(settings, user_id or uuid.uuid4(), role)
        return {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture
def register_and_login(client):
    """Register a user through the API and return (user json, bearer headers)."""
    def _make(email: str, password: str = "secret123", name: str = "Test User"):
        r = client.post("/auth/register", json={"name": name, "email": email, "password": password})
        assert r.status_code == 201, r.text
        r = client.post("/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        token = r.json()["token"]
        user = client.get("/profile", headers={"Authorization": f"Bearer {token}"}).json()["user"]
        return user, {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture
def make_user(db):
    """Insert a user row directly; assets and activity logs reference real users."""
    counter = {"n": 0}

    async def _make(email: str | None = None, role: str = "user"):
        counter["n"] += 1
        async with db.session() as s:
            user = await UserRepository(s).create(
                name=None, email=email or f"user{counter['n']}@example.com", password_hash="x", role=role
            )
            await s.commit()
        return user
    return _make


@pytest.fixture
def register_admin(client, register_and_login):
    """Register a user through the API, promote it to admin, and log in again."""
    async def _promote(email: str):
        async with client.app.state.db.session() as s:
            user = await UserRepository(s).get_by_email(email)
            user.role = ROLE_ADMIN
            await s.commit()

    def _make(email: str, password: str = "secret123"):
        register_and_login(email, password)
        client.portal.call(_promote, email)
        r = client.post("/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        headers = {"Authorization": f"Bearer {r.json()['token']}"}
        user = client.get("/profile", headers=headers).json()["user"]
        assert user["role"] == ROLE_ADMIN
        return user, headers
    return _make
