# tests/conftest.py
import asyncio
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# ensure project root is importable
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from storefront.auth.local import LocalAuthProvider  # noqa: E402
from storefront.config import Settings  # noqa: E402
from storefront.db.base import Backend, BackendError  # noqa: E402
from storefront.db.file_backend import FileBackend  # noqa: E402
from storefront.main import create_app  # noqa: E402

SAMPLE_PRODUCTS = [
    {"id": 1, "name": "Desk Lamp", "description": "Steel arm", "price": "10.00", "image_url": "/img/1.jpg", "category": "lighting", "stock": 5},
    {"id": 2, "name": "Floor Lamp", "description": "Tall", "price": "5.00", "image_url": "/img/2.jpg", "category": "lighting", "stock": 3},
    {"id": 3, "name": "Oak Chair", "description": "Solid oak", "price": "100.00", "image_url": "/img/3.jpg", "category": "furniture", "stock": 2},
    {"id": 4, "name": "Pine Table", "description": "Pine", "price": "45.50", "image_url": "/img/4.jpg", "category": "furniture", "stock": 1},
    {"id": 5, "name": "Wool Rug", "description": "Merino", "price": "80.00", "image_url": "/img/5.jpg", "category": "textiles", "stock": 4},
]


class RecordingBackend(Backend):
    """
    Wraps a backend, records every write and optionally fails chosen ones.
    `fail_on` holds (operation, table) pairs, e.g. ("insert", "order_items").
    """

    def __init__(self, inner: Backend, fail_on=()):
        self.inner = inner
        self.fail_on = set(fail_on)
        self.writes = []

    async def select(self, query):
        return await self.inner.select(query)

    async def insert(self, table, rows):
        self.writes.append(("insert", table, rows))
        if ("insert", table) in self.fail_on:
            raise BackendError(f"insert into {table} failed")
        return await self.inner.insert(table, rows)

    async def update(self, table, values, filters):
        self.writes.append(("update", table, values))
        if ("update", table) in self.fail_on:
            raise BackendError(f"update of {table} failed")
        return await self.inner.update(table, values, filters)

    def tables_written(self):
        return [w[1] for w in self.writes]


class GatedBackend(RecordingBackend):
    """
    Holds inserts into `table` open until `release()` is called, so a test can
    act while a write is in flight. `entered` is set once such an insert starts.
    """

    def __init__(self, inner: Backend, table: str, fail_on=()):
        super().__init__(inner, fail_on)
        self.table = table
        self.entered = asyncio.Event()
        self._gate = asyncio.Event()

    def release(self):
        self._gate.set()

    async def insert(self, table, rows):
        if table == self.table:
            self.entered.set()
            await self._gate.wait()
        return await super().insert(table, rows)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        BACKEND="local",
        DATA_DIR=tmp_path / "data",
        STORAGE_DIR=tmp_path / "storage",
        PROFILE_FETCH_BACKOFF=0.0,
        JWT_SECRET="test-secret",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def file_backend(settings) -> FileBackend:
    return FileBackend(settings.DATA_DIR)


@pytest.fixture
def auth_provider(file_backend) -> LocalAuthProvider:
    return LocalAuthProvider(file_backend, secret="test-secret")


@pytest.fixture
def seeded_products(file_backend):
    """Write SAMPLE_PRODUCTS into the local products table."""
    asyncio.run(file_backend.insert("products", [dict(p) for p in SAMPLE_PRODUCTS]))
    return SAMPLE_PRODUCTS


@pytest.fixture
def recording_backend():
    """
    Factory for RecordingBackend.
    Usage: db = recording_backend(file_backend, fail_on={("insert", "order_items")})
    """
    return RecordingBackend


@pytest.fixture
def signed_up_client(client, seeded_products):
    """
    Client whose session has signed up (and is therefore signed in).
    Returns (client, profile_dict).
    """
    resp = client.post(
        "/api/auth/sign-up",
        json={"email": "ada@example.com", "password": "secret123", "full_name": "Ada Lovelace"},
    )
    assert resp.status_code == 201, resp.text
    return client, resp.json()["user"]


@pytest.fixture
def gated_backend():
    """
    Factory for GatedBackend (create it inside the running test loop).
    Usage: db = gated_backend(file_backend, "orders")
    """
    return GatedBackend
