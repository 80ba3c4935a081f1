from datetime import datetime

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from slotbook.core.config import Settings
from slotbook.core.db import Database
from slotbook.core.security import hash_password
from slotbook.main import create_app
from slotbook.storage.memory import MemoryBookingStore
from slotbook.storage.sql import SqlBookingStore
from tests.factories import ADMIN_PASSWORD, MONDAY_8AM, make_link, make_template


@pytest.fixture
def now() -> datetime:
    return MONDAY_8AM


@pytest.fixture
def store() -> MemoryBookingStore:
    return MemoryBookingStore()


@pytest_asyncio.fixture
async def seeded_store(store: MemoryBookingStore) -> MemoryBookingStore:
    await store.save_template(make_template())
    await store.save_booking_link(make_link())
    return store


@pytest_asyncio.fixture
async def database():
    db = Database(Settings(database_url="sqlite+aiosqlite:///:memory:", env="test"))
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def sql_session(database: Database):
    async with database.session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def sql_store(sql_session) -> SqlBookingStore:
    store = SqlBookingStore(sql_session)
    await store.save_template(make_template())
    await store.save_booking_link(make_link())
    await sql_session.commit()
    return store


@pytest.fixture(scope="session")
def admin_password_hash() -> str:
    return hash_password(ADMIN_PASSWORD)


@pytest.fixture
def test_settings(admin_password_hash: str) -> Settings:
    return Settings(
        storage_backend="memory",
        env="test",
        secret_key="test-secret",
        admin_username="admin",
        admin_password_hash=admin_password_hash,
        cors_origins="http://localhost:3000",
        smtp_host="",
        timezone="UTC",
    )


@pytest.fixture
def client(test_settings: Settings):
    with TestClient(create_app(test_settings)) as c:
        yield c


@pytest.fixture
def admin_headers(client: TestClient) -> dict[str, str]:
    res = client.post("/api/v1/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['access_token']}"}
