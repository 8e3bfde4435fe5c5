import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import talentdesk.models  # noqa: F401
from talentdesk.core.database import Base
from talentdesk.core.dependencies import get_backend, get_registry
from talentdesk.core.rate_limit import limiter
from talentdesk.core.roles import Identity, parse_role
from talentdesk.core.security import create_access_token, hash_password
from talentdesk.main import app
from talentdesk.services.backend import Backend
from talentdesk.services.realtime import SubscriptionManager
from talentdesk.services.store import AppStore, StoreRegistry


class FakeStorage:
    """In-memory stand-in for the S3 helpers in talentdesk.services.storage."""

    base_url = "http://storage.test"

    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.fail = False

    def public_url(self, bucket, key):
        return f"{self.base_url}/{bucket}/{key}"

    def key_from_public_url(self, bucket, url):
        marker = f"/{bucket}/"
        if marker not in url:
            return None
        return url.split(marker, 1)[1]

    def upload_bytes(self, bucket, key, content, content_type=None):
        if self.fail:
            raise ConnectionError("storage unavailable")
        self.objects[(bucket, key)] = content
        return self.public_url(bucket, key)

    def download_file(self, bucket, key):
        if self.fail or (bucket, key) not in self.objects:
            raise ConnectionError("storage unavailable")
        return self.objects[(bucket, key)]

    def delete_files(self, bucket, keys):
        for key in keys:
            self.objects.pop((bucket, key), None)


@pytest_asyncio.fixture()
async def session_factory(tmp_path):
    """Fresh SQLite database per test; TEST_DATABASE_URL points at another server."""
    url = os.getenv("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'talentdesk.db'}")
    engine = create_async_engine(url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
def storage():
    return FakeStorage()


@pytest.fixture()
def backend(session_factory, storage):
    return Backend(session_factory, SubscriptionManager(), storage)


@pytest_asyncio.fixture()
async def client(backend):
    registry = StoreRegistry(backend)
    app.dependency_overrides[get_backend] = lambda: backend
    app.dependency_overrides[get_registry] = lambda: registry
    limiter.reset()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    registry.close_all()
    app.dependency_overrides.clear()


async def _create_recruiter(backend, email, role="recruiter", name=None):
    [row] = await backend.insert(
        "recruiters",
        {
            "name": name or f"{role.capitalize()} User",
            "email": email,
            "role": role,
            "password_hash": hash_password("testpass123"),
        },
    )
    identity = Identity(id=row["id"], email=row["email"], name=row["name"], role=parse_role(role))
    token = create_access_token({"sub": str(row["id"]), "role": role})
    return {"Authorization": f"Bearer {token}"}, identity


@pytest_asyncio.fixture()
async def recruiter(backend):
    return await _create_recruiter(backend, "recruiter@test.com", "recruiter", "Rita Recruiter")


@pytest_asyncio.fixture()
async def director(backend):
    return await _create_recruiter(backend, "director@test.com", "director", "Dana Director")


@pytest_asyncio.fixture()
async def manager(backend):
    return await _create_recruiter(backend, "manager@test.com", "manager", "Max Manager")


@pytest.fixture()
def open_store(backend):
    """Build a loaded store for an identity, closed again at teardown."""
    stores = []

    async def _open(identity):
        store = AppStore(backend, identity)
        store.start()
        await store.load_all()
        stores.append(store)
        return store

    yield _open
    for store in stores:
        store.close()


@pytest.fixture()
def seed(backend):
    """Insert a client, a position, a candidate and a pipeline entry owned by ``recruiter_id``."""

    async def _seed(recruiter_id, stage="Screening", status="Active", created_at=None, candidate_name="Jane Doe"):
        [client] = await backend.insert("clients", {"company_name": "Acme Corp"})
        [position] = await backend.insert(
            "positions", {"title": "Backend Engineer", "client_id": client["id"]}
        )
        [candidate] = await backend.insert(
            "candidates",
            {
                "name": candidate_name,
                "email": f"{candidate_name.lower().replace(' ', '.')}@example.com",
                "skills": "Python, SQL",
            },
        )
        entry_values = {
            "candidate_id": candidate["id"],
            "position_id": position["id"],
            "recruiter_id": recruiter_id,
            "stage": stage,
            "status": status,
        }
        if created_at is not None:
            entry_values["created_at"] = created_at
        [entry] = await backend.insert("pipeline", entry_values)
        return {"client": client, "position": position, "candidate": candidate, "entry": entry}

    return _seed
