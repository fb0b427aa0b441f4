"""Shared fixtures: a throwaway SQLite database, a frozen clock, and seeded access data."""

import os

# The app builds its engine at import time; keep it off PostgreSQL in tests.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from aquapack.core.clock import get_clock
from aquapack.core.context import CallerContext
from aquapack.core.security import create_access_token
from aquapack.database import Base, get_db
from aquapack.main import app
from aquapack.models import Organization, Project, ProjectAssignment, User
from aquapack.models.enums import UserRole
from aquapack.services.entities import SiteHandler

T0 = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, now: datetime) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@dataclass
class Seed:
    organization: Organization
    project: Project
    other_project: Project
    user: User
    outsider: User

    @property
    def caller(self) -> CallerContext:
        return CallerContext(
            user_id=self.user.id,
            organization_id=self.organization.id,
            project_ids=frozenset({self.project.id}),
            role=self.user.role,
        )


def iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def site_data(project_id: uuid.UUID, updated_at: datetime | None = None, **overrides) -> dict:
    data = {
        "projectId": str(project_id),
        "name": "Kiboko Spring",
        "code": "KB-01",
        "location": {
            "latitude": -1.2921,
            "longitude": 36.8219,
            "accuracy": 4.5,
            "capturedAt": "2024-01-01T08:00:00Z",
        },
        "siteType": "spring",
    }
    if updated_at is not None:
        data["updatedAt"] = iso(updated_at)
    data.update(overrides)
    return data


def borehole_data(site_local_id: str | None = None, site_id: uuid.UUID | None = None, **overrides) -> dict:
    data = {
        "name": "BH-1",
        "wellType": "BOREHOLE",
        "totalDepth": 80.0,
        "depthUnit": "meters",
        "screenIntervals": [{"fromDepth": 60.0, "toDepth": 72.0, "slotSize": 1.0}],
        "lithologyLog": [
            {"fromDepth": 0.0, "toDepth": 12.0, "primaryLithology": "Clay", "waterBearing": False},
        ],
    }
    if site_local_id is not None:
        data["siteLocalId"] = site_local_id
    if site_id is not None:
        data["siteId"] = str(site_id)
    data.update(overrides)
    return data


def pump_test_data(site_id: uuid.UUID, **overrides) -> dict:
    data = {
        "siteId": str(site_id),
        "testType": "CONSTANT_RATE",
        "testName": "72h constant rate",
        "startDatetime": "2024-01-01T06:00:00Z",
        "entries": [
            {"elapsedMinutes": 0, "depthToWater": 12.1},
            {"elapsedMinutes": 5, "depthToWater": 14.3, "drawdown": 2.2, "discharge": 3.5, "dischargeUnit": "l/s"},
        ],
        "steps": [
            {"stepNumber": 1, "startMinutes": 0, "endMinutes": 60, "targetDischarge": 2.0},
        ],
    }
    data.update(overrides)
    return data


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(T0)


@pytest.fixture
async def engine(tmp_path: Path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'aquapack.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seed(db: AsyncSession) -> Seed:
    organization = Organization(id=uuid.uuid4(), name="Rift Valley Water")
    project = Project(
        id=uuid.uuid4(), organization_id=organization.id, name="Naivasha Basin", code="NAI-01",
    )
    other_project = Project(
        id=uuid.uuid4(), organization_id=organization.id, name="Turkana North", code="TUR-02",
    )
    user = User(
        id=uuid.uuid4(),
        email="field@example.org",
        full_name="Field Tech",
        role=UserRole.FIELD_USER,
        organization_id=organization.id,
    )
    outsider = User(
        id=uuid.uuid4(),
        email="other@example.org",
        full_name="Other Tech",
        role=UserRole.FIELD_USER,
        organization_id=organization.id,
    )
    db.add_all([organization, project, other_project, user, outsider])
    db.add_all([
        ProjectAssignment(
            id=uuid.uuid4(), user_id=user.id, project_id=project.id, role=UserRole.FIELD_USER,
        ),
        ProjectAssignment(
            id=uuid.uuid4(), user_id=outsider.id, project_id=other_project.id, role=UserRole.FIELD_USER,
        ),
    ])
    await db.commit()
    return Seed(organization, project, other_project, user, outsider)


@pytest.fixture
async def client(session_factory, clock: FrozenClock) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(seed: Seed) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(seed.user.id)}"}


@pytest.fixture
async def stored_site(db: AsyncSession, seed: Seed, clock: FrozenClock):
    """A site pushed earlier by device D1 as local id s-1."""
    handler = SiteHandler(db)
    site = await handler.create(
        handler.parse_create(site_data(seed.project.id)),
        device_id="D1",
        local_id="s-1",
        created_by=seed.user.id,
        now=clock.now(),
    )
    await db.commit()
    return site
