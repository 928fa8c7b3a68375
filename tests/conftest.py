"""Shared test fixtures for the InnoStart API test suite."""

from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from innostart.auth.dependencies import get_current_user
from innostart.core.database import Base, get_db
from innostart.core.errors import ModelUnavailable
from innostart.main import app
from innostart.models.business import BusinessIdea
from innostart.models.core import User
from innostart.models.enums import IdeaStatus
from innostart.modules.ai.gateway import get_model_gateway
from innostart.schemas.auth import CurrentUser

# ── Test Data ────────────────────────────────────────────────────────────────

USER_ID = 1
OTHER_USER_ID = 2

CURRENT_USER = CurrentUser(
    user_id=USER_ID,
    email="amina@example.com",
    first_name="Amina",
    last_name="Uwase",
    location="Musanze",
)

OTHER_USER = CurrentUser(
    user_id=OTHER_USER_ID,
    email="other@example.com",
    first_name="Other",
    last_name="User",
)


ADMIN_USER = CurrentUser(
    user_id=3,
    email="admin@innostart.rw",
    first_name="Platform",
    last_name="Admin",
)


class FakeGateway:
    """Stands in for ModelGateway: replays canned completions, records prompts.

    A reply that is an exception instance is raised instead of returned. The
    last reply repeats once the queue is down to one item.
    """

    def __init__(self, *replies: str | Exception) -> None:
        self.replies: list[str | Exception] = list(replies)
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise ModelUnavailable("no canned reply configured")
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Fresh in-memory SQLite database per test, foreign keys enforced."""
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(eng.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def seed_users(db: AsyncSession) -> None:
    """Two users, so ownership checks have someone to fail against."""
    db.add_all(
        [
            User(id=USER_ID, email="amina@example.com", password_hash="x",
                 first_name="Amina", last_name="Uwase", location="Musanze"),
            User(id=OTHER_USER_ID, email="other@example.com", password_hash="x",
                 first_name="Other", last_name="User"),
        ]
    )
    await db.commit()


@pytest.fixture
async def sample_idea(db: AsyncSession, seed_users) -> BusinessIdea:
    idea = BusinessIdea(
        user_id=USER_ID,
        title="Volcano Coffee Tours",
        description="Guided coffee farm visits near Volcanoes National Park.",
        industry="Tourism",
        target_market="International tourists",
        initial_investment=Decimal("150000"),
        expected_revenue=Decimal("60000"),
        success_probability=70,
        status=IdeaStatus.DRAFT,
        location="Musanze",
        budget_range="50000-200000",
    )
    db.add(idea)
    await db.commit()
    await db.refresh(idea)
    return idea


@pytest.fixture
async def other_idea(db: AsyncSession, seed_users) -> BusinessIdea:
    idea = BusinessIdea(
        user_id=OTHER_USER_ID,
        title="Secret Honey Co-op",
        description="Beekeeping co-operative.",
        industry="Agriculture",
        target_market="Local shops",
        status=IdeaStatus.DRAFT,
    )
    db.add(idea)
    await db.commit()
    await db.refresh(idea)
    return idea


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway("A default completion.")


def _override_auth(user: CurrentUser):
    async def _override():
        return user
    return _override


@pytest.fixture
async def test_client(db: AsyncSession, seed_users, fake_gateway: FakeGateway) -> AsyncGenerator[AsyncClient]:
    """Client authenticated as CURRENT_USER with DB and model overrides."""
    app.dependency_overrides[get_current_user] = _override_auth(CURRENT_USER)
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_model_gateway] = lambda: fake_gateway
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def other_client(db: AsyncSession, seed_users, fake_gateway: FakeGateway) -> AsyncGenerator[AsyncClient]:
    """Client authenticated as OTHER_USER."""
    app.dependency_overrides[get_current_user] = _override_auth(OTHER_USER)
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_model_gateway] = lambda: fake_gateway
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def admin_client(db: AsyncSession, seed_users) -> AsyncGenerator[AsyncClient]:
    """Client authenticated as an account listed in ADMIN_EMAILS."""
    app.dependency_overrides[get_current_user] = _override_auth(ADMIN_USER)
    app.dependency_overrides[get_db] = lambda: db
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
