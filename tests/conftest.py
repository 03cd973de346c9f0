"""Fixtures de test / Test fixtures."""

from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import staffing.models  # noqa: F401
from staffing.api.deps import get_current_user
from staffing.database import Base, enable_sqlite_foreign_keys, get_db
from staffing.main import app
from staffing.models.project import Project
from staffing.models.user import User
from staffing.rate_limit import limiter
from staffing.services.notifications import NotificationRequest, Notifier, get_notifier
from staffing.utils.auth import hash_password

limiter.enabled = False


class RecordingNotifier(Notifier):
    """Garde les messages en mémoire / Keeps messages in memory."""

    def __init__(self, fail: bool = False):
        self.sent: list[NotificationRequest] = []
        self.fail = fail

    async def _deliver(self, request: NotificationRequest) -> None:
        if self.fail:
            raise RuntimeError("dispatch service unavailable")
        self.sent.append(request)

    def kinds(self) -> list[str]:
        return [r.template_kind.value for r in self.sent]


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(eng)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def file_session_factory(tmp_path):
    """Base fichier, une connexion par session / File database, one connection per session."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'staffing.db'}")
    enable_sqlite_foreign_keys(eng)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(eng, class_=AsyncSession, expire_on_commit=False)
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)


async def make_user(db: AsyncSession, username: str, **kwargs) -> User:
    user = User(
        username=username,
        email=kwargs.pop("email", f"{username}@example.com"),
        full_name=kwargs.pop("full_name", username.title()),
        hashed_password=hash_password("secret-password"),
        is_active=True,
        is_assignable=kwargs.pop("is_assignable", True),
        **kwargs,
    )
    user.roles = []
    db.add(user)
    await db.flush()
    return user


async def make_project(db: AsyncSession, name: str, start: date | None, end: date | None) -> Project:
    project = Project(client_name=name, start_date=start, end_date=end)
    db.add(project)
    await db.flush()
    return project


@pytest.fixture
def create_user(db):
    async def _create(username: str, **kwargs) -> User:
        return await make_user(db, username, **kwargs)
    return _create


@pytest.fixture
def create_project(db):
    async def _create(name: str, start: date | None, end: date | None) -> Project:
        return await make_project(db, name, start, end)
    return _create


@pytest.fixture
async def june_project(db):
    return await make_project(db, "Acme Rollout", date(2024, 6, 1), date(2024, 6, 30))


@pytest.fixture
async def engineer(db):
    return await make_user(db, "alice")


# --- API ---

@pytest.fixture
async def admin(session_factory):
    async with session_factory() as session:
        user = await make_user(session, "admin", is_superadmin=True, is_assignable=False)
        await session.commit()
    return user


@pytest.fixture
async def client(session_factory, admin, notifier):
    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _get_current_user():
        return admin

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user] = _get_current_user
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
