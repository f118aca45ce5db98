"""
Pytest configuration and fixtures for testing
"""
import os

# Fixed signing key so tests never write a development secret into ./state
os.environ.setdefault("JWT_SECRET_KEY", "test-signing-key")

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
from services.app_store import AppStore
from services.providers import Providers
from utils.state_store import FileStateStore

# Create in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Create test engine (one shared connection so every session sees the same tables)
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    future=True,
    poolclass=StaticPool,
)

# Create test session factory
TestAsyncSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture
async def session_factory():
    """
    Creates all tables, yields the test session factory, drops the tables after
    the test completes.
    """
    async with test_engine.begin() as conn:
        # Import models to ensure they're registered with Base
        import database_models  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)

    yield TestAsyncSessionLocal

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def test_db(session_factory):
    """Isolated AsyncSession on a clean in-memory database"""
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@pytest.fixture
def providers():
    """Static collaborators: mock identity and payments, no generative text"""
    return Providers.mocked("http://localhost:5173")


@pytest.fixture
def state_store(tmp_path):
    return FileStateStore(tmp_path / "state")


@pytest.fixture
async def store(providers, state_store):
    app_store = AppStore(providers, state_store, client_id="client-test", tick_interval=0.01)
    yield app_store
    app_store.close()


@pytest.fixture
async def premium_store(store):
    """Signed-in store whose subscription the payment collaborator reports as active"""
    await store.sign_in("premium@example.com", "secret123")
    await store.begin_premium_upgrade()
    await store.reconcile_subscription()
    assert store.is_premium()
    return store
