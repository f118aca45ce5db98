from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from backend.errors import ConfigurationError
from config.settings import settings, IS_PRODUCTION

# Validate production database configuration
if IS_PRODUCTION and settings.database_url and "sqlite" in settings.database_url.lower():
    raise ConfigurationError("SQLite is forbidden in production. Use a PostgreSQL DATABASE_URL.")

# Without DATABASE_URL the engine is never used (accounts are mocked), but it
# still needs a valid URL to be constructed
DATABASE_URL = settings.database_url or "sqlite+aiosqlite:///./kyr.db"

# Async driver for postgres URLs copied from a hosting dashboard
async_url = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

# Create async engine
engine = create_async_engine(
    async_url,
    echo=False,
    future=True,
)

# Create declarative base for models
Base = declarative_base()

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def init_db():
    """
    Create all tables.
    Called on application startup when DATABASE_URL is configured.
    """
    async with engine.begin() as conn:
        # Import models here to ensure they're registered with Base
        import database_models  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)
