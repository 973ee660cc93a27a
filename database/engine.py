import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from core.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False):
    """Create an async engine; SQLite gets a busy timeout so writers wait on each other."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["timeout"] = 15
    return create_async_engine(database_url, echo=echo, connect_args=connect_args)


db_engine = build_engine(settings.database_url, echo=settings.database_echo)

# Create async session maker to be used throughout the application
AsyncSessionLocal = async_sessionmaker(
    db_engine, class_=AsyncSession, expire_on_commit=False
)


# Base class for declarative models
class Base(DeclarativeBase):
    pass


# Function to initialize the database (create tables)
async def init_db():
    # Import models so every table is registered on Base.metadata
    from database.models import (  # noqa: F401
        applications,
        chats,
        companies,
        history,
        interviews,
        jobs,
    )

    logger.info("Initializing database schema")
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Function to close database connections
async def close_db():
    """Close database engine and connections."""
    await db_engine.dispose()
