# regionchat/database/session.py
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from regionchat.models.base import Base

# Imported for their side effect of registering tables on Base.metadata
from regionchat.models import friendship, message, user  # noqa: F401


def create_engine(database_url: str, **kwargs) -> AsyncEngine:
    return create_async_engine(database_url, echo=False, pool_pre_ping=True, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


async def initialize_db(engine: AsyncEngine):
    """
    Initialize the database by creating all tables defined in SQLAlchemy models.
    This method is idempotent and safe to run at startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
