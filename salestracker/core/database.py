import logging
from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_database_url(url: str, password: Optional[str] = None):
    """Returns the SQLAlchemy URL with the access key injected as password."""
    parsed = make_url(url)
    if password:
        parsed = parsed.set(password=password)
    return parsed


def create_engine(url: str, password: Optional[str] = None, **kwargs) -> AsyncEngine:
    return create_async_engine(
        build_database_url(url, password), echo=False, future=True, **kwargs
    )


def create_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_tables(engine: AsyncEngine) -> None:
    # Importing the models registers every table on Base.metadata
    import salestracker.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables are in place")


@asynccontextmanager
async def get_session(session_factory: sessionmaker):
    async with session_factory() as session:
        yield session
