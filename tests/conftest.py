import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from salestracker.core.database import Base
from salestracker.services.data_service import DataService
from salestracker.storage import LocalStore, MemoryStorage, RemoteStore
from salestracker.utils.cache import ReadCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def create_memory_engine():
    # StaticPool keeps one connection, so every session sees the same database
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, future=True, poolclass=StaticPool
    )
    import salestracker.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def engine():
    engine = await create_memory_engine()
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def remote_store(engine):
    return RemoteStore(engine)


@pytest.fixture
def local_store():
    return LocalStore(MemoryStorage())


@pytest_asyncio.fixture
async def remote_service(remote_store, clock):
    return DataService(remote_store, cache=ReadCache(ttl=120, clock=clock))


@pytest.fixture
def local_service(local_store):
    return DataService(local_store)


@pytest_asyncio.fixture(params=["remote", "local"])
async def service(request, clock):
    """DataService over each backend in turn."""
    if request.param == "local":
        yield DataService(LocalStore(MemoryStorage()))
        return

    engine = await create_memory_engine()
    yield DataService(RemoteStore(engine), cache=ReadCache(ttl=120, clock=clock))
    await engine.dispose()
