import logging

from salestracker.core.config import LOG_LEVEL
from salestracker.services.data_service import DataService, create_data_service
from salestracker.storage import RemoteStore


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


async def on_startup(service: DataService) -> None:
    # Create the tables on first use of a fresh database
    if isinstance(service.backend, RemoteStore):
        await service.backend.create_tables()


async def start_data_service(**kwargs) -> DataService:
    """Builds the configured DataService and prepares its backend."""
    service = create_data_service(**kwargs)
    await on_startup(service)
    return service
