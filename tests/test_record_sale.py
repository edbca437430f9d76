import json
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from salestracker.core.exceptions import PartialWriteError
from salestracker.records import Sale
from salestracker.services.data_service import DataService
from salestracker.storage import STORAGE_KEYS, LocalStore, MemoryStorage


class FlakyStorage(MemoryStorage):
    """MemoryStorage whose writes to chosen keys fail on demand."""

    def __init__(self):
        super().__init__()
        self.failing_writes = set()
        self.failing_removes = set()

    def set_item(self, key, value):
        if key in self.failing_writes:
            raise OSError(f"cannot write {key}")
        super().set_item(key, value)

    def remove_item(self, key):
        if key in self.failing_removes:
            raise OSError(f"cannot remove {key}")
        super().remove_item(key)


@pytest.mark.asyncio
async def test_record_sale_decrements_stock(service):
    item = await service.save_inventory_item({"name": "Soap", "price": 2.5, "quantity": 10})

    sale = await service.record_sale(Sale.for_item(item, 3, customer_name="Ann"))
    assert sale.id
    assert sale.total == 7.5

    sales = await service.get_sales()
    assert [(s.item_id, s.quantity, s.customer_name) for s in sales] == [(item.id, 3, "Ann")]
    assert (await service.get_inventory())[0].quantity == 7


@pytest.mark.asyncio
async def test_record_sale_may_oversell(service):
    """Stock is not checked here, it can go negative."""
    item = await service.save_inventory_item({"name": "Soap", "price": 1, "quantity": 2})
    await service.record_sale(Sale.for_item(item, 5))
    assert (await service.get_inventory())[0].quantity == -3


@pytest.mark.asyncio
async def test_sales_are_newest_first(service):
    item = await service.save_inventory_item({"name": "Soap", "price": 1, "quantity": 10})
    await service.record_sale(
        {
            "itemId": item.id,
            "itemName": "Soap",
            "price": 1,
            "quantity": 1,
            "date": "2024-03-01T10:00:00",
        }
    )
    await service.record_sale(
        {
            "itemId": item.id,
            "itemName": "Soap",
            "price": 1,
            "quantity": 2,
            "date": "2024-03-02T10:00:00",
        }
    )
    assert [s.quantity for s in await service.get_sales()] == [2, 1]


@pytest.mark.asyncio
async def test_deleted_item_keeps_its_sales(service):
    item = await service.save_inventory_item({"name": "Soap", "price": 2, "quantity": 10})
    await service.record_sale(Sale.for_item(item, 1))

    await service.delete_inventory_item(item.id)

    sales = await service.get_sales()
    assert len(sales) == 1
    assert sales[0].item_id is None
    assert sales[0].item_name == "Soap"
    assert sales[0].total == 2.0


@pytest.mark.asyncio
async def test_remote_record_sale_is_atomic(remote_service):
    item = await remote_service.save_inventory_item({"name": "Soap", "price": 1, "quantity": 10})

    with patch.object(AsyncSession, "get", new=AsyncMock(side_effect=SQLAlchemyError("boom"))):
        with pytest.raises(SQLAlchemyError):
            await remote_service.record_sale(Sale.for_item(item, 3))

    assert await remote_service.get_sales() == []
    assert (await remote_service.get_inventory())[0].quantity == 10


@pytest.mark.asyncio
async def test_local_record_sale_rolls_back_sale():
    storage = FlakyStorage()
    service = DataService(LocalStore(storage))
    item = await service.save_inventory_item({"name": "Soap", "price": 1, "quantity": 10})

    storage.failing_writes.add(STORAGE_KEYS["INVENTORY"])
    with pytest.raises(PartialWriteError) as exc_info:
        await service.record_sale(Sale.for_item(item, 3))

    error = exc_info.value
    assert error.operation == "record_sale"
    assert error.compensated is True
    assert isinstance(error.cause, OSError)
    assert await service.get_sales() == []
    assert (await service.get_inventory())[0].quantity == 10


@pytest.mark.asyncio
async def test_local_record_sale_restores_previous_sales():
    storage = FlakyStorage()
    service = DataService(LocalStore(storage))
    item = await service.save_inventory_item({"name": "Soap", "price": 1, "quantity": 10})
    first = await service.record_sale(Sale.for_item(item, 1))

    storage.failing_writes.add(STORAGE_KEYS["INVENTORY"])
    with pytest.raises(PartialWriteError):
        await service.record_sale(Sale.for_item(item, 3))

    assert [s.id for s in await service.get_sales()] == [first.id]


@pytest.mark.asyncio
async def test_local_record_sale_reports_failed_rollback():
    storage = FlakyStorage()
    service = DataService(LocalStore(storage))
    item = await service.save_inventory_item({"name": "Soap", "price": 1, "quantity": 10})

    storage.failing_writes.add(STORAGE_KEYS["INVENTORY"])
    storage.failing_removes.add(STORAGE_KEYS["SALES"])
    with pytest.raises(PartialWriteError) as exc_info:
        await service.record_sale(Sale.for_item(item, 3))

    assert exc_info.value.compensated is False
    assert exc_info.value.completed_steps == ["sale inserted"]
    # The sale stays written, the stock is unchanged
    assert len(json.loads(storage.get_item(STORAGE_KEYS["SALES"]))) == 1
    assert (await service.get_inventory())[0].quantity == 10
