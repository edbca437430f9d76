import logging
from typing import List

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from salestracker.core.exceptions import RecordNotFoundError
from salestracker.models.inventory import InventoryModel
from salestracker.models.sale import SaleModel
from salestracker.records import InventoryItem

logger = logging.getLogger(__name__)


def to_inventory_item(row: InventoryModel) -> InventoryItem:
    return InventoryItem(
        id=row.id,
        name=row.name,
        price=row.price,
        quantity=row.quantity,
        description=row.description,
    )


class InventoryRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self) -> List[InventoryItem]:
        result = await self.session.execute(
            select(InventoryModel).order_by(InventoryModel.created_at.desc())
        )
        return [to_inventory_item(row) for row in result.scalars().all()]

    async def save(self, item: InventoryItem) -> InventoryItem:
        values = dict(
            name=item.name,
            price=item.price,
            quantity=item.quantity,
            description=item.description,
        )
        if item.id:
            row = await self.session.get(InventoryModel, item.id)
            if row is None:
                raise RecordNotFoundError("Inventory item", item.id)
            for column, value in values.items():
                setattr(row, column, value)
        else:
            row = InventoryModel(**values)
            self.session.add(row)
        await self.session.commit()
        await self.session.refresh(row)
        logger.info("Saved inventory item %s (%s)", row.id, row.name)
        return to_inventory_item(row)

    async def delete(self, item_id: str) -> None:
        # Sales keep their denormalized name and price
        await self.session.execute(
            update(SaleModel).where(SaleModel.item_id == item_id).values(item_id=None)
        )
        await self.session.execute(
            delete(InventoryModel).where(InventoryModel.id == item_id)
        )
        await self.session.commit()
        logger.info("Deleted inventory item %s", item_id)
