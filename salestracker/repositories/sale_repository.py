import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from salestracker.models.inventory import InventoryModel
from salestracker.models.sale import SaleModel
from salestracker.records import Sale

logger = logging.getLogger(__name__)


def to_sale(row: SaleModel) -> Sale:
    return Sale(
        id=row.id,
        item_id=row.item_id,
        item_name=row.item_name,
        quantity=row.quantity,
        price=row.price,
        total=row.total,
        customer_name=row.customer_name,
        date=row.date,
    )


class SaleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self) -> List[Sale]:
        result = await self.session.execute(
            select(SaleModel).order_by(SaleModel.date.desc())
        )
        return [to_sale(row) for row in result.scalars().all()]

    async def record_sale(self, sale: Sale) -> Sale:
        """
        Inserts the sale and decrements the sold item's stock in a single
        transaction. Nothing is written when either step fails.
        """
        row = SaleModel(
            item_id=sale.item_id,
            item_name=sale.item_name,
            quantity=sale.quantity,
            price=sale.price,
            total=sale.total,
            customer_name=sale.customer_name,
            date=sale.date,
        )
        try:
            self.session.add(row)
            if sale.item_id:
                item = await self.session.get(InventoryModel, sale.item_id)
                if item is not None:
                    item.quantity = (item.quantity or 0) - sale.quantity
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.error("Sale of %s was not recorded", sale.item_name)
            raise

        await self.session.refresh(row)
        logger.info("Recorded sale %s: %s x %s", row.id, row.item_name, row.quantity)
        return to_sale(row)
