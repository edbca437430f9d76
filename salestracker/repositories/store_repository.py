import logging
from typing import List, Optional, Sequence

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from salestracker.core.exceptions import RecordNotFoundError
from salestracker.models.employee import EmployeeModel
from salestracker.models.store import StoreModel
from salestracker.models.store_sales import StoreDailySaleModel, StoreMonthlyExpensesModel
from salestracker.records import Store
from salestracker.repositories.base import next_display_order, rewrite_display_order

logger = logging.getLogger(__name__)


def to_store(row: StoreModel) -> Store:
    return Store(
        id=row.id,
        name=row.name,
        color=row.color,
        display_order=row.display_order,
        monthly_rent=row.monthly_rent,
        monthly_utility_bills=row.monthly_utility_bills,
        monthly_other_expenses=row.monthly_other_expenses,
        markup_percentage=row.markup_percentage,
    )


class StoreRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self) -> List[Store]:
        result = await self.session.execute(
            select(StoreModel).order_by(StoreModel.display_order, StoreModel.name)
        )
        return [to_store(row) for row in result.scalars().all()]

    async def save(
        self, store: Store, linked_employee_ids: Optional[Sequence[str]] = None
    ) -> Store:
        """
        Inserts or updates the store.

        Args:
            store: store to write; inserted when it has no id
            linked_employee_ids: when given, exactly these employees end up
                linked to the store; others previously linked are unlinked
        """
        values = dict(
            name=store.name,
            color=store.color,
            monthly_rent=store.monthly_rent,
            monthly_utility_bills=store.monthly_utility_bills,
            monthly_other_expenses=store.monthly_other_expenses,
            markup_percentage=store.markup_percentage,
        )
        if store.id:
            row = await self.session.get(StoreModel, store.id)
            if row is None:
                raise RecordNotFoundError("Store", store.id)
            for column, value in values.items():
                setattr(row, column, value)
        else:
            values["display_order"] = await next_display_order(self.session, StoreModel)
            row = StoreModel(**values)
            self.session.add(row)
        await self.session.flush()

        if linked_employee_ids is not None:
            await self._relink_employees(row.id, linked_employee_ids)

        await self.session.commit()
        await self.session.refresh(row)
        logger.info("Saved store %s (%s)", row.id, row.name)
        return to_store(row)

    async def _relink_employees(self, store_id: str, employee_ids: Sequence[str]) -> None:
        await self.session.execute(
            update(EmployeeModel)
            .where(EmployeeModel.store_id == store_id)
            .values(store_id=None)
        )
        if employee_ids:
            await self.session.execute(
                update(EmployeeModel)
                .where(EmployeeModel.id.in_(list(employee_ids)))
                .values(store_id=store_id)
            )

    async def delete(self, store_id: str) -> None:
        """
        Deletes the store and its dependent data:
        - removes its daily sales and monthly expense snapshots
        - unlinks its employees (store_id is set to NULL)
        """
        await self.session.execute(
            delete(StoreDailySaleModel).where(StoreDailySaleModel.store_id == store_id)
        )
        await self.session.execute(
            delete(StoreMonthlyExpensesModel).where(
                StoreMonthlyExpensesModel.store_id == store_id
            )
        )
        await self.session.execute(
            update(EmployeeModel)
            .where(EmployeeModel.store_id == store_id)
            .values(store_id=None)
        )
        await self.session.execute(delete(StoreModel).where(StoreModel.id == store_id))
        await self.session.commit()
        logger.info("Deleted store %s", store_id)

    async def update_order(self, ordered_ids: Sequence[str]) -> None:
        await rewrite_display_order(self.session, StoreModel, ordered_ids)
