import datetime
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from salestracker.models.store_sales import StoreDailySaleModel, StoreMonthlyExpensesModel
from salestracker.records import StoreDailySale, StoreMonthlyExpenses
from salestracker.repositories.base import upsert_by_natural_key

logger = logging.getLogger(__name__)


class StoreSalesRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_between(
        self, start_date: datetime.date, end_date: datetime.date
    ) -> List[StoreDailySale]:
        result = await self.session.execute(
            select(StoreDailySaleModel)
            .where(
                StoreDailySaleModel.date >= start_date,
                StoreDailySaleModel.date <= end_date,
            )
            .order_by(StoreDailySaleModel.date)
        )
        return [
            StoreDailySale(store_id=row.store_id, date=row.date, amount=row.amount)
            for row in result.scalars().all()
        ]

    async def save_daily_sale(self, sale: StoreDailySale) -> None:
        await upsert_by_natural_key(
            self.session,
            StoreDailySaleModel,
            {"store_id": sale.store_id, "date": sale.date},
            {"amount": sale.amount},
        )
        logger.info("Daily sales of store %s on %s: %s", sale.store_id, sale.date, sale.amount)

    async def get_monthly_expenses(
        self, store_id: str, year_month: str
    ) -> Optional[StoreMonthlyExpenses]:
        result = await self.session.execute(
            select(StoreMonthlyExpensesModel).where(
                StoreMonthlyExpensesModel.store_id == store_id,
                StoreMonthlyExpensesModel.year_month == year_month,
            )
        )
        row = result.scalars().first()
        if row is None:
            return None
        return StoreMonthlyExpenses(
            store_id=row.store_id,
            year_month=row.year_month,
            monthly_rent=row.monthly_rent,
            monthly_utility_bills=row.monthly_utility_bills,
            monthly_employee_salaries=row.monthly_employee_salaries,
            monthly_other_expenses=row.monthly_other_expenses,
        )

    async def save_monthly_expenses(self, expenses: StoreMonthlyExpenses) -> None:
        await upsert_by_natural_key(
            self.session,
            StoreMonthlyExpensesModel,
            {"store_id": expenses.store_id, "year_month": expenses.year_month},
            {
                "monthly_rent": expenses.monthly_rent,
                "monthly_utility_bills": expenses.monthly_utility_bills,
                "monthly_employee_salaries": expenses.monthly_employee_salaries,
                "monthly_other_expenses": expenses.monthly_other_expenses,
            },
        )
        logger.info("Saved %s expenses for store %s", expenses.year_month, expenses.store_id)
