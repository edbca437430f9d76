import datetime
import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncEngine

from salestracker.core.database import create_session_factory, create_tables, get_session
from salestracker.models import (
    AttendanceModel,
    EmployeeModel,
    InventoryModel,
    SaleModel,
    StoreDailySaleModel,
    StoreModel,
    StoreMonthlyExpensesModel,
    WeeklyDeductionModel,
    WeeklyPaymentModel,
)
from salestracker.records import (
    AttendanceRecord,
    Employee,
    InventoryItem,
    Sale,
    Store,
    StoreDailySale,
    StoreMonthlyExpenses,
    WeeklyDeduction,
    WeeklyPayment,
)
from salestracker.repositories import (
    AttendanceRepository,
    EmployeeRepository,
    InventoryRepository,
    PayrollRepository,
    SaleRepository,
    StoreRepository,
    StoreSalesRepository,
)
from salestracker.storage.base import StorageBackend

logger = logging.getLogger(__name__)

# Children before parents so foreign keys never block the wipe
_CLEAR_ORDER = (
    StoreMonthlyExpensesModel,
    StoreDailySaleModel,
    WeeklyDeductionModel,
    WeeklyPaymentModel,
    AttendanceModel,
    EmployeeModel,
    StoreModel,
    SaleModel,
    InventoryModel,
)


class RemoteStore(StorageBackend):
    """Backend over the relational database, one short session per operation."""

    name = "remote"
    cacheable = True

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    async def create_tables(self) -> None:
        await create_tables(self.engine)

    async def close(self) -> None:
        await self.engine.dispose()

    async def get_inventory(self) -> List[InventoryItem]:
        async with get_session(self.session_factory) as session:
            return await InventoryRepository(session).get_all()

    async def save_inventory_item(self, item: InventoryItem) -> InventoryItem:
        async with get_session(self.session_factory) as session:
            return await InventoryRepository(session).save(item)

    async def delete_inventory_item(self, item_id: str) -> None:
        async with get_session(self.session_factory) as session:
            await InventoryRepository(session).delete(item_id)

    async def get_sales(self) -> List[Sale]:
        async with get_session(self.session_factory) as session:
            return await SaleRepository(session).get_all()

    async def record_sale(self, sale: Sale) -> Sale:
        async with get_session(self.session_factory) as session:
            return await SaleRepository(session).record_sale(sale)

    async def get_employees(self) -> List[Employee]:
        async with get_session(self.session_factory) as session:
            return await EmployeeRepository(session).get_all()

    async def save_employee(self, employee: Employee) -> Employee:
        async with get_session(self.session_factory) as session:
            return await EmployeeRepository(session).save(employee)

    async def delete_employee(self, employee_id: str) -> None:
        async with get_session(self.session_factory) as session:
            await EmployeeRepository(session).delete(employee_id)

    async def update_employee_order(self, ordered_ids: Sequence[str]) -> None:
        async with get_session(self.session_factory) as session:
            await EmployeeRepository(session).update_order(ordered_ids)

    async def get_attendance(
        self, start_date: datetime.date, end_date: datetime.date
    ) -> List[AttendanceRecord]:
        async with get_session(self.session_factory) as session:
            return await AttendanceRepository(session).get_between(start_date, end_date)

    async def toggle_attendance(self, employee_id: str, date_: datetime.date) -> bool:
        async with get_session(self.session_factory) as session:
            return await AttendanceRepository(session).toggle(employee_id, date_)

    async def get_weekly_payments(self, week_start: datetime.date) -> List[WeeklyPayment]:
        async with get_session(self.session_factory) as session:
            return await PayrollRepository(session).get_payments_for_week(week_start)

    async def set_weekly_paid(self, payment: WeeklyPayment) -> None:
        async with get_session(self.session_factory) as session:
            await PayrollRepository(session).set_paid(payment)

    async def get_deductions_for_week(self, week_start: datetime.date) -> List[WeeklyDeduction]:
        async with get_session(self.session_factory) as session:
            return await PayrollRepository(session).get_deductions_for_week(week_start)

    async def sum_deductions(
        self, first_week_start: datetime.date, last_week_start: datetime.date
    ) -> Dict[str, float]:
        async with get_session(self.session_factory) as session:
            return await PayrollRepository(session).sum_deductions_by_week_start(
                first_week_start, last_week_start
            )

    async def save_deduction(self, deduction: WeeklyDeduction) -> None:
        async with get_session(self.session_factory) as session:
            await PayrollRepository(session).save_deduction(deduction)

    async def get_stores(self) -> List[Store]:
        async with get_session(self.session_factory) as session:
            return await StoreRepository(session).get_all()

    async def save_store(
        self, store: Store, linked_employee_ids: Optional[Sequence[str]] = None
    ) -> Store:
        async with get_session(self.session_factory) as session:
            return await StoreRepository(session).save(store, linked_employee_ids)

    async def delete_store(self, store_id: str) -> None:
        async with get_session(self.session_factory) as session:
            await StoreRepository(session).delete(store_id)

    async def update_store_order(self, ordered_ids: Sequence[str]) -> None:
        async with get_session(self.session_factory) as session:
            await StoreRepository(session).update_order(ordered_ids)

    async def get_store_sales(
        self, start_date: datetime.date, end_date: datetime.date
    ) -> List[StoreDailySale]:
        async with get_session(self.session_factory) as session:
            return await StoreSalesRepository(session).get_between(start_date, end_date)

    async def save_store_daily_sale(self, sale: StoreDailySale) -> None:
        async with get_session(self.session_factory) as session:
            await StoreSalesRepository(session).save_daily_sale(sale)

    async def get_store_monthly_expenses(
        self, store_id: str, year_month: str
    ) -> Optional[StoreMonthlyExpenses]:
        async with get_session(self.session_factory) as session:
            return await StoreSalesRepository(session).get_monthly_expenses(
                store_id, year_month
            )

    async def save_store_monthly_expenses(self, expenses: StoreMonthlyExpenses) -> None:
        async with get_session(self.session_factory) as session:
            await StoreSalesRepository(session).save_monthly_expenses(expenses)

    async def clear_all_data(self) -> None:
        async with get_session(self.session_factory) as session:
            for model in _CLEAR_ORDER:
                await session.execute(delete(model))
            await session.commit()
        logger.info("All tables cleared")
