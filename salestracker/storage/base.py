import abc
import datetime
from typing import Dict, List, Optional, Sequence

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


class StorageBackend(abc.ABC):
    """
    Storage strategy behind DataService.

    Dates arrive already parsed to ``datetime.date`` and records already
    validated; backends only persist and read back.
    """

    name = "abstract"
    #: whether reads should go through the read cache
    cacheable = False

    @abc.abstractmethod
    async def get_inventory(self) -> List[InventoryItem]: ...

    @abc.abstractmethod
    async def save_inventory_item(self, item: InventoryItem) -> InventoryItem: ...

    @abc.abstractmethod
    async def delete_inventory_item(self, item_id: str) -> None: ...

    @abc.abstractmethod
    async def get_sales(self) -> List[Sale]: ...

    @abc.abstractmethod
    async def record_sale(self, sale: Sale) -> Sale: ...

    @abc.abstractmethod
    async def get_employees(self) -> List[Employee]: ...

    @abc.abstractmethod
    async def save_employee(self, employee: Employee) -> Employee: ...

    @abc.abstractmethod
    async def delete_employee(self, employee_id: str) -> None: ...

    @abc.abstractmethod
    async def update_employee_order(self, ordered_ids: Sequence[str]) -> None: ...

    @abc.abstractmethod
    async def get_attendance(
        self, start_date: datetime.date, end_date: datetime.date
    ) -> List[AttendanceRecord]: ...

    @abc.abstractmethod
    async def toggle_attendance(self, employee_id: str, date_: datetime.date) -> bool: ...

    @abc.abstractmethod
    async def get_weekly_payments(self, week_start: datetime.date) -> List[WeeklyPayment]: ...

    @abc.abstractmethod
    async def set_weekly_paid(self, payment: WeeklyPayment) -> None: ...

    @abc.abstractmethod
    async def get_deductions_for_week(
        self, week_start: datetime.date
    ) -> List[WeeklyDeduction]: ...

    @abc.abstractmethod
    async def sum_deductions(
        self, first_week_start: datetime.date, last_week_start: datetime.date
    ) -> Dict[str, float]:
        """Deduction totals per employee for week starts in [first, last]."""

    @abc.abstractmethod
    async def save_deduction(self, deduction: WeeklyDeduction) -> None: ...

    @abc.abstractmethod
    async def get_stores(self) -> List[Store]: ...

    @abc.abstractmethod
    async def save_store(
        self, store: Store, linked_employee_ids: Optional[Sequence[str]] = None
    ) -> Store: ...

    @abc.abstractmethod
    async def delete_store(self, store_id: str) -> None: ...

    @abc.abstractmethod
    async def update_store_order(self, ordered_ids: Sequence[str]) -> None: ...

    @abc.abstractmethod
    async def get_store_sales(
        self, start_date: datetime.date, end_date: datetime.date
    ) -> List[StoreDailySale]: ...

    @abc.abstractmethod
    async def save_store_daily_sale(self, sale: StoreDailySale) -> None: ...

    @abc.abstractmethod
    async def get_store_monthly_expenses(
        self, store_id: str, year_month: str
    ) -> Optional[StoreMonthlyExpenses]: ...

    @abc.abstractmethod
    async def save_store_monthly_expenses(self, expenses: StoreMonthlyExpenses) -> None: ...

    @abc.abstractmethod
    async def clear_all_data(self) -> None: ...

    async def close(self) -> None:
        """Releases backend resources."""
