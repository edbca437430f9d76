import datetime
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from salestracker.core.config import (
    CACHE_TTL_SECONDS,
    DATABASE_PASSWORD,
    DATABASE_URL,
    LOCAL_STORAGE_PATH,
)
from salestracker.core.database import create_engine
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
from salestracker.storage import JsonFileStorage, LocalStore, RemoteStore, StorageBackend
from salestracker.utils.cache import build_cache, get_cache_key
from salestracker.utils.date_utils import (
    DateLike,
    parse_date,
    shift_days,
    validate_year_month,
)

logger = logging.getLogger(__name__)

# A deduction is keyed by its week's Sunday; that week still overlaps a range
# starting up to six days later.
DEDUCTION_WEEK_OVERLAP_DAYS = 6


def _as_record(record_type, value):
    if isinstance(value, record_type):
        return value
    if isinstance(value, Mapping):
        return record_type.from_dict(dict(value))
    raise TypeError(f"Expected {record_type.__name__} or a mapping, got {type(value).__name__}")


class DataService:
    """
    Single entry point for reading and writing business data.

    Reads against a cacheable backend go through the read cache; every write
    invalidates the keys it affects once the backend call has succeeded.
    Backend errors are never caught here.
    """

    def __init__(self, backend: StorageBackend, cache=None):
        self.backend = backend
        self.cache = cache if cache is not None else build_cache(backend.cacheable)

    async def _read(self, key: str, fetcher):
        return await self.cache.cached_read(key, fetcher)

    def _invalidate(self, *keys: str) -> None:
        for key in keys:
            self.cache.invalidate(key)

    async def close(self) -> None:
        await self.backend.close()

    # Inventory

    async def get_inventory(self) -> List[InventoryItem]:
        return await self._read("inventory", self.backend.get_inventory)

    async def save_inventory_item(
        self, item: Union[InventoryItem, Mapping[str, Any]]
    ) -> InventoryItem:
        saved = await self.backend.save_inventory_item(_as_record(InventoryItem, item))
        self._invalidate("inventory")
        return saved

    async def delete_inventory_item(self, item_id: str) -> None:
        await self.backend.delete_inventory_item(item_id)
        self._invalidate("inventory", "sales")

    # Sales

    async def get_sales(self) -> List[Sale]:
        return await self._read("sales", self.backend.get_sales)

    async def record_sale(self, sale: Union[Sale, Mapping[str, Any]]) -> Sale:
        """
        Records a sale and decrements the item's stock.

        The caller checks the quantity against the stock beforehand.

        Raises:
            PartialWriteError: the sale was written but the stock update failed
        """
        recorded = await self.backend.record_sale(_as_record(Sale, sale))
        self._invalidate("sales", "inventory")
        return recorded

    # Employees

    async def get_employees(self) -> List[Employee]:
        return await self._read("employees", self.backend.get_employees)

    async def get_store_employees(self, store_id: str) -> List[Employee]:
        return [e for e in await self.get_employees() if e.store_id == store_id]

    async def save_employee(self, employee: Union[Employee, Mapping[str, Any]]) -> Employee:
        saved = await self.backend.save_employee(_as_record(Employee, employee))
        self._invalidate("employees")
        return saved

    async def delete_employee(self, employee_id: str) -> None:
        await self.backend.delete_employee(employee_id)
        self._invalidate(
            "employees", "attendance:", "weeklyPayments:", "deductions:", "deductionsRange:"
        )

    async def update_employee_order(self, ordered_ids: Sequence[str]) -> None:
        await self.backend.update_employee_order(list(ordered_ids))
        self._invalidate("employees")

    # Attendance

    async def get_attendance_for_week(
        self, start_date: DateLike, end_date: DateLike
    ) -> List[AttendanceRecord]:
        start, end = parse_date(start_date), parse_date(end_date)
        return await self._read(
            get_cache_key("attendance", start, end),
            lambda: self.backend.get_attendance(start, end),
        )

    async def toggle_attendance(self, employee_id: str, date_: DateLike) -> bool:
        """Flips presence for the day. Returns True when the employee is now present."""
        present = await self.backend.toggle_attendance(employee_id, parse_date(date_))
        self._invalidate("attendance:")
        return present

    # Weekly payments

    async def get_weekly_payments_for_week(self, week_start: DateLike) -> List[WeeklyPayment]:
        week = parse_date(week_start)
        return await self._read(
            get_cache_key("weeklyPayments", week),
            lambda: self.backend.get_weekly_payments(week),
        )

    async def set_weekly_paid(self, employee_id: str, week_start: DateLike, paid: bool) -> None:
        await self.backend.set_weekly_paid(WeeklyPayment(employee_id, week_start, paid))
        self._invalidate("weeklyPayments:")

    # Weekly deductions

    async def get_deductions_for_week(self, week_start: DateLike) -> List[WeeklyDeduction]:
        week = parse_date(week_start)
        return await self._read(
            get_cache_key("deductions", week),
            lambda: self.backend.get_deductions_for_week(week),
        )

    async def get_deductions_for_date_range(
        self, start_date: DateLike, end_date: DateLike
    ) -> Dict[str, float]:
        """
        Deduction totals per employee for every week overlapping the range.

        Deductions are keyed by week start (a Sunday), so the lower bound is
        widened by six days: a week starting six days before ``start_date``
        still covers it, one starting seven days before does not.

        Returns:
            Dict[str, float]: employee id -> summed deduction amount
        """
        start, end = parse_date(start_date), parse_date(end_date)
        first_week_start = shift_days(start, -DEDUCTION_WEEK_OVERLAP_DAYS)
        return await self._read(
            get_cache_key("deductionsRange", start, end),
            lambda: self.backend.sum_deductions(first_week_start, end),
        )

    async def save_deduction(
        self, employee_id: str, week_start: DateLike, amount: float
    ) -> None:
        await self.backend.save_deduction(WeeklyDeduction(employee_id, week_start, amount))
        self._invalidate("deductions:", "deductionsRange:")

    # Stores

    async def get_stores(self) -> List[Store]:
        return await self._read("stores", self.backend.get_stores)

    async def save_store(
        self,
        store: Union[Store, Mapping[str, Any]],
        linked_employee_ids: Optional[Sequence[str]] = None,
    ) -> Store:
        """
        Inserts or updates a store.

        Args:
            store: store record; inserted when it has no id
            linked_employee_ids: when given, the complete list of employees
                assigned to the store afterwards
        """
        saved = await self.backend.save_store(
            _as_record(Store, store),
            list(linked_employee_ids) if linked_employee_ids is not None else None,
        )
        self._invalidate("stores", "storeSales:", "storeMonthlyExpenses:")
        if linked_employee_ids is not None:
            self._invalidate("employees")
        return saved

    async def delete_store(self, store_id: str) -> None:
        await self.backend.delete_store(store_id)
        self._invalidate("stores", "storeSales:", "storeMonthlyExpenses:", "employees")

    async def update_store_order(self, ordered_ids: Sequence[str]) -> None:
        await self.backend.update_store_order(list(ordered_ids))
        self._invalidate("stores")

    # Store daily sales

    async def get_store_sales_for_week(
        self, start_date: DateLike, end_date: DateLike
    ) -> List[StoreDailySale]:
        start, end = parse_date(start_date), parse_date(end_date)
        return await self._read(
            get_cache_key("storeSales", start, end),
            lambda: self.backend.get_store_sales(start, end),
        )

    async def save_store_daily_sale(self, store_id: str, date_: DateLike, amount: float) -> None:
        await self.backend.save_store_daily_sale(StoreDailySale(store_id, date_, amount))
        self._invalidate("storeSales:")

    # Store monthly expenses

    async def get_store_monthly_expenses(
        self, store_id: str, year_month: Union[str, datetime.date]
    ) -> Optional[StoreMonthlyExpenses]:
        month = validate_year_month(year_month)
        return await self._read(
            get_cache_key("storeMonthlyExpenses", store_id, month),
            lambda: self.backend.get_store_monthly_expenses(store_id, month),
        )

    async def save_store_monthly_expenses(
        self, expenses: Union[StoreMonthlyExpenses, Mapping[str, Any]]
    ) -> None:
        record = _as_record(StoreMonthlyExpenses, expenses)
        await self.backend.save_store_monthly_expenses(record)
        self._invalidate(get_cache_key("storeMonthlyExpenses", record.store_id, record.year_month))

    # Maintenance

    async def clear_all_data(self) -> None:
        """Deletes every record in the backend and empties the read cache."""
        try:
            await self.backend.clear_all_data()
        finally:
            self.cache.clear()


def create_backend(
    database_url: Optional[str] = DATABASE_URL,
    password: Optional[str] = DATABASE_PASSWORD,
    storage_path: Union[str, Path] = LOCAL_STORAGE_PATH,
) -> StorageBackend:
    """Remote backend when a database URL is configured, local JSON storage otherwise."""
    if database_url:
        logger.info("Using the remote database backend")
        return RemoteStore(create_engine(database_url, password))

    logger.info("No database configured, using local storage in %s", storage_path)
    return LocalStore(JsonFileStorage(storage_path))


def create_data_service(
    database_url: Optional[str] = DATABASE_URL,
    password: Optional[str] = DATABASE_PASSWORD,
    storage_path: Union[str, Path] = LOCAL_STORAGE_PATH,
    cache_ttl: float = CACHE_TTL_SECONDS,
) -> DataService:
    backend = create_backend(database_url, password, storage_path)
    return DataService(backend, cache=build_cache(backend.cacheable, cache_ttl))
