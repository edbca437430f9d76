import datetime
import json
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from salestracker.core.exceptions import PartialWriteError, RecordNotFoundError
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
from salestracker.storage.base import StorageBackend
from salestracker.utils.date_utils import parse_date
from salestracker.utils.validators import to_float

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    "INVENTORY": "salestracker_inventory",
    "SALES": "salestracker_sales",
    "EMPLOYEES": "salestracker_employees",
    "EMPLOYEE_ORDER": "salestracker_employee_order",
    "ATTENDANCE": "salestracker_attendance",
    "WEEKLY_PAYMENTS": "salestracker_weekly_payments",
    "WEEKLY_DEDUCTIONS": "salestracker_weekly_deductions",
    "STORES": "salestracker_stores",
    "STORE_ORDER": "salestracker_store_order",
    "STORE_DAILY_SALES": "salestracker_store_daily_sales",
    "STORE_MONTHLY_EXPENSES": "salestracker_store_monthly_expenses",
}

Row = Dict[str, Any]


def _new_id() -> str:
    return str(uuid.uuid4())


def _in_range(value: Any, start: datetime.date, end: datetime.date) -> bool:
    try:
        day = parse_date(value)
    except ValueError:
        return False
    return start <= day <= end


class LocalStore(StorageBackend):
    """
    Fallback backend over a key-value storage (see ``key_value``). Each
    collection is one JSON array under its own key.

    The storage has no foreign keys, so every cascade the database schema
    declares is done here by filtering the dependent collections.
    """

    name = "local"
    cacheable = False

    def __init__(self, storage):
        self.storage = storage

    # -- raw collection access ------------------------------------------------

    def _load(self, key: str) -> List[Any]:
        data = self.storage.get_item(STORAGE_KEYS[key])
        return json.loads(data) if data else []

    def _dump(self, key: str, rows: List[Any]) -> None:
        self.storage.set_item(STORAGE_KEYS[key], json.dumps(rows))

    def _upsert(self, key: str, record, key_fields: Tuple[str, ...]) -> None:
        """Replaces every row sharing the record's natural key with the record."""
        row = record.to_dict()
        natural_key = tuple(row[record._wire_name(f)] for f in key_fields)

        def same_key(existing: Row) -> bool:
            return (
                tuple(existing.get(record._wire_name(f)) for f in key_fields)
                == natural_key
            )

        rows = self._load(key)
        position = next((i for i, r in enumerate(rows) if same_key(r)), len(rows))
        kept = rows[:position]
        kept.append(row)
        kept.extend(r for r in rows[position:] if not same_key(r))
        self._dump(key, kept)

    def _ordered(self, rows: List[Row], order_key: str, factory: Callable) -> List[Any]:
        records = [factory(row) for row in rows]
        order = self._load(order_key)
        if not order:
            records.sort(key=lambda r: r.name.lower())
        else:
            by_id = {r.id: r for r in records}
            ordered = [by_id.pop(record_id) for record_id in order if record_id in by_id]
            ordered.extend(by_id.values())
            records = ordered
        for index, record in enumerate(records):
            record.display_order = index
        return records

    def _insert_or_replace(
        self,
        key: str,
        row: Row,
        is_new: bool,
        entity: str,
        order_key: Optional[str] = None,
    ) -> None:
        """Appends a new row, or writes ``row`` over the stored row with the same id."""
        rows = self._load(key)
        if is_new:
            rows.append(row)
            if order_key:
                order = self._load(order_key)
                order.append(row["id"])
                self._dump(order_key, order)
        else:
            index = next((i for i, r in enumerate(rows) if r.get("id") == row["id"]), None)
            if index is None:
                raise RecordNotFoundError(entity, row["id"])
            rows[index] = row
        self._dump(key, rows)

    # -- inventory ---------------------------------------------------------------

    async def get_inventory(self) -> List[InventoryItem]:
        # Newest first, matching the database ordering
        return [InventoryItem.from_dict(row) for row in reversed(self._load("INVENTORY"))]

    async def save_inventory_item(self, item: InventoryItem) -> InventoryItem:
        row = item.to_dict()
        is_new = not item.id
        if is_new:
            row["id"] = _new_id()
        self._insert_or_replace("INVENTORY", row, is_new, "Inventory item")
        logger.info("Saved inventory item %s (%s)", row["id"], row["name"])
        return InventoryItem.from_dict(row)

    async def delete_inventory_item(self, item_id: str) -> None:
        self._dump("INVENTORY", [r for r in self._load("INVENTORY") if r.get("id") != item_id])
        sales = self._load("SALES")
        for sale in sales:
            if sale.get("itemId") == item_id:
                sale["itemId"] = None
        self._dump("SALES", sales)
        logger.info("Deleted inventory item %s", item_id)

    # -- sales -------------------------------------------------------------------

    async def get_sales(self) -> List[Sale]:
        sales = [Sale.from_dict(row) for row in self._load("SALES")]
        return sorted(sales, key=lambda s: s.date.timestamp(), reverse=True)

    async def record_sale(self, sale: Sale) -> Sale:
        """
        Appends the sale, then decrements the item's stock. If the decrement
        fails the sales collection is restored and PartialWriteError raised.
        """
        row = sale.to_dict()
        row["id"] = _new_id()

        previous = self.storage.get_item(STORAGE_KEYS["SALES"])
        sales = json.loads(previous) if previous else []
        sales.append(row)
        self._dump("SALES", sales)

        try:
            inventory = self._load("INVENTORY")
            for item in inventory:
                if item.get("id") == sale.item_id and sale.item_id:
                    item["quantity"] = int(to_float(item.get("quantity"))) - sale.quantity
                    self._dump("INVENTORY", inventory)
                    break
        except Exception as e:
            compensated = self._restore(STORAGE_KEYS["SALES"], previous)
            logger.error(
                "Sale %s recorded but stock of item %s not decremented (rolled back: %s): %s",
                row["id"],
                sale.item_id,
                compensated,
                e,
            )
            raise PartialWriteError(
                "record_sale", ["sale inserted"], compensated, e
            ) from e

        logger.info("Recorded sale %s: %s x %s", row["id"], sale.item_name, sale.quantity)
        return Sale.from_dict(row)

    def _restore(self, key: str, previous: Optional[str]) -> bool:
        try:
            if previous is None:
                self.storage.remove_item(key)
            else:
                self.storage.set_item(key, previous)
        except Exception as e:
            logger.error("Could not restore %s: %s", key, e)
            return False
        return True

    # -- employees ---------------------------------------------------------------

    async def get_employees(self) -> List[Employee]:
        return self._ordered(self._load("EMPLOYEES"), "EMPLOYEE_ORDER", Employee.from_dict)

    async def save_employee(self, employee: Employee) -> Employee:
        row = employee.to_dict()
        if employee.store_id and not any(
            s.get("id") == employee.store_id for s in self._load("STORES")
        ):
            raise RecordNotFoundError("Store", employee.store_id)
        # Position lives in the order list, not on the row
        row.pop("displayOrder", None)
        is_new = not employee.id
        if is_new:
            row["id"] = _new_id()
        self._insert_or_replace(
            "EMPLOYEES", row, is_new, "Employee", order_key="EMPLOYEE_ORDER"
        )
        logger.info("Saved employee %s (%s)", row["id"], row["name"])
        return next(e for e in await self.get_employees() if e.id == row["id"])

    async def delete_employee(self, employee_id: str) -> None:
        self._dump("EMPLOYEES", [r for r in self._load("EMPLOYEES") if r.get("id") != employee_id])
        self._dump("EMPLOYEE_ORDER", [i for i in self._load("EMPLOYEE_ORDER") if i != employee_id])
        for key in ("ATTENDANCE", "WEEKLY_PAYMENTS", "WEEKLY_DEDUCTIONS"):
            self._dump(key, [r for r in self._load(key) if r.get("employeeId") != employee_id])
        logger.info("Deleted employee %s", employee_id)

    async def update_employee_order(self, ordered_ids: Sequence[str]) -> None:
        self._dump("EMPLOYEE_ORDER", list(ordered_ids))

    # -- attendance --------------------------------------------------------------

    async def get_attendance(
        self, start_date: datetime.date, end_date: datetime.date
    ) -> List[AttendanceRecord]:
        return [
            AttendanceRecord.from_dict(row)
            for row in self._load("ATTENDANCE")
            if _in_range(row.get("date"), start_date, end_date)
        ]

    async def toggle_attendance(self, employee_id: str, date_: datetime.date) -> bool:
        day = date_.isoformat()
        rows = self._load("ATTENDANCE")
        remaining = [
            r for r in rows if not (r.get("employeeId") == employee_id and r.get("date") == day)
        ]
        present = len(remaining) == len(rows)
        if present:
            remaining.append(AttendanceRecord(employee_id, date_, id=_new_id()).to_dict())
        self._dump("ATTENDANCE", remaining)
        logger.info(
            "Employee %s marked %s on %s", employee_id, "present" if present else "absent", day
        )
        return present

    # -- weekly payments and deductions -----------------------------------------

    async def get_weekly_payments(self, week_start: datetime.date) -> List[WeeklyPayment]:
        day = week_start.isoformat()
        return [
            WeeklyPayment.from_dict(row)
            for row in self._load("WEEKLY_PAYMENTS")
            if row.get("weekStart") == day
        ]

    async def set_weekly_paid(self, payment: WeeklyPayment) -> None:
        self._upsert("WEEKLY_PAYMENTS", payment, ("employee_id", "week_start"))

    async def get_deductions_for_week(self, week_start: datetime.date) -> List[WeeklyDeduction]:
        day = week_start.isoformat()
        return [
            WeeklyDeduction.from_dict(row)
            for row in self._load("WEEKLY_DEDUCTIONS")
            if row.get("weekStart") == day
        ]

    async def sum_deductions(
        self, first_week_start: datetime.date, last_week_start: datetime.date
    ) -> Dict[str, float]:
        totals: Dict[str, float] = {}
        for row in self._load("WEEKLY_DEDUCTIONS"):
            if _in_range(row.get("weekStart"), first_week_start, last_week_start):
                employee_id = row.get("employeeId")
                totals[employee_id] = totals.get(employee_id, 0.0) + to_float(row.get("amount"))
        return totals

    async def save_deduction(self, deduction: WeeklyDeduction) -> None:
        self._upsert("WEEKLY_DEDUCTIONS", deduction, ("employee_id", "week_start"))

    # -- stores ------------------------------------------------------------------

    async def get_stores(self) -> List[Store]:
        return self._ordered(self._load("STORES"), "STORE_ORDER", Store.from_dict)

    async def save_store(
        self, store: Store, linked_employee_ids: Optional[Sequence[str]] = None
    ) -> Store:
        row = store.to_dict()
        row.pop("displayOrder", None)
        is_new = not store.id
        if is_new:
            row["id"] = _new_id()
        self._insert_or_replace("STORES", row, is_new, "Store", order_key="STORE_ORDER")

        if linked_employee_ids is not None:
            linked = set(linked_employee_ids)
            employees = self._load("EMPLOYEES")
            for employee in employees:
                if employee.get("id") in linked:
                    employee["storeId"] = row["id"]
                elif employee.get("storeId") == row["id"]:
                    employee["storeId"] = None
            self._dump("EMPLOYEES", employees)

        logger.info("Saved store %s (%s)", row["id"], row["name"])
        return next(s for s in await self.get_stores() if s.id == row["id"])

    async def delete_store(self, store_id: str) -> None:
        """
        Deletes the store, its daily sales and monthly expense snapshots, and
        unlinks its employees.
        """
        self._dump("STORES", [r for r in self._load("STORES") if r.get("id") != store_id])
        self._dump("STORE_ORDER", [i for i in self._load("STORE_ORDER") if i != store_id])
        for key in ("STORE_DAILY_SALES", "STORE_MONTHLY_EXPENSES"):
            self._dump(key, [r for r in self._load(key) if r.get("storeId") != store_id])
        employees = self._load("EMPLOYEES")
        for employee in employees:
            if employee.get("storeId") == store_id:
                employee["storeId"] = None
        self._dump("EMPLOYEES", employees)
        logger.info("Deleted store %s", store_id)

    async def update_store_order(self, ordered_ids: Sequence[str]) -> None:
        self._dump("STORE_ORDER", list(ordered_ids))

    # -- store daily sales and monthly expenses ---------------------------------

    async def get_store_sales(
        self, start_date: datetime.date, end_date: datetime.date
    ) -> List[StoreDailySale]:
        rows = [
            StoreDailySale.from_dict(row)
            for row in self._load("STORE_DAILY_SALES")
            if _in_range(row.get("date"), start_date, end_date)
        ]
        return sorted(rows, key=lambda s: s.date)

    async def save_store_daily_sale(self, sale: StoreDailySale) -> None:
        self._upsert("STORE_DAILY_SALES", sale, ("store_id", "date"))

    async def get_store_monthly_expenses(
        self, store_id: str, year_month: str
    ) -> Optional[StoreMonthlyExpenses]:
        for row in self._load("STORE_MONTHLY_EXPENSES"):
            if row.get("storeId") == store_id and row.get("yearMonth") == year_month:
                return StoreMonthlyExpenses.from_dict(row)
        return None

    async def save_store_monthly_expenses(self, expenses: StoreMonthlyExpenses) -> None:
        self._upsert("STORE_MONTHLY_EXPENSES", expenses, ("store_id", "year_month"))

    # -- maintenance -------------------------------------------------------------

    async def clear_all_data(self) -> None:
        for key in STORAGE_KEYS.values():
            self.storage.remove_item(key)
        logger.info("Local storage cleared")
