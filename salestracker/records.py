"""
Domain records shared by both storage backends.

Every record validates and normalizes its fields on construction, so values
read back from either backend come out in the same shape: numbers as
float/int, dates as ``datetime.date``, optional strings as ``""``.
"""

from __future__ import annotations

import datetime
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from salestracker.utils.date_utils import (
    parse_date,
    parse_datetime,
    validate_year_month,
)
from salestracker.utils.validators import (
    is_valid_color,
    to_float,
    to_int,
    validate_amount,
    validate_employee_type,
    validate_name,
    validate_percentage,
)

DEFAULT_STORE_COLOR = "#333333"


def _camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


def _to_wire(value: Any) -> Any:
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return value


class _Record:
    """camelCase dict conversion used by the JSON storage."""

    @classmethod
    def _wire_name(cls, name: str) -> str:
        return _camel(name)

    def to_dict(self) -> Dict[str, Any]:
        return {self._wire_name(k): _to_wire(v) for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        kwargs = {}
        for f in fields(cls):
            key = cls._wire_name(f.name)
            if key in data:
                kwargs[f.name] = data[key]
            elif f.name in data:
                kwargs[f.name] = data[f.name]
        return cls(**kwargs)


@dataclass
class InventoryItem(_Record):
    name: str
    price: float = 0.0
    quantity: int = 0
    description: str = ""
    id: Optional[str] = None

    def __post_init__(self):
        self.name = validate_name(self.name)
        self.price = validate_amount(self.price, "price")
        # Stock may go negative, it is never clamped
        self.quantity = to_int(self.quantity)
        self.description = self.description or ""


@dataclass
class Sale(_Record):
    item_name: str
    price: float
    quantity: int
    item_id: Optional[str] = None
    total: Optional[float] = None
    customer_name: str = ""
    date: Optional[datetime.datetime] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.item_name = validate_name(self.item_name, "item name")
        self.price = validate_amount(self.price, "price")
        self.quantity = to_int(self.quantity)
        if self.quantity <= 0:
            raise ValueError(f"Sale quantity must be positive: {self.quantity}")
        if self.total is None:
            self.total = self.price * self.quantity
        else:
            self.total = to_float(self.total)
        self.customer_name = self.customer_name or ""
        self.date = parse_datetime(self.date)

    @classmethod
    def for_item(
        cls, item: InventoryItem, quantity: int, customer_name: str = ""
    ) -> "Sale":
        """Sale of ``quantity`` units with the item's name and price copied in."""
        return cls(
            item_id=item.id,
            item_name=item.name,
            price=item.price,
            quantity=quantity,
            customer_name=customer_name,
        )


@dataclass
class Employee(_Record):
    name: str
    salary_rate: float = 0.0
    store_id: Optional[str] = None
    display_order: Optional[int] = None
    employee_type: str = "main"
    id: Optional[str] = None

    def __post_init__(self):
        self.name = validate_name(self.name)
        self.salary_rate = validate_amount(self.salary_rate, "salary rate")
        self.store_id = self.store_id or None
        if self.display_order is not None:
            self.display_order = to_int(self.display_order)
        self.employee_type = validate_employee_type(self.employee_type)

    @property
    def is_main(self) -> bool:
        return self.employee_type == "main"


@dataclass
class AttendanceRecord(_Record):
    employee_id: str
    date: datetime.date
    id: Optional[str] = None

    def __post_init__(self):
        self.date = parse_date(self.date)


def _week_start(value: Any) -> datetime.date:
    day = parse_date(value)
    if day.weekday() != 6:
        raise ValueError(f"Week start must be a Sunday: {day.isoformat()}")
    return day


@dataclass
class WeeklyPayment(_Record):
    employee_id: str
    week_start: datetime.date
    paid: bool = False

    def __post_init__(self):
        self.week_start = _week_start(self.week_start)
        self.paid = bool(self.paid)


@dataclass
class WeeklyDeduction(_Record):
    employee_id: str
    week_start: datetime.date
    amount: float = 0.0

    def __post_init__(self):
        self.week_start = _week_start(self.week_start)
        self.amount = validate_amount(self.amount, "deduction")


@dataclass
class Store(_Record):
    name: str
    color: str = DEFAULT_STORE_COLOR
    monthly_rent: float = 0.0
    monthly_utility_bills: float = 0.0
    monthly_other_expenses: float = 0.0
    markup_percentage: float = 0.0
    display_order: Optional[int] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.name = validate_name(self.name, "store name")
        if not is_valid_color(self.color):
            self.color = DEFAULT_STORE_COLOR
        self.monthly_rent = validate_amount(self.monthly_rent, "monthly rent")
        self.monthly_utility_bills = validate_amount(
            self.monthly_utility_bills, "monthly utility bills"
        )
        self.monthly_other_expenses = validate_amount(
            self.monthly_other_expenses, "monthly other expenses"
        )
        self.markup_percentage = validate_percentage(
            self.markup_percentage, "markup percentage"
        )
        if self.display_order is not None:
            self.display_order = to_int(self.display_order)

    @property
    def monthly_fixed_costs(self) -> float:
        return self.monthly_rent + self.monthly_utility_bills + self.monthly_other_expenses


@dataclass
class StoreDailySale(_Record):
    store_id: str
    date: datetime.date
    amount: float = 0.0

    def __post_init__(self):
        self.date = parse_date(self.date)
        self.amount = validate_amount(self.amount, "daily sales")


@dataclass
class StoreMonthlyExpenses(_Record):
    store_id: str
    year_month: str
    monthly_rent: float = 0.0
    monthly_utility_bills: float = 0.0
    monthly_employee_salaries: float = 0.0
    monthly_other_expenses: float = 0.0

    def __post_init__(self):
        self.year_month = validate_year_month(self.year_month)
        self.monthly_rent = validate_amount(self.monthly_rent, "monthly rent")
        self.monthly_utility_bills = validate_amount(
            self.monthly_utility_bills, "monthly utility bills"
        )
        self.monthly_employee_salaries = validate_amount(
            self.monthly_employee_salaries, "monthly employee salaries"
        )
        self.monthly_other_expenses = validate_amount(
            self.monthly_other_expenses, "monthly other expenses"
        )

    @property
    def total(self) -> float:
        return (
            self.monthly_rent
            + self.monthly_utility_bills
            + self.monthly_employee_salaries
            + self.monthly_other_expenses
        )
