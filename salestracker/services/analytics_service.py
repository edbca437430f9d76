"""
Derived business metrics for stores: break-even, margin, profit, labor cost.

The module-level functions are pure: they take record collections and
return numbers or summaries, nothing is read or written. ``AnalyticsService``
loads the collections through ``DataService`` and applies them.

Monetary values are plain floats, never rounded internally. Use
``format_money`` for display.
"""

import asyncio
import datetime
import io
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from salestracker.core.exceptions import RecordNotFoundError
from salestracker.records import (
    AttendanceRecord,
    Employee,
    Store,
    StoreDailySale,
    StoreMonthlyExpenses,
)
from salestracker.utils.date_utils import (
    DateLike,
    days_between,
    get_month_range,
    parse_date,
    to_date_str,
    validate_year_month,
)

logger = logging.getLogger(__name__)

# Monthly fixed costs are spread over a flat 30-day month
DAYS_PER_MONTH = 30


def margin_from_markup(markup_percentage: float) -> float:
    """
    Converts a markup on cost into a margin on price.

    price = cost * (1 + markup)  =>  margin = markup / (1 + markup)
    e.g. 50% markup -> 0.3333 margin. Returns 0.0 for a markup of 0 or less.
    """
    markup = (markup_percentage or 0.0) / 100
    if markup <= 0:
        return 0.0
    return markup / (1 + markup)


def daily_fixed_costs(store: Store) -> float:
    return store.monthly_fixed_costs / DAYS_PER_MONTH


def linked_employees(store_id: str, employees: Iterable[Employee]) -> List[Employee]:
    return [e for e in employees if e.store_id == store_id]


def break_even_daily_sales(store: Store, employees: Iterable[Employee]) -> float:
    """
    Daily sales the store needs, at its margin, to cover its prorated fixed
    costs plus the daily rates of its "main" employees.

    Returns 0.0 when the store has no margin (markup 0). There is no target
    then: the break-even summary counts the store as above it and sets
    ``margin_undefined``.
    """
    main_wages = sum(e.salary_rate for e in linked_employees(store.id, employees) if e.is_main)
    margin = margin_from_markup(store.markup_percentage)
    if margin <= 0:
        return 0.0
    return (daily_fixed_costs(store) + main_wages) / margin


def days_in_range(start_date: DateLike, end_date: DateLike) -> int:
    """Calendar days in the range, both ends included, never less than 1."""
    return max(len(days_between(start_date, end_date)), 1)


def store_revenue(
    store_id: str,
    sales: Iterable[StoreDailySale],
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
) -> float:
    start = parse_date(start_date) if start_date is not None else None
    end = parse_date(end_date) if end_date is not None else None
    return sum(
        s.amount
        for s in sales
        if s.store_id == store_id
        and (start is None or s.date >= start)
        and (end is None or s.date <= end)
    )


def weekly_total(sales: Iterable[StoreDailySale], store_id: str) -> float:
    return store_revenue(store_id, sales)


def days_present(
    employee_id: str,
    attendance: Iterable[AttendanceRecord],
    start_date: DateLike,
    end_date: DateLike,
) -> int:
    start, end = parse_date(start_date), parse_date(end_date)
    return len(
        {a.date for a in attendance if a.employee_id == employee_id and start <= a.date <= end}
    )


def employee_pay(
    employee: Employee,
    attendance: Iterable[AttendanceRecord],
    start_date: DateLike,
    end_date: DateLike,
    deduction: float = 0.0,
) -> float:
    """Days present in the range times the daily rate, minus ``deduction``."""
    days = days_present(employee.id, attendance, start_date, end_date)
    return days * employee.salary_rate - deduction


def labor_expenses(
    store_id: str,
    employees: Iterable[Employee],
    attendance: Sequence[AttendanceRecord],
    start_date: DateLike,
    end_date: DateLike,
) -> float:
    return sum(
        employee_pay(e, attendance, start_date, end_date)
        for e in linked_employees(store_id, employees)
    )


def monthly_employee_salaries(
    employee_ids: Iterable[str],
    employees: Iterable[Employee],
    attendance: Iterable[AttendanceRecord],
) -> float:
    """
    Total pay before deductions of the given employees over the attendance
    passed in (normally one month), the figure kept in a monthly snapshot.
    """
    wanted = set(employee_ids)
    rates = {e.id: e.salary_rate for e in employees if e.id in wanted}
    days = {(a.employee_id, a.date) for a in attendance if a.employee_id in rates}
    return sum(rates[employee_id] for employee_id, _ in days)


def format_money(value: float) -> str:
    return f"{value:.2f}"


@dataclass
class BreakEvenSummary:
    store_id: str
    store_name: str
    break_even: float
    avg_daily: float
    is_above: bool
    # True when the store has no margin, so break_even carries no target
    margin_undefined: bool


@dataclass
class ProfitSummary:
    store_id: str
    store_name: str
    store_color: str
    revenue: float
    margin: float
    gross_profit: float
    fixed_expenses: float
    labor_expenses: float
    expenses: float
    profit: float
    net_profit: float


@dataclass
class TotalSummary:
    revenue: float = 0.0
    expenses: float = 0.0
    gross_profit: float = 0.0
    profit: float = 0.0
    net_profit: float = 0.0
    margin_pct: float = 0.0


def store_break_even_summary(
    store: Store,
    employees: Iterable[Employee],
    sales: Iterable[StoreDailySale],
    start_date: DateLike,
    end_date: DateLike,
) -> BreakEvenSummary:
    """Compares the store's average daily sales in the range with its break-even."""
    break_even = break_even_daily_sales(store, employees)
    avg_daily = store_revenue(store.id, sales, start_date, end_date) / days_in_range(
        start_date, end_date
    )
    margin_undefined = margin_from_markup(store.markup_percentage) <= 0
    return BreakEvenSummary(
        store_id=store.id,
        store_name=store.name,
        break_even=break_even,
        avg_daily=avg_daily,
        is_above=True if margin_undefined else avg_daily >= break_even,
        margin_undefined=margin_undefined,
    )


def store_profit_summary(
    store: Store,
    sales: Iterable[StoreDailySale],
    employees: Iterable[Employee],
    attendance: Sequence[AttendanceRecord],
    start_date: DateLike,
    end_date: DateLike,
) -> ProfitSummary:
    """
    Profit figures of one store over the range:

    - profit = revenue - expenses
    - net profit = revenue * margin - expenses
    - expenses = prorated fixed costs + days present * daily rate of its employees
    """
    revenue = store_revenue(store.id, sales, start_date, end_date)
    margin = margin_from_markup(store.markup_percentage)
    gross_profit = revenue * margin
    fixed = daily_fixed_costs(store) * days_in_range(start_date, end_date)
    labor = labor_expenses(store.id, employees, attendance, start_date, end_date)
    expenses = fixed + labor
    return ProfitSummary(
        store_id=store.id,
        store_name=store.name,
        store_color=store.color,
        revenue=revenue,
        margin=margin,
        gross_profit=gross_profit,
        fixed_expenses=fixed,
        labor_expenses=labor,
        expenses=expenses,
        profit=revenue - expenses,
        net_profit=gross_profit - expenses,
    )


def total_summary(summaries: Iterable[ProfitSummary]) -> TotalSummary:
    total = TotalSummary()
    for s in summaries:
        total.revenue += s.revenue
        total.expenses += s.expenses
        total.gross_profit += s.gross_profit
        total.profit += s.profit
        total.net_profit += s.net_profit
    if total.revenue > 0:
        total.margin_pct = total.gross_profit / total.revenue * 100
    return total


def daily_sales_series(
    sales: Iterable[StoreDailySale],
    start_date: DateLike,
    end_date: DateLike,
    store_ids: Sequence[str],
) -> List[Dict[str, Any]]:
    """
    One point per calendar day: {"date": "YYYY-MM-DD", <store_id>: amount, ...}.
    Days without an entry count as 0.
    """
    by_day_store = {(s.date, s.store_id): s.amount for s in sales}
    return [
        {"date": day.isoformat(), **{sid: by_day_store.get((day, sid), 0.0) for sid in store_ids}}
        for day in days_between(start_date, end_date)
    ]


@dataclass
class AnalyticsReport:
    start_date: datetime.date
    end_date: datetime.date
    stores: List[Store]
    series: List[Dict[str, Any]]
    break_even: List[BreakEvenSummary]
    profit: List[ProfitSummary]
    totals: TotalSummary = field(default_factory=TotalSummary)


class AnalyticsService:
    def __init__(self, data_service):
        self.data = data_service

    async def build_report(
        self,
        start_date: DateLike,
        end_date: DateLike,
        store_ids: Optional[Sequence[str]] = None,
    ) -> AnalyticsReport:
        """
        Loads stores, daily sales, employees and attendance for the range and
        summarizes the selected stores (all stores when ``store_ids`` is empty).
        """
        start, end = parse_date(start_date), parse_date(end_date)
        if end < start:
            raise ValueError(f"Range end {end} is before its start {start}")

        stores, sales, employees, attendance = await asyncio.gather(
            self.data.get_stores(),
            self.data.get_store_sales_for_week(start, end),
            self.data.get_employees(),
            self.data.get_attendance_for_week(start, end),
        )

        selected = [s for s in stores if not store_ids or s.id in store_ids]
        profit = [
            store_profit_summary(s, sales, employees, attendance, start, end) for s in selected
        ]
        report = AnalyticsReport(
            start_date=start,
            end_date=end,
            stores=selected,
            series=daily_sales_series(sales, start, end, [s.id for s in selected]),
            break_even=[
                store_break_even_summary(s, employees, sales, start, end) for s in selected
            ],
            profit=profit,
            totals=total_summary(profit),
        )
        logger.info(
            "Analytics for %s stores, %s to %s: revenue %s",
            len(selected),
            to_date_str(start),
            to_date_str(end),
            format_money(report.totals.revenue),
        )
        return report

    async def snapshot_monthly_expenses(
        self, store_id: str, year_month: Union[str, datetime.date]
    ) -> StoreMonthlyExpenses:
        """
        Saves the store's expenses for the month: its current fixed costs plus
        the pay of its linked employees for the days they attended that month.

        Raises:
            RecordNotFoundError: the store does not exist
        """
        month = validate_year_month(year_month)
        first_day, last_day = get_month_range(f"{month}-01")

        stores, employees, attendance = await asyncio.gather(
            self.data.get_stores(),
            self.data.get_employees(),
            self.data.get_attendance_for_week(first_day, last_day),
        )
        store = next((s for s in stores if s.id == store_id), None)
        if store is None:
            raise RecordNotFoundError("Store", store_id)

        snapshot = StoreMonthlyExpenses(
            store_id=store.id,
            year_month=month,
            monthly_rent=store.monthly_rent,
            monthly_utility_bills=store.monthly_utility_bills,
            monthly_employee_salaries=monthly_employee_salaries(
                [e.id for e in linked_employees(store.id, employees)], employees, attendance
            ),
            monthly_other_expenses=store.monthly_other_expenses,
        )
        await self.data.save_store_monthly_expenses(snapshot)
        logger.info(
            "Monthly expenses of store %s for %s: %s",
            store.id,
            month,
            format_money(snapshot.total),
        )
        return snapshot

    async def export_report(
        self,
        start_date: DateLike,
        end_date: DateLike,
        store_ids: Optional[Sequence[str]] = None,
    ) -> bytes:
        """
        Exports the report as an Excel workbook with three sheets:
        daily sales per store, profit per store and break-even per store.

        Returns:
            bytes: xlsx file contents
        """
        report = await self.build_report(start_date, end_date, store_ids)
        names = {s.id: s.name for s in report.stores}

        daily_df = pd.DataFrame(report.series, columns=["date", *names])
        daily_df = daily_df.rename(columns={"date": "Date", **names})

        profit_df = pd.DataFrame(
            [asdict(p) for p in report.profit],
            columns=[
                "store_name",
                "revenue",
                "margin",
                "gross_profit",
                "fixed_expenses",
                "labor_expenses",
                "expenses",
                "profit",
                "net_profit",
            ],
        )
        if not profit_df.empty:
            profit_df["margin"] = profit_df["margin"] * 100
        profit_df = profit_df.round(2)
        profit_df.columns = [
            "Store",
            "Revenue",
            "Margin %",
            "Gross profit",
            "Fixed expenses",
            "Labor expenses",
            "Expenses",
            "Profit",
            "Net profit",
        ]

        break_even_df = pd.DataFrame(
            [asdict(b) for b in report.break_even],
            columns=["store_name", "break_even", "avg_daily", "is_above", "margin_undefined"],
        ).round(2)
        break_even_df.columns = [
            "Store",
            "Break-even daily sales",
            "Average daily sales",
            "Above break-even",
            "No margin set",
        ]

        excel_buffer = io.BytesIO()
        with pd.ExcelWriter(excel_buffer, engine="openpyxl") as writer:
            daily_df.to_excel(writer, sheet_name="Daily sales", index=False)
            profit_df.to_excel(writer, sheet_name="Profit", index=False)
            break_even_df.to_excel(writer, sheet_name="Break-even", index=False)

        return excel_buffer.getvalue()
