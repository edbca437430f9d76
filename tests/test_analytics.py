import datetime
import io

import pandas as pd
import pytest

from salestracker.core.exceptions import RecordNotFoundError
from salestracker.records import AttendanceRecord, Employee, Store, StoreDailySale
from salestracker.services.analytics_service import (
    AnalyticsService,
    break_even_daily_sales,
    daily_sales_series,
    days_in_range,
    employee_pay,
    format_money,
    margin_from_markup,
    monthly_employee_salaries,
    store_break_even_summary,
    store_profit_summary,
    store_revenue,
    total_summary,
    weekly_total,
)


def _store(**kwargs):
    values = dict(
        name="Main", monthly_rent=3000, monthly_utility_bills=600, markup_percentage=50, id="s1"
    )
    values.update(kwargs)
    return Store(**values)


def test_margin_from_markup():
    assert margin_from_markup(50) == pytest.approx(1 / 3)
    assert margin_from_markup(100) == pytest.approx(0.5)
    assert margin_from_markup(0) == 0.0


def test_break_even_counts_main_employees_only():
    store = _store()
    employees = [
        Employee(name="Ann", salary_rate=500, store_id="s1", id="e1"),
        Employee(name="Bob", salary_rate=300, store_id="s1", employee_type="reliever", id="e2"),
        Employee(name="Cid", salary_rate=700, store_id="s2", id="e3"),
    ]
    # (3600 / 30 + 500) / (0.5 / 1.5)
    assert break_even_daily_sales(store, employees) == pytest.approx(1860.0)


def test_break_even_without_markup():
    store = _store(markup_percentage=0)
    assert break_even_daily_sales(store, []) == 0.0

    summary = store_break_even_summary(store, [], [], "2024-03-03", "2024-03-09")
    assert summary.break_even == 0.0
    assert summary.margin_undefined is True
    assert summary.is_above is True


def test_break_even_with_markup_but_no_costs():
    """A store with a margin and nothing to cover has a real target of 0."""
    store = Store(name="Free rent", markup_percentage=50, id="s1")
    reliever = Employee(name="Bob", salary_rate=300, store_id="s1", employee_type="reliever")

    summary = store_break_even_summary(store, [reliever], [], "2024-03-03", "2024-03-09")
    assert summary.break_even == 0.0
    assert summary.margin_undefined is False
    assert summary.is_above is True


def test_break_even_summary_uses_calendar_days():
    store = _store()
    employees = [Employee(name="Ann", salary_rate=500, store_id="s1", id="e1")]
    sales = [
        StoreDailySale("s1", "2024-03-03", 7000),
        StoreDailySale("s1", "2024-03-04", 7000),
    ]
    # 14000 over 7 days, not over the 2 days with sales
    summary = store_break_even_summary(store, employees, sales, "2024-03-03", "2024-03-09")
    assert summary.avg_daily == pytest.approx(2000.0)
    assert summary.is_above is True
    assert summary.margin_undefined is False

    summary = store_break_even_summary(store, employees, sales[:1], "2024-03-03", "2024-03-09")
    assert summary.avg_daily == pytest.approx(1000.0)
    assert summary.is_above is False


def test_revenue_totals():
    sales = [
        StoreDailySale("s1", "2024-03-03", 1000),
        StoreDailySale("s1", "2024-03-04", 2000),
        StoreDailySale("s1", "2024-03-05", 1500),
        StoreDailySale("s2", "2024-03-05", 900),
    ]
    assert weekly_total(sales, "s1") == 4500.0
    assert store_revenue("s1", sales, "2024-03-04", "2024-03-05") == 3500.0
    assert store_revenue("s3", sales) == 0.0
    assert days_in_range("2024-03-03", "2024-03-09") == 7
    assert days_in_range("2024-03-09", "2024-03-03") == 1


def test_employee_pay_and_monthly_salaries():
    ann = Employee(name="Ann", salary_rate=500, store_id="s1", id="e1")
    bob = Employee(name="Bob", salary_rate=300, store_id="s1", id="e2")
    attendance = [
        AttendanceRecord("e1", "2024-03-03"),
        AttendanceRecord("e1", "2024-03-04"),
        AttendanceRecord("e1", "2024-03-11"),
        AttendanceRecord("e2", "2024-03-04"),
    ]
    assert employee_pay(ann, attendance, "2024-03-03", "2024-03-09") == 1000.0
    assert employee_pay(ann, attendance, "2024-03-03", "2024-03-09", deduction=150) == 850.0
    assert monthly_employee_salaries(["e1", "e2"], [ann, bob], attendance) == 1800.0
    assert monthly_employee_salaries(["e2"], [ann, bob], attendance) == 300.0


def test_store_profit_summary():
    store = _store(monthly_utility_bills=0)
    employees = [Employee(name="Ann", salary_rate=100, store_id="s1", id="e1")]
    attendance = [AttendanceRecord("e1", "2024-03-04"), AttendanceRecord("e1", "2024-03-05")]
    sales = [
        StoreDailySale("s1", "2024-03-03", 1000),
        StoreDailySale("s1", "2024-03-04", 2000),
        StoreDailySale("s1", "2024-03-05", 1500),
    ]

    summary = store_profit_summary(store, sales, employees, attendance, "2024-03-03", "2024-03-09")
    assert summary.revenue == 4500.0
    assert summary.gross_profit == pytest.approx(1500.0)
    assert summary.fixed_expenses == pytest.approx(700.0)
    assert summary.labor_expenses == 200.0
    assert summary.expenses == pytest.approx(900.0)
    assert summary.profit == pytest.approx(3600.0)
    assert summary.net_profit == pytest.approx(600.0)

    totals = total_summary([summary, summary])
    assert totals.revenue == 9000.0
    assert totals.net_profit == pytest.approx(1200.0)
    assert totals.margin_pct == pytest.approx(100 / 3)
    assert total_summary([]).margin_pct == 0.0


def test_daily_sales_series_fills_missing_days():
    sales = [StoreDailySale("s1", "2024-03-04", 200), StoreDailySale("s2", "2024-03-05", 50)]
    series = daily_sales_series(sales, "2024-03-03", "2024-03-05", ["s1", "s2"])
    assert series == [
        {"date": "2024-03-03", "s1": 0.0, "s2": 0.0},
        {"date": "2024-03-04", "s1": 200.0, "s2": 0.0},
        {"date": "2024-03-05", "s1": 0.0, "s2": 50.0},
    ]


def test_format_money():
    assert format_money(1860) == "1860.00"
    assert format_money(1 / 3) == "0.33"


async def _seed(service):
    ann = await service.save_employee({"name": "Ann", "salaryRate": 100})
    store = await service.save_store(
        {"name": "Main", "monthlyRent": 3000, "markupPercentage": 50}, [ann.id]
    )
    other = await service.save_store({"name": "Other", "markupPercentage": 0})
    for day, amount in (("2024-03-03", 1000), ("2024-03-04", 2000), ("2024-03-05", 1500)):
        await service.save_store_daily_sale(store.id, day, amount)
    await service.save_store_daily_sale(other.id, "2024-03-05", 300)
    await service.toggle_attendance(ann.id, "2024-03-04")
    await service.toggle_attendance(ann.id, "2024-03-05")
    return store, other


@pytest.mark.asyncio
async def test_build_report(service):
    store, other = await _seed(service)
    analytics = AnalyticsService(service)

    report = await analytics.build_report("2024-03-03", "2024-03-09")
    assert report.start_date == datetime.date(2024, 3, 3)
    assert [s.id for s in report.stores] == [store.id, other.id]
    assert len(report.series) == 7
    assert report.series[2] == {"date": "2024-03-05", store.id: 1500.0, other.id: 300.0}

    main_profit = report.profit[0]
    assert main_profit.revenue == 4500.0
    assert main_profit.labor_expenses == 200.0
    assert main_profit.net_profit == pytest.approx(600.0)
    assert report.totals.revenue == 4800.0

    main_break_even, other_break_even = report.break_even
    assert main_break_even.break_even == pytest.approx((100 + 100) * 3)
    assert other_break_even.margin_undefined is True

    report = await analytics.build_report("2024-03-03", "2024-03-09", [other.id])
    assert [s.id for s in report.stores] == [other.id]
    assert report.totals.revenue == 300.0


@pytest.mark.asyncio
async def test_build_report_rejects_reversed_range(local_service):
    with pytest.raises(ValueError):
        await AnalyticsService(local_service).build_report("2024-03-09", "2024-03-03")


@pytest.mark.asyncio
async def test_export_report(local_service):
    store, other = await _seed(local_service)

    data = await AnalyticsService(local_service).export_report("2024-03-03", "2024-03-09")
    sheets = pd.read_excel(io.BytesIO(data), sheet_name=None)

    assert list(sheets) == ["Daily sales", "Profit", "Break-even"]
    daily = sheets["Daily sales"]
    assert list(daily.columns) == ["Date", "Main", "Other"]
    assert len(daily) == 7
    assert daily["Main"].sum() == 4500.0

    profit = sheets["Profit"]
    assert list(profit["Store"]) == ["Main", "Other"]
    assert profit.loc[0, "Revenue"] == 4500.0
    assert profit.loc[0, "Margin %"] == pytest.approx(33.33)

    break_even = sheets["Break-even"]
    assert break_even.loc[0, "Break-even daily sales"] == pytest.approx(600.0)
    assert bool(break_even.loc[1, "No margin set"]) is True


@pytest.mark.asyncio
async def test_export_empty_report(local_service):
    data = await AnalyticsService(local_service).export_report("2024-03-03", "2024-03-04")
    sheets = pd.read_excel(io.BytesIO(data), sheet_name=None)
    assert list(sheets["Daily sales"].columns) == ["Date"]
    assert sheets["Profit"].empty


@pytest.mark.asyncio
async def test_snapshot_monthly_expenses(service):
    ann = await service.save_employee({"name": "Ann", "salaryRate": 100})
    bob = await service.save_employee({"name": "Bob", "salaryRate": 80})
    cid = await service.save_employee({"name": "Cid", "salaryRate": 1000})
    store = await service.save_store(
        {
            "name": "Main",
            "monthlyRent": 3000,
            "monthlyUtilityBills": 600,
            "monthlyOtherExpenses": 400,
        },
        [ann.id, bob.id],
    )
    for employee_id, day in (
        (ann.id, "2024-03-01"),
        (ann.id, "2024-03-31"),
        (ann.id, "2024-04-01"),
        (bob.id, "2024-03-15"),
        (cid.id, "2024-03-15"),
    ):
        await service.toggle_attendance(employee_id, day)

    snapshot = await AnalyticsService(service).snapshot_monthly_expenses(store.id, "2024-03")
    assert snapshot.monthly_employee_salaries == 280.0
    assert snapshot.total == 4280.0

    saved = await service.get_store_monthly_expenses(store.id, "2024-03")
    assert saved == snapshot

    april = await AnalyticsService(service).snapshot_monthly_expenses(
        store.id, datetime.date(2024, 4, 20)
    )
    assert april.year_month == "2024-04"
    assert april.monthly_employee_salaries == 100.0


@pytest.mark.asyncio
async def test_snapshot_monthly_expenses_unknown_store(local_service):
    with pytest.raises(RecordNotFoundError):
        await AnalyticsService(local_service).snapshot_monthly_expenses("missing", "2024-03")
