import datetime
import logging
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from salestracker.models.payroll import WeeklyDeductionModel, WeeklyPaymentModel
from salestracker.records import WeeklyDeduction, WeeklyPayment
from salestracker.repositories.base import upsert_by_natural_key

logger = logging.getLogger(__name__)


class PayrollRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_payments_for_week(self, week_start: datetime.date) -> List[WeeklyPayment]:
        result = await self.session.execute(
            select(WeeklyPaymentModel).where(WeeklyPaymentModel.week_start == week_start)
        )
        return [
            WeeklyPayment(
                employee_id=row.employee_id, week_start=row.week_start, paid=row.paid
            )
            for row in result.scalars().all()
        ]

    async def set_paid(self, payment: WeeklyPayment) -> None:
        await upsert_by_natural_key(
            self.session,
            WeeklyPaymentModel,
            {"employee_id": payment.employee_id, "week_start": payment.week_start},
            {"paid": payment.paid},
        )
        logger.info(
            "Week %s for employee %s marked %s",
            payment.week_start,
            payment.employee_id,
            "paid" if payment.paid else "unpaid",
        )

    async def get_deductions_for_week(
        self, week_start: datetime.date
    ) -> List[WeeklyDeduction]:
        result = await self.session.execute(
            select(WeeklyDeductionModel).where(
                WeeklyDeductionModel.week_start == week_start
            )
        )
        return [
            WeeklyDeduction(
                employee_id=row.employee_id,
                week_start=row.week_start,
                amount=row.amount,
            )
            for row in result.scalars().all()
        ]

    async def sum_deductions_by_week_start(
        self, first_week_start: datetime.date, last_week_start: datetime.date
    ) -> Dict[str, float]:
        """Deduction totals per employee for week starts in [first, last]."""
        result = await self.session.execute(
            select(WeeklyDeductionModel).where(
                WeeklyDeductionModel.week_start >= first_week_start,
                WeeklyDeductionModel.week_start <= last_week_start,
            )
        )
        totals: Dict[str, float] = {}
        for row in result.scalars().all():
            totals[row.employee_id] = totals.get(row.employee_id, 0.0) + (row.amount or 0.0)
        return totals

    async def save_deduction(self, deduction: WeeklyDeduction) -> None:
        await upsert_by_natural_key(
            self.session,
            WeeklyDeductionModel,
            {"employee_id": deduction.employee_id, "week_start": deduction.week_start},
            {"amount": deduction.amount},
        )
        logger.info(
            "Deduction for employee %s, week %s: %s",
            deduction.employee_id,
            deduction.week_start,
            deduction.amount,
        )
