import datetime
import logging
from typing import List

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from salestracker.models.attendance import AttendanceModel
from salestracker.records import AttendanceRecord

logger = logging.getLogger(__name__)


class AttendanceRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_between(
        self, start_date: datetime.date, end_date: datetime.date
    ) -> List[AttendanceRecord]:
        result = await self.session.execute(
            select(AttendanceModel)
            .where(
                AttendanceModel.date >= start_date,
                AttendanceModel.date <= end_date,
            )
            .order_by(AttendanceModel.date)
        )
        return [
            AttendanceRecord(id=row.id, employee_id=row.employee_id, date=row.date)
            for row in result.scalars().all()
        ]

    async def toggle(self, employee_id: str, date_: datetime.date) -> bool:
        """
        Removes the attendance row if present, inserts it otherwise.

        Returns:
            bool: True when the employee is now marked present
        """
        result = await self.session.execute(
            select(AttendanceModel.id).where(
                AttendanceModel.employee_id == employee_id,
                AttendanceModel.date == date_,
            )
        )
        existing = result.scalars().all()
        if existing:
            await self.session.execute(
                delete(AttendanceModel).where(AttendanceModel.id.in_(existing))
            )
            await self.session.commit()
            logger.info("Employee %s marked absent on %s", employee_id, date_)
            return False

        self.session.add(AttendanceModel(employee_id=employee_id, date=date_))
        await self.session.commit()
        logger.info("Employee %s marked present on %s", employee_id, date_)
        return True
