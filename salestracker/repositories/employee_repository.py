import logging
from typing import List, Sequence

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from salestracker.core.exceptions import RecordNotFoundError
from salestracker.models.attendance import AttendanceModel
from salestracker.models.employee import EmployeeModel
from salestracker.models.payroll import WeeklyDeductionModel, WeeklyPaymentModel
from salestracker.models.store import StoreModel
from salestracker.records import Employee
from salestracker.repositories.base import next_display_order, rewrite_display_order

logger = logging.getLogger(__name__)


def to_employee(row: EmployeeModel) -> Employee:
    return Employee(
        id=row.id,
        name=row.name,
        salary_rate=row.salary_rate,
        store_id=row.store_id,
        display_order=row.display_order,
        employee_type=row.employee_type,
    )


class EmployeeRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self) -> List[Employee]:
        result = await self.session.execute(
            select(EmployeeModel).order_by(
                EmployeeModel.display_order, EmployeeModel.name
            )
        )
        return [to_employee(row) for row in result.scalars().all()]

    async def save(self, employee: Employee) -> Employee:
        values = dict(
            name=employee.name,
            salary_rate=employee.salary_rate,
            store_id=employee.store_id,
            employee_type=employee.employee_type,
        )
        if employee.store_id and await self.session.get(StoreModel, employee.store_id) is None:
            raise RecordNotFoundError("Store", employee.store_id)
        if employee.id:
            row = await self.session.get(EmployeeModel, employee.id)
            if row is None:
                raise RecordNotFoundError("Employee", employee.id)
            for column, value in values.items():
                setattr(row, column, value)
        else:
            # Read-then-write: concurrent creations may get the same order
            values["display_order"] = await next_display_order(
                self.session, EmployeeModel
            )
            row = EmployeeModel(**values)
            self.session.add(row)
        await self.session.commit()
        await self.session.refresh(row)
        logger.info("Saved employee %s (%s)", row.id, row.name)
        return to_employee(row)

    async def delete(self, employee_id: str) -> None:
        """
        Deletes the employee together with their attendance, weekly payments
        and deductions.
        """
        for model in (AttendanceModel, WeeklyPaymentModel, WeeklyDeductionModel):
            await self.session.execute(
                delete(model).where(model.employee_id == employee_id)
            )
        await self.session.execute(
            delete(EmployeeModel).where(EmployeeModel.id == employee_id)
        )
        await self.session.commit()
        logger.info("Deleted employee %s", employee_id)

    async def update_order(self, ordered_ids: Sequence[str]) -> None:
        await rewrite_display_order(self.session, EmployeeModel, ordered_ids)
