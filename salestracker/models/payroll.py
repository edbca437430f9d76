from sqlalchemy import Boolean, Column, Date, Float, ForeignKey, String, UniqueConstraint
from salestracker.core.database import Base
from salestracker.models._ids import new_id


class WeeklyPaymentModel(Base):
    __tablename__ = "weekly_payments"

    id = Column(String(36), primary_key=True, default=new_id)
    employee_id = Column(
        String(36), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False
    )
    week_start = Column(Date, nullable=False)
    paid = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "week_start", name="_payment_employee_week_uc"),
    )


class WeeklyDeductionModel(Base):
    __tablename__ = "weekly_deductions"

    id = Column(String(36), primary_key=True, default=new_id)
    employee_id = Column(
        String(36), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False
    )
    week_start = Column(Date, nullable=False, index=True)
    amount = Column(Float, nullable=False, default=0.0)

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "week_start", name="_deduction_employee_week_uc"
        ),
    )
