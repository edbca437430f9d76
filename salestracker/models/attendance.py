from sqlalchemy import Column, Date, ForeignKey, String, UniqueConstraint
from salestracker.core.database import Base
from salestracker.models._ids import new_id


class AttendanceModel(Base):
    __tablename__ = "attendance"

    id = Column(String(36), primary_key=True, default=new_id)
    employee_id = Column(
        String(36), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False
    )
    date = Column(Date, nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="_attendance_employee_date_uc"),
    )
