from sqlalchemy import Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from salestracker.core.database import Base
from salestracker.models._ids import new_id


class EmployeeModel(Base):
    __tablename__ = "employees"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    salary_rate = Column(Float, default=0.0)
    store_id = Column(
        String(36), ForeignKey("stores.id", ondelete="SET NULL"), nullable=True
    )
    display_order = Column(Integer, nullable=False, default=0)
    employee_type = Column(String, nullable=False, default="main")

    store = relationship("StoreModel", back_populates="employees")
