from sqlalchemy import Column, Float, Integer, String
from sqlalchemy.orm import relationship
from salestracker.core.database import Base
from salestracker.models._ids import new_id


class StoreModel(Base):
    __tablename__ = "stores"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    color = Column(String, default="#333333")
    display_order = Column(Integer, nullable=False, default=0)
    monthly_rent = Column(Float, default=0.0)
    monthly_utility_bills = Column(Float, default=0.0)
    monthly_other_expenses = Column(Float, default=0.0)
    markup_percentage = Column(Float, default=0.0)

    employees = relationship(
        "EmployeeModel", back_populates="store", passive_deletes=True
    )
    daily_sales = relationship(
        "StoreDailySaleModel", back_populates="store", passive_deletes=True
    )
