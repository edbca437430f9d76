from sqlalchemy import Column, Date, Float, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship
from salestracker.core.database import Base
from salestracker.models._ids import new_id


class StoreDailySaleModel(Base):
    __tablename__ = "store_daily_sales"

    id = Column(String(36), primary_key=True, default=new_id)
    store_id = Column(
        String(36), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False
    )
    date = Column(Date, nullable=False, index=True)
    amount = Column(Float, nullable=False, default=0.0)

    store = relationship("StoreModel", back_populates="daily_sales")

    __table_args__ = (
        UniqueConstraint("store_id", "date", name="_store_daily_sale_uc"),
    )


class StoreMonthlyExpensesModel(Base):
    __tablename__ = "store_monthly_expenses"

    id = Column(String(36), primary_key=True, default=new_id)
    store_id = Column(
        String(36), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False
    )
    year_month = Column(String(7), nullable=False)
    monthly_rent = Column(Float, default=0.0)
    monthly_utility_bills = Column(Float, default=0.0)
    monthly_employee_salaries = Column(Float, default=0.0)
    monthly_other_expenses = Column(Float, default=0.0)

    __table_args__ = (
        UniqueConstraint("store_id", "year_month", name="_store_month_expenses_uc"),
    )
