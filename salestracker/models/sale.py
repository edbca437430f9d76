import datetime
from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from salestracker.core.database import Base
from salestracker.models._ids import new_id


class SaleModel(Base):
    __tablename__ = "sales"

    id = Column(String(36), primary_key=True, default=new_id)
    item_id = Column(
        String(36), ForeignKey("inventory.id", ondelete="SET NULL"), nullable=True
    )
    item_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    customer_name = Column(String, default="")
    date = Column(DateTime, default=datetime.datetime.now, nullable=False, index=True)

    item = relationship("InventoryModel", back_populates="sales")
