import datetime
from sqlalchemy import Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import relationship
from salestracker.core.database import Base
from salestracker.models._ids import new_id


class InventoryModel(Base):
    __tablename__ = "inventory"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    quantity = Column(Integer, nullable=False, default=0)
    description = Column(Text, default="")
    created_at = Column(DateTime, default=datetime.datetime.now, nullable=False)

    sales = relationship("SaleModel", back_populates="item", passive_deletes=True)
