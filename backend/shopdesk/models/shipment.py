"""
Shipment Model

Physical parcel for an order (1:1). Its status vocabulary tracks the parcel,
not the commercial order state.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime

from shopdesk.db.base import Base
from shopdesk.core.status_config import ShipmentStatus


class Shipment(Base):
    """Shipment - carrier, tracking and delivery dates for one order"""
    __tablename__ = "shipments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )

    tracking_number = Column(String(255), nullable=True, index=True)
    carrier = Column(String(100), nullable=True)  # USPS, FedEx, UPS, DHL
    status = Column(String(50), nullable=False, default=ShipmentStatus.PENDING.value)

    estimated_delivery = Column(DateTime, nullable=True)
    actual_delivery = Column(DateTime, nullable=True)

    # {"name", "address", "city", "country", "zip_code", "contact"}
    shipping_address = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    order = relationship("Order", back_populates="shipment")

    def __repr__(self):
        return f"<Shipment {self.tracking_number or '-'} for order {self.order_id} - {self.status}>"
