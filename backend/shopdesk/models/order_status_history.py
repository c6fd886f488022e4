"""
Order Status History Model

Append-only audit trail: one row per accepted status change on an order,
recording who made it, from what, to what, when, and why.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from shopdesk.db.base import Base


class OrderStatusHistory(Base):
    """Status transition record for an order. Never updated after insert."""
    __tablename__ = "order_status_history"

    # Primary Key
    id = Column(Integer, primary_key=True, index=True)

    # Foreign Keys
    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    changed_by_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="NO ACTION"),
        nullable=False,
        index=True
    )

    # Transition (old_status is NULL for the initial status at creation)
    old_status = Column(String(50), nullable=True)
    new_status = Column(String(50), nullable=False)
    reason = Column(Text, nullable=True)

    changed_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    order = relationship("Order")
    changed_by = relationship("User")

    __table_args__ = (
        Index("ix_order_status_history_order_changed", "order_id", "changed_at"),
    )

    def __repr__(self):
        return f"<OrderStatusHistory {self.old_status} -> {self.new_status} for order {self.order_id}>"
