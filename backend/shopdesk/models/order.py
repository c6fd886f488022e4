"""
Order Model

A customer purchase with a lifecycle status, stored financial totals and
snapshots of the cart and the customer's billing details taken at checkout.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text, Boolean, JSON, CheckConstraint
from sqlalchemy.orm import relationship

from shopdesk.db.base import Base
from shopdesk.core.status_config import OrderStatus, ORDER_STATUS_VALUES


class Order(Base):
    """Order - created at checkout, mutated by staff, never hard-deleted"""
    __tablename__ = "orders"

    # Primary Key
    id = Column(Integer, primary_key=True, index=True)

    # Customer placing the order
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Order Identification
    invoice = Column(Integer, unique=True, nullable=False, index=True)  # 10000, 10001, ...
    order_code = Column(String(32), unique=True, nullable=False, index=True)  # customer-facing, e.g. K3F9QZ

    # Snapshots taken at checkout; later product/customer edits do not touch them
    # cart: [{"product_id", "title", "price", "quantity"}]
    cart = Column(JSON, nullable=False, default=list)
    # user_info: {"name", "email", "contact", "address", "city", "country", "zip_code"}
    user_info = Column(JSON, nullable=False, default=dict)

    # Financials (authoritative as stored)
    sub_total = Column(Numeric(10, 2), nullable=False)
    shipping_cost = Column(Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)

    # Payment & Shipping options
    payment_method = Column(String(50), nullable=False, index=True)  # Stripe, RazorPay, Cash, ...
    shipping_option = Column(String(100), nullable=True)
    shipping_method = Column(String(100), nullable=True)
    shipping_protection = Column(Boolean, nullable=True)

    # Lifecycle
    status = Column(String(50), nullable=False, default=OrderStatus.PAYMENT_PROCESSING.value, index=True)
    shipment_tracking = Column(String(255), nullable=True)
    origin = Column(String(100), nullable=False, default="Website", index=True)  # referral channel
    is_trashed = Column(Boolean, nullable=False, default=False, index=True)

    # Optimistic concurrency token, bumped on every UPDATE
    version = Column(Integer, nullable=False, default=1)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow, index=True)

    # Relationships
    user = relationship("User", back_populates="orders", foreign_keys=[user_id])
    staff_notes = relationship(
        "OrderNote",
        back_populates="order",
        order_by="OrderNote.id",
        cascade="all, delete-orphan",
    )
    shipment = relationship("Shipment", back_populates="order", uselist=False)

    __table_args__ = (
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in ORDER_STATUS_VALUES) + ")",
            name="chk_orders_status",
        ),
    )
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Order {self.invoice} ({self.order_code}) - {self.status}>"

    @property
    def customer_name(self) -> str:
        """Snapshot name, falling back to the linked account"""
        name = (self.user_info or {}).get("name")
        if name:
            return name
        return self.user.full_name if self.user else ""

    @property
    def customer_email(self) -> str:
        email = (self.user_info or {}).get("email")
        if email:
            return email
        return self.user.email if self.user else ""


class OrderNote(Base):
    """Staff note on an order. Append-only."""
    __tablename__ = "order_notes"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    added_by_id = Column(Integer, ForeignKey("users.id", ondelete="NO ACTION"), nullable=False, index=True)

    note = Column(Text, nullable=False)
    added_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    order = relationship("Order", back_populates="staff_notes")
    added_by = relationship("User")

    def __repr__(self):
        return f"<OrderNote {self.id} on order {self.order_id}>"
