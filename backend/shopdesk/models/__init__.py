"""Database models"""
from shopdesk.models.user import User
from shopdesk.models.order import Order, OrderNote
from shopdesk.models.order_status_history import OrderStatusHistory
from shopdesk.models.shipment import Shipment
from shopdesk.models.sequence import Sequence

__all__ = [
    # Users
    "User",
    # Orders
    "Order",
    "OrderNote",
    # Audit trail
    "OrderStatusHistory",
    # Shipping
    "Shipment",
    # Counters
    "Sequence",
]
