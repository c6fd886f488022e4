"""Status Configuration and Transition Rules

This module defines the order status vocabulary, the declared transition
graph, and the shipment (parcel) status vocabulary. The transition graph is
advisory by default: see shopdesk.services.order_status.validate_transition.
"""
from enum import Enum
from typing import Dict, List, Optional, Set


# =============================================================================
# Order Status
# =============================================================================

class OrderStatus(str, Enum):
    """Valid status values for Orders"""
    PAYMENT_PROCESSING = "Payment-Processing"
    PENDING = "Pending"
    PROCESSING = "Processing"
    AWAITING_STOCK = "Awaiting Stock"
    ON_HOLD = "On-Hold"
    PICKING_PACKING = "Picking/Packing"
    AWAITING_DELIVERY = "Awaiting Delivery"
    OUT_FOR_DELIVERY = "Out-for-Delivery"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"
    CANCEL = "Cancel"  # Legacy value, superseded by Cancelled
    CANCELLED = "Cancelled"
    REFUNDED = "Refunded"


ORDER_STATUS_VALUES: List[str] = [s.value for s in OrderStatus]


# Allowed transitions: current_status -> set of allowed next statuses
ORDER_STATUS_TRANSITIONS: Dict[str, Set[str]] = {
    OrderStatus.PAYMENT_PROCESSING.value: {
        OrderStatus.PENDING.value,
        OrderStatus.PROCESSING.value,
        OrderStatus.CANCELLED.value,
        OrderStatus.ON_HOLD.value,
    },
    OrderStatus.PENDING.value: {
        OrderStatus.PROCESSING.value,
        OrderStatus.AWAITING_STOCK.value,
        OrderStatus.ON_HOLD.value,
        OrderStatus.CANCELLED.value,
    },
    OrderStatus.PROCESSING.value: {
        OrderStatus.AWAITING_STOCK.value,
        OrderStatus.ON_HOLD.value,
        OrderStatus.PICKING_PACKING.value,
        OrderStatus.CANCELLED.value,
    },
    OrderStatus.AWAITING_STOCK.value: {
        OrderStatus.PROCESSING.value,
        OrderStatus.PICKING_PACKING.value,
        OrderStatus.ON_HOLD.value,
        OrderStatus.CANCELLED.value,
    },
    OrderStatus.ON_HOLD.value: {
        OrderStatus.PROCESSING.value,
        OrderStatus.AWAITING_STOCK.value,
        OrderStatus.PICKING_PACKING.value,
        OrderStatus.CANCELLED.value,
    },
    OrderStatus.PICKING_PACKING.value: {
        OrderStatus.AWAITING_DELIVERY.value,
        OrderStatus.ON_HOLD.value,
        OrderStatus.CANCELLED.value,
    },
    OrderStatus.AWAITING_DELIVERY.value: {
        OrderStatus.OUT_FOR_DELIVERY.value,
        OrderStatus.ON_HOLD.value,
        OrderStatus.CANCELLED.value,
    },
    OrderStatus.OUT_FOR_DELIVERY.value: {
        OrderStatus.DELIVERED.value,
        OrderStatus.COMPLETED.value,
        OrderStatus.ON_HOLD.value,
    },
    OrderStatus.DELIVERED.value: {
        OrderStatus.COMPLETED.value,
        OrderStatus.REFUNDED.value,
    },
    OrderStatus.COMPLETED.value: {
        OrderStatus.REFUNDED.value,  # Only completed orders can be refunded
    },
    OrderStatus.CANCEL.value: {
        OrderStatus.CANCELLED.value,
    },
    OrderStatus.CANCELLED.value: set(),  # Terminal
    OrderStatus.REFUNDED.value: set(),  # Terminal
}

TERMINAL_STATUSES: Set[str] = {
    status for status, allowed in ORDER_STATUS_TRANSITIONS.items() if not allowed
}

# Statuses shown in the dashboard "recent orders" feed, matched as substrings
RECENT_ORDER_STATUS_PATTERNS: List[str] = ["Pending", "Processing", "Delivered", "Cancel"]


def get_allowed_transitions(current_status: Optional[str]) -> List[str]:
    """Get list of allowed next statuses for an order, in vocabulary order"""
    allowed = ORDER_STATUS_TRANSITIONS.get(current_status, set())
    return [s for s in ORDER_STATUS_VALUES if s in allowed]


def is_known_status(status: Optional[str]) -> bool:
    return status in ORDER_STATUS_TRANSITIONS


def is_terminal(status: Optional[str]) -> bool:
    return status in TERMINAL_STATUSES


# =============================================================================
# Display helpers
# =============================================================================

STATUS_DISPLAY_NAMES: Dict[str, str] = {
    OrderStatus.PAYMENT_PROCESSING.value: "Payment Processing",
    OrderStatus.PENDING.value: "Pending",
    OrderStatus.PROCESSING.value: "Processing",
    OrderStatus.AWAITING_STOCK.value: "Awaiting Stock",
    OrderStatus.ON_HOLD.value: "On Hold",
    OrderStatus.PICKING_PACKING.value: "Picking/Packing",
    OrderStatus.AWAITING_DELIVERY.value: "Awaiting Delivery",
    OrderStatus.OUT_FOR_DELIVERY.value: "Out for Delivery",
    OrderStatus.DELIVERED.value: "Delivered",
    OrderStatus.COMPLETED.value: "Completed",
    OrderStatus.CANCEL.value: "Cancelled",
    OrderStatus.CANCELLED.value: "Cancelled",
    OrderStatus.REFUNDED.value: "Refunded",
}

STATUS_BADGE_COLORS: Dict[str, str] = {
    OrderStatus.PAYMENT_PROCESSING.value: "blue",
    OrderStatus.PENDING.value: "yellow",
    OrderStatus.PROCESSING.value: "blue",
    OrderStatus.AWAITING_STOCK.value: "orange",
    OrderStatus.ON_HOLD.value: "yellow",
    OrderStatus.PICKING_PACKING.value: "purple",
    OrderStatus.AWAITING_DELIVERY.value: "teal",
    OrderStatus.OUT_FOR_DELIVERY.value: "indigo",
    OrderStatus.DELIVERED.value: "green",
    OrderStatus.COMPLETED.value: "green",
    OrderStatus.CANCEL.value: "red",
    OrderStatus.CANCELLED.value: "red",
    OrderStatus.REFUNDED.value: "gray",
}


def get_status_display_name(status: Optional[str]) -> str:
    if status is None:
        return ""
    return STATUS_DISPLAY_NAMES.get(status, status)


def get_status_badge_color(status: Optional[str]) -> str:
    return STATUS_BADGE_COLORS.get(status, "gray")


# =============================================================================
# Shipment (parcel) Status
# =============================================================================

class ShipmentStatus(str, Enum):
    """Physical parcel state; independent of OrderStatus"""
    PENDING = "Pending"
    LABEL_CREATED = "Label Created"
    IN_TRANSIT = "In Transit"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    EXCEPTION = "Exception"
    RETURNED = "Returned"


# =============================================================================
# Account types
# =============================================================================

STAFF_ACCOUNT_TYPES = ("admin", "operator")
