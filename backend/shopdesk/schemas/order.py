"""
Order Pydantic Schemas
"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from decimal import Decimal

from shopdesk.core.status_config import OrderStatus, ShipmentStatus
from shopdesk.schemas.common import UserSummary


# ============================================================================
# Request Schemas
# ============================================================================

class CartLine(BaseModel):
    """Cart line captured at checkout"""
    product_id: Optional[str] = Field(None, max_length=64, description="Catalog product reference")
    title: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0, description="Unit price at time of order")
    quantity: int = Field(..., gt=0, le=10000)


class UserInfo(BaseModel):
    """Billing snapshot stored on the order"""
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    contact: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)


class OrderCreate(BaseModel):
    """Checkout payload"""
    cart: List[CartLine] = Field(..., min_length=1)
    user_info: UserInfo

    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    discount: Decimal = Field(Decimal("0"), ge=0)

    payment_method: str = Field(..., min_length=1, max_length=50, description="Stripe, RazorPay, Cash, ...")
    shipping_option: Optional[str] = Field(None, max_length=100)
    shipping_method: Optional[str] = Field(None, max_length=100)
    shipping_protection: Optional[bool] = None
    origin: Optional[str] = Field(None, max_length=100, description="Referral channel (default Website)")


class OrderUpdate(BaseModel):
    """Staff update of a single order. Only fields that are sent are applied."""
    status: Optional[OrderStatus] = None
    shipment_tracking: Optional[str] = Field(None, max_length=255)
    origin: Optional[str] = Field(None, max_length=100)
    is_trashed: Optional[bool] = None
    reason: Optional[str] = Field(None, max_length=1000, description="Recorded in status history")

    model_config = {"use_enum_values": True}


class BulkOrderRequest(BaseModel):
    """Apply one action to many orders"""
    order_ids: List[int] = Field(..., min_length=1, description="Orders to process")
    action: str = Field(..., min_length=1, description="trash | changeStatus")
    status: Optional[OrderStatus] = Field(None, description="Target status for changeStatus")
    reason: Optional[str] = Field(None, max_length=1000)

    model_config = {"use_enum_values": True}


class NoteCreate(BaseModel):
    """Staff note"""
    note: str = Field("", max_length=5000)


class ShipmentUpdate(BaseModel):
    """Create or update the shipment attached to an order"""
    tracking_number: Optional[str] = Field(None, max_length=255)
    carrier: Optional[str] = Field(None, max_length=100)
    status: Optional[ShipmentStatus] = None
    estimated_delivery: Optional[datetime] = None
    actual_delivery: Optional[datetime] = None
    shipping_address: Optional[Dict[str, Any]] = None

    model_config = {"use_enum_values": True}

    @field_validator("estimated_delivery", "actual_delivery")
    @classmethod
    def validate_delivery_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Validate delivery dates are reasonable (between 2000-2099)"""
        if v is not None:
            if v.year < 2000 or v.year > 2099:
                raise ValueError("Delivery date must be between year 2000 and 2099")
        return v


# ============================================================================
# Response Schemas
# ============================================================================

class StaffNoteResponse(BaseModel):
    id: int
    note: str
    added_at: datetime
    added_by: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    """Full order"""
    id: int
    user_id: Optional[int] = None
    invoice: int
    order_code: str

    cart: List[Dict[str, Any]] = []
    user_info: Dict[str, Any] = {}

    sub_total: Decimal
    shipping_cost: Decimal
    discount: Decimal
    total: Decimal

    payment_method: str
    shipping_option: Optional[str] = None
    shipping_method: Optional[str] = None
    shipping_protection: Optional[bool] = None

    status: str
    shipment_tracking: Optional[str] = None
    origin: str
    is_trashed: bool
    version: int

    staff_notes: List[StaffNoteResponse] = []

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StatusHistoryResponse(BaseModel):
    """One status transition"""
    id: int
    order_id: int
    old_status: Optional[str] = None
    new_status: str
    reason: Optional[str] = None
    changed_at: datetime
    changed_by: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class ShipmentResponse(BaseModel):
    id: int
    order_id: int
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    status: str
    estimated_delivery: Optional[datetime] = None
    actual_delivery: Optional[datetime] = None
    shipping_address: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrderDetailResponse(BaseModel):
    message: str
    order: OrderResponse
    status_history: List[StatusHistoryResponse] = []
    shipment: Optional[ShipmentResponse] = None


class OrderUpdateResponse(BaseModel):
    message: str
    order: OrderResponse
    warning: Optional[str] = None


class MethodTotal(BaseModel):
    method: str
    total: Decimal


class StatusCounts(BaseModel):
    """Header tab counts"""
    all: int = 0
    completed: int = 0
    refunded: int = 0


class OrderListResponse(BaseModel):
    message: str
    orders: List[OrderResponse]
    limits: int
    pages: int
    total_doc: int
    method_totals: List[MethodTotal] = []
    status_counts: StatusCounts


class BulkSuccessItem(BaseModel):
    order_id: int
    action: str
    status: Optional[str] = None
    warning: Optional[str] = None


class BulkFailedItem(BaseModel):
    order_id: int
    message: str


class BulkResults(BaseModel):
    success: List[BulkSuccessItem] = []
    failed: List[BulkFailedItem] = []


class BulkOrderResponse(BaseModel):
    message: str
    results: BulkResults


class NotesResponse(BaseModel):
    message: str
    notes: List[StaffNoteResponse]


class ShipmentUpsertResponse(BaseModel):
    message: str
    shipment: ShipmentResponse


class StatusTransitionsResponse(BaseModel):
    """Transition graph, optionally focused on one status"""
    statuses: List[str]
    transitions: Dict[str, List[str]]
    terminal_statuses: List[str]
    display_names: Dict[str, str]
    badge_colors: Dict[str, str]
    current_status: Optional[str] = None
    allowed_transitions: Optional[List[str]] = None
    is_terminal: Optional[bool] = None


# ============================================================================
# Customer-facing Schemas
# ============================================================================

class CustomerOrderListResponse(BaseModel):
    """A customer's own orders with headline counts"""
    message: str
    orders: List[OrderResponse]
    limits: int
    pages: int
    pending: int = 0
    processing: int = 0
    delivered: int = 0
    total_doc: int


class OrderStatusResponse(BaseModel):
    message: str
    order: OrderResponse
