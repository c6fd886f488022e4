"""
Customer Order Endpoints

Checkout, a customer's own orders, payment confirmation and the public
order tracking lookup.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import EmailStr
from sqlalchemy.orm import Session

from shopdesk.api.v1.deps import get_current_user
from shopdesk.core.limiter import limiter
from shopdesk.core.settings import Settings, get_settings, settings as app_settings
from shopdesk.db.session import get_db
from shopdesk.exceptions import NotFoundError
from shopdesk.models.order import Order
from shopdesk.models.user import User
from shopdesk.schemas.order import (
    CustomerOrderListResponse,
    OrderCreate,
    OrderResponse,
    OrderStatusResponse,
)
from shopdesk.services import order_service

router = APIRouter(prefix="/customer/orders", tags=["Customer Orders"])


def _get_own_order(db: Session, order_id: int, user: User) -> Order:
    """Customers only see their own orders; anything else is reported as not found."""
    order = db.query(Order).filter(Order.id == order_id, Order.user_id == user.id).first()
    if not order:
        raise NotFoundError("Order", order_id)
    return order


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def place_order(
    payload: OrderCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Place an order at checkout.

    The order starts in Payment-Processing; totals are computed from the
    cart once and stored.
    """
    return order_service.create_order(
        db,
        current_user,
        payload,
        invoice_start=settings.INVOICE_START,
        code_length=settings.ORDER_CODE_LENGTH,
        code_attempts=settings.ORDER_CODE_MAX_ATTEMPTS,
    )


@router.get("", response_model=CustomerOrderListResponse)
async def list_my_orders(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """The current customer's orders, newest first, with headline counts."""
    result = order_service.list_customer_orders(
        db, current_user.id, page=page, limit=limit or settings.DASHBOARD_PAGE_LIMIT
    )
    pages = (result.total + result.limit - 1) // result.limit if result.total else 0
    return {
        "message": "Orders retrieved successfully",
        "orders": result.orders,
        "limits": result.limit,
        "pages": pages,
        "pending": result.pending,
        "processing": result.processing,
        "delivered": result.delivered,
        "total_doc": result.total,
    }


@router.get("/track", response_model=OrderResponse)
@limiter.limit(app_settings.TRACK_RATE_LIMIT)
async def track_order(
    request: Request,
    order_code: str = Query(..., min_length=1, max_length=32),
    email: EmailStr = Query(...),
    db: Session = Depends(get_db),
):
    """Public lookup by order code plus the email used at checkout."""
    return order_service.find_order_for_tracking(db, order_code, email)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_my_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _get_own_order(db, order_id, current_user)


@router.post("/{order_id}/payment-confirmed", response_model=OrderStatusResponse)
async def confirm_order_payment(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Called after the payment provider confirms payment; moves the order to Pending.

    Orders that have already left Payment-Processing are rejected with 400.
    """
    order = _get_own_order(db, order_id, current_user)
    order_service.confirm_payment(db, order, current_user.id)
    return {"message": "Order status updated successfully", "order": order}
