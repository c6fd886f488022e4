"""
Order Service

Checkout, lookup, listing and the smaller staff mutations (trash, notes,
shipment). Status changes go through order_status so that every one of
them is validated and recorded in the history.
"""
import secrets
import string
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from sqlalchemy import String, asc, cast, desc, func, or_
from sqlalchemy.orm import Query, Session, joinedload

from shopdesk.core.status_config import OrderStatus
from shopdesk.exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from shopdesk.models.order import Order, OrderNote
from shopdesk.models.sequence import Sequence
from shopdesk.models.shipment import Shipment
from shopdesk.models.user import User
from shopdesk.schemas.order import OrderCreate, ShipmentUpdate
from shopdesk.services.order_status import (
    StatusChangeResult,
    apply_status_change,
    flush_order,
)
from shopdesk.services.status_history import record_transition
from shopdesk.logging_config import get_logger

logger = get_logger(__name__)

INVOICE_SEQUENCE = "invoice"
ORDER_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_PAGE_LIMIT = 200
CENT = Decimal("0.01")

SORT_COLUMNS = {
    "date": Order.created_at,
    "total": Order.total,
    "order_code": Order.order_code,
}


@dataclass
class OrderFilters:
    """Listing filters for the staff order list and export"""
    day: Optional[int] = None
    status: Optional[str] = None
    page: int = 1
    limit: int = 50
    method: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    customer_name: Optional[str] = None
    customer: Optional[str] = None
    origin: Optional[str] = None
    search: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: str = "desc"
    include_trashed: bool = False


@dataclass
class OrderPage:
    orders: List[Order]
    total: int
    page: int
    limit: int
    method_totals: List[Dict[str, Any]] = field(default_factory=list)
    status_counts: Dict[str, int] = field(default_factory=dict)


@dataclass
class CustomerOrderPage:
    orders: List[Order]
    total: int
    page: int
    limit: int
    pending: int = 0
    processing: int = 0
    delivered: int = 0


# ============================================================================
# IDENTIFIERS
# ============================================================================

def next_invoice_number(db: Session, start: int = 10000) -> int:
    """
    Take the next invoice number from the ``invoice`` sequence row.

    The increment is a single UPDATE inside the caller's transaction, so two
    checkouts can never be handed the same number.
    """
    updated = (
        db.query(Sequence)
        .filter(Sequence.name == INVOICE_SEQUENCE)
        .update({Sequence.value: Sequence.value + 1}, synchronize_session=False)
    )
    if updated == 0:
        db.add(Sequence(name=INVOICE_SEQUENCE, value=start))
        db.flush()
        return start

    return db.query(Sequence.value).filter(Sequence.name == INVOICE_SEQUENCE).scalar()


def generate_order_code(db: Session, length: int = 6, max_attempts: int = 5) -> str:
    """
    Generate a short customer-facing order code (A-Z, 0-9) not used by any order.

    Raises:
        ConflictError: no free code found within max_attempts
    """
    for attempt in range(1, max_attempts + 1):
        code = "".join(secrets.choice(ORDER_CODE_ALPHABET) for _ in range(length))
        taken = db.query(Order.id).filter(Order.order_code == code).first()
        if not taken:
            return code
        logger.warning(f"Order code collision on attempt {attempt}/{max_attempts}")

    raise ConflictError(
        "Could not generate a unique order code",
        details={"attempts": max_attempts},
    )


# ============================================================================
# CHECKOUT
# ============================================================================

def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def create_order(
    db: Session,
    user: Optional[User],
    payload: OrderCreate,
    invoice_start: int = 10000,
    code_length: int = 6,
    code_attempts: int = 5,
) -> Order:
    """
    Create an order at checkout.

    Totals are computed once here and stored; nothing recomputes them later.
    The order starts in Payment-Processing with an initial history record
    (None -> Payment-Processing) attributed to the customer.
    """
    sub_total = _money(sum((line.price * line.quantity for line in payload.cart), Decimal("0")))
    shipping_cost = _money(payload.shipping_cost)
    discount = _money(payload.discount)
    total = _money(sub_total + shipping_cost - discount)
    if total < 0:
        raise ValidationError("Discount exceeds order value", field="discount", value=discount)

    try:
        order = Order(
            user_id=user.id if user else None,
            invoice=next_invoice_number(db, start=invoice_start),
            order_code=generate_order_code(db, length=code_length, max_attempts=code_attempts),
            cart=[line.model_dump(mode="json") for line in payload.cart],
            user_info=payload.user_info.model_dump(mode="json"),
            sub_total=sub_total,
            shipping_cost=shipping_cost,
            discount=discount,
            total=total,
            payment_method=payload.payment_method,
            shipping_option=payload.shipping_option,
            shipping_method=payload.shipping_method,
            shipping_protection=payload.shipping_protection,
            status=OrderStatus.PAYMENT_PROCESSING.value,
            origin=payload.origin or "Website",
        )
        db.add(order)
        db.flush()

        record_transition(
            db,
            order.id,
            None,
            OrderStatus.PAYMENT_PROCESSING.value,
            user.id if user else None,
            reason="Order placed",
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info(
        f"Created order {order.invoice} ({order.order_code})",
        extra={"order_id": order.id, "total": str(order.total), "payment_method": order.payment_method},
    )
    return order


def confirm_payment(db: Session, order: Order, actor_id: Optional[int]) -> StatusChangeResult:
    """
    Move an order to Pending once the payment provider has confirmed it.

    Only an order still in Payment-Processing can be confirmed.

    Raises:
        InvalidStateError: the order has left Payment-Processing
    """
    if order.status != OrderStatus.PAYMENT_PROCESSING.value:
        raise InvalidStateError(
            f"Payment can only be confirmed for orders in {OrderStatus.PAYMENT_PROCESSING.value}",
            current_state=order.status,
            allowed_states=[OrderStatus.PAYMENT_PROCESSING.value],
        )

    try:
        result = apply_status_change(
            db, order, OrderStatus.PENDING.value, actor_id, reason="Payment confirmed"
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    return result


# ============================================================================
# LOOKUP
# ============================================================================

def get_order_or_404(db: Session, order_id: int) -> Order:
    """Get an order with its staff notes, or raise NotFoundError."""
    order = (
        db.query(Order)
        .options(joinedload(Order.staff_notes).joinedload(OrderNote.added_by))
        .filter(Order.id == order_id)
        .first()
    )
    if not order:
        raise NotFoundError("Order", order_id)
    return order


def find_order_for_tracking(db: Session, order_code: str, email: str) -> Order:
    """Public tracking lookup: the order code must match the snapshot email."""
    order = (
        db.query(Order)
        .filter(
            Order.order_code == order_code.strip().upper(),
            func.lower(Order.user_info["email"].as_string()) == email.strip().lower(),
        )
        .first()
    )
    if not order:
        raise NotFoundError("Order")
    return order


def get_orders_for_user(db: Session, user_id: int) -> List[Order]:
    """All orders placed by one customer, newest first."""
    return (
        db.query(Order)
        .filter(Order.user_id == user_id)
        .order_by(desc(Order.created_at), desc(Order.id))
        .all()
    )


def list_customer_orders(db: Session, user_id: int, page: int = 1, limit: int = 8) -> CustomerOrderPage:
    """A customer's own orders, paginated, with pending/processing/delivered counts."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_LIMIT)
    base = db.query(Order).filter(Order.user_id == user_id)

    counts = dict(
        db.query(Order.status, func.count(Order.id))
        .filter(
            Order.user_id == user_id,
            Order.status.in_([
                OrderStatus.PENDING.value,
                OrderStatus.PROCESSING.value,
                OrderStatus.DELIVERED.value,
            ]),
        )
        .group_by(Order.status)
        .all()
    )

    orders = (
        base.order_by(desc(Order.created_at), desc(Order.id))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return CustomerOrderPage(
        orders=orders,
        total=base.count(),
        page=page,
        limit=limit,
        pending=counts.get(OrderStatus.PENDING.value, 0),
        processing=counts.get(OrderStatus.PROCESSING.value, 0),
        delivered=counts.get(OrderStatus.DELIVERED.value, 0),
    )


# ============================================================================
# LISTING
# ============================================================================

def _contains(column, term: str):
    """Case-insensitive substring match; % and _ in the term are literal."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


def _filter_conditions(filters: OrderFilters, now: Optional[datetime] = None) -> list:
    now = now or datetime.utcnow()
    conditions = []

    if not filters.include_trashed:
        conditions.append(Order.is_trashed.is_(False))

    if filters.status and filters.status != "All":
        if filters.status in (OrderStatus.COMPLETED.value, OrderStatus.REFUNDED.value):
            conditions.append(Order.status == filters.status)
        else:
            conditions.append(_contains(Order.status, filters.status))

    name = Order.user_info["name"].as_string()
    email = Order.user_info["email"].as_string()
    invoice = cast(Order.invoice, String)

    # Only one text filter applies: customer, then customer_name, then search
    text_match = None
    if filters.search:
        text_match = or_(
            _contains(Order.order_code, filters.search),
            _contains(invoice, filters.search),
            _contains(name, filters.search),
            _contains(email, filters.search),
        )
    if filters.customer:
        text_match = or_(_contains(name, filters.customer), _contains(email, filters.customer))
    if filters.customer_name and not filters.customer:
        text_match = or_(_contains(name, filters.customer_name), _contains(invoice, filters.customer_name))
    if text_match is not None:
        conditions.append(text_match)

    if filters.origin:
        conditions.append(_contains(Order.origin, filters.origin))

    if filters.start_date and filters.end_date:
        start = datetime.combine(filters.start_date, time.min)
        end = datetime.combine(filters.end_date + timedelta(days=1), time.min)
        conditions.append(Order.created_at >= start)
        conditions.append(Order.created_at < end)
    elif filters.day:
        start = datetime.combine((now - timedelta(days=filters.day)).date(), time.min)
        end = datetime.combine(now.date() + timedelta(days=1), time.min)
        conditions.append(Order.created_at >= start)
        conditions.append(Order.created_at < end)

    if filters.method:
        conditions.append(_contains(Order.payment_method, filters.method))

    return conditions


def build_order_query(db: Session, filters: OrderFilters, now: Optional[datetime] = None) -> Query:
    """Filtered, sorted order query (no pagination)."""
    column = SORT_COLUMNS.get(filters.sort_by or "date", Order.created_at)
    direction = asc if filters.sort_order == "asc" else desc
    return (
        db.query(Order)
        .filter(*_filter_conditions(filters, now))
        .order_by(direction(column), direction(Order.id))
    )


def get_status_counts(db: Session, include_trashed: bool = False) -> Dict[str, int]:
    """Counts for the All / Completed / Refunded header tabs."""
    query = db.query(Order.status, func.count(Order.id))
    if not include_trashed:
        query = query.filter(Order.is_trashed.is_(False))
    by_status = dict(query.group_by(Order.status).all())

    return {
        "all": sum(by_status.values()),
        "completed": by_status.get(OrderStatus.COMPLETED.value, 0),
        "refunded": by_status.get(OrderStatus.REFUNDED.value, 0),
    }


def get_method_totals(db: Session, filters: OrderFilters, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Sum of order totals per payment method for the filtered orders."""
    rows = (
        db.query(Order.payment_method, func.coalesce(func.sum(Order.total), 0))
        .filter(*_filter_conditions(filters, now))
        .group_by(Order.payment_method)
        .order_by(Order.payment_method)
        .all()
    )
    return [{"method": method, "total": Decimal(str(total))} for method, total in rows]


def list_orders(db: Session, filters: OrderFilters, now: Optional[datetime] = None) -> OrderPage:
    """
    Staff order list.

    Returns:
        OrderPage with the requested page, total matching count, per-method
        totals (only when both start_date and end_date are given) and the
        header tab counts.
    """
    page = max(filters.page or 1, 1)
    limit = min(max(filters.limit or 50, 1), MAX_PAGE_LIMIT)

    query = build_order_query(db, filters, now)
    total = query.order_by(None).count()
    orders = query.offset((page - 1) * limit).limit(limit).all()

    method_totals = []
    if filters.start_date and filters.end_date:
        method_totals = get_method_totals(db, filters, now)

    return OrderPage(
        orders=orders,
        total=total,
        page=page,
        limit=limit,
        method_totals=method_totals,
        status_counts=get_status_counts(db, include_trashed=filters.include_trashed),
    )


# ============================================================================
# STAFF MUTATIONS
# ============================================================================

def trash_order(db: Session, order_id: int) -> Order:
    """Soft-delete an order. Status and history are left untouched."""
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order", order_id)

    try:
        order.is_trashed = True
        flush_order(db, order)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Order {order.invoice} moved to trash", extra={"order_id": order.id})
    return order


def add_staff_note(db: Session, order_id: int, note: str, actor_id: Optional[int]) -> List[OrderNote]:
    """
    Append a staff note to an order.

    Returns:
        All notes on the order, oldest first

    Raises:
        AuthenticationError: no actor
        ValidationError: empty note
        NotFoundError: order does not exist
    """
    if actor_id is None:
        raise AuthenticationError("Admin authentication required")

    text = (note or "").strip()
    if not text:
        raise ValidationError("Note is required", field="note")

    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order", order_id)

    db.add(OrderNote(order_id=order.id, note=text, added_by_id=actor_id))
    db.commit()

    return (
        db.query(OrderNote)
        .options(joinedload(OrderNote.added_by))
        .filter(OrderNote.order_id == order.id)
        .order_by(OrderNote.id)
        .all()
    )


def upsert_shipment(db: Session, order_id: int, payload: ShipmentUpdate) -> Shipment:
    """
    Create or update the order's shipment.

    A new shipment's address defaults to the order's billing snapshot. A
    tracking number is copied to the order when the order has none.
    """
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order", order_id)

    changes = payload.model_dump(exclude_unset=True)
    shipment = order.shipment
    try:
        if shipment is None:
            shipment = Shipment(order_id=order.id, shipping_address=dict(order.user_info or {}))
            db.add(shipment)

        for key, value in changes.items():
            if key == "status" and value is None:
                continue
            setattr(shipment, key, value)

        if changes.get("tracking_number") and not order.shipment_tracking:
            order.shipment_tracking = changes["tracking_number"]

        flush_order(db, order)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(shipment)
    return shipment
