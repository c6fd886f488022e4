"""
Order Status Management Service

Provides status transition validation and the single-order update workflow.

Validation is advisory by default: a transition outside the declared graph is
allowed with a warning. Strict mode (STRICT_STATUS_TRANSITIONS) turns those
warnings into rejections. Every accepted change writes exactly one history
record in the same transaction as the new status, and every order write is
guarded by the order's version column.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from shopdesk.core.status_config import (
    get_allowed_transitions,
    is_known_status,
    ORDER_STATUS_TRANSITIONS,
    ORDER_STATUS_VALUES,
)
from shopdesk.exceptions import ConcurrencyError, InvalidStateError, NotFoundError, ValidationError
from shopdesk.models.order import Order
from shopdesk.models.order_status_history import OrderStatusHistory
from shopdesk.services.status_history import record_transition
from shopdesk.logging_config import get_logger

logger = get_logger(__name__)

TRANSITION_ALLOWED_MESSAGE = "Status transition allowed"


@dataclass(frozen=True)
class TransitionCheck:
    """Outcome of validate_transition"""
    valid: bool
    message: str
    unusual: bool = False


@dataclass
class StatusChangeResult:
    changed: bool
    old_status: Optional[str]
    new_status: str
    warning: Optional[str] = None
    history: Optional[OrderStatusHistory] = None


@dataclass
class OrderUpdateResult:
    order: Order
    status_change: Optional[StatusChangeResult] = None

    @property
    def warning(self) -> Optional[str]:
        return self.status_change.warning if self.status_change else None


# ============================================================================
# VALIDATION
# ============================================================================

def validate_transition(old_status: Optional[str], new_status: str, strict: bool = False) -> TransitionCheck:
    """
    Check a status change against the declared transition graph.

    Args:
        old_status: Current status (may be a legacy/unknown value or None)
        new_status: Desired status
        strict: Reject unusual transitions instead of warning about them

    Returns:
        TransitionCheck. Unknown old statuses are always allowed.
    """
    if not is_known_status(old_status):
        return TransitionCheck(True, TRANSITION_ALLOWED_MESSAGE)

    if new_status in ORDER_STATUS_TRANSITIONS[old_status]:
        return TransitionCheck(True, TRANSITION_ALLOWED_MESSAGE)

    if strict:
        allowed = get_allowed_transitions(old_status)
        return TransitionCheck(
            False,
            f"Invalid status transition from {old_status} to {new_status}. "
            f"Allowed: {', '.join(allowed) if allowed else 'none (terminal state)'}",
            unusual=True,
        )

    return TransitionCheck(
        True,
        f"Warning: Unusual status transition from {old_status} to {new_status}",
        unusual=True,
    )


def flush_order(db: Session, order: Order) -> None:
    """Flush pending changes, translating a version mismatch into ConcurrencyError."""
    try:
        db.flush()
    except StaleDataError as exc:
        raise ConcurrencyError(
            "Order was modified by another request",
            details={"order_id": order.id},
        ) from exc


# ============================================================================
# STATUS UPDATES
# ============================================================================

def apply_status_change(
    db: Session,
    order: Order,
    new_status: str,
    actor_id: Optional[int],
    reason: Optional[str] = None,
    strict: bool = False,
) -> StatusChangeResult:
    """
    Set a new status on an order and record it in the history.

    Flushes but does not commit; the caller owns the transaction.

    Raises:
        ValidationError: new_status is not an order status
        InvalidStateError: strict mode and the transition is not allowed
        ConcurrencyError: the order was updated since it was read
    """
    if new_status not in ORDER_STATUS_VALUES:
        raise ValidationError(
            f"Invalid status '{new_status}'. Must be one of: {', '.join(ORDER_STATUS_VALUES)}",
            field="status",
            value=new_status,
        )

    old_status = order.status
    if new_status == old_status:
        return StatusChangeResult(changed=False, old_status=old_status, new_status=new_status)

    check = validate_transition(old_status, new_status, strict=strict)
    if not check.valid:
        raise InvalidStateError(
            check.message,
            current_state=old_status,
            allowed_states=get_allowed_transitions(old_status),
        )

    warning = None
    if check.unusual:
        warning = check.message
        logger.warning(
            check.message,
            extra={"order_id": order.id, "old_status": old_status, "new_status": new_status},
        )

    order.status = new_status
    history = record_transition(db, order.id, old_status, new_status, actor_id, reason)
    flush_order(db, order)

    logger.info(f"Order {order.invoice}: {old_status} → {new_status}")
    return StatusChangeResult(
        changed=True,
        old_status=old_status,
        new_status=new_status,
        warning=warning,
        history=history,
    )


def _apply_field_changes(
    db: Session,
    order: Order,
    changes: Dict[str, Any],
    actor_id: Optional[int],
    strict: bool,
) -> Optional[StatusChangeResult]:
    status_change = None
    if changes.get("status"):
        status_change = apply_status_change(
            db, order, changes["status"], actor_id, reason=changes.get("reason"), strict=strict
        )

    if "shipment_tracking" in changes:
        order.shipment_tracking = changes["shipment_tracking"]
    if changes.get("origin"):
        order.origin = changes["origin"]
    if changes.get("is_trashed") is not None:
        order.is_trashed = changes["is_trashed"]

    flush_order(db, order)
    return status_change


def update_order(
    db: Session,
    order_id: int,
    changes: Dict[str, Any],
    actor_id: Optional[int],
    strict: bool = False,
    max_retries: int = 3,
) -> OrderUpdateResult:
    """
    Apply a staff update (status, shipment_tracking, origin, is_trashed) to one order.

    On a concurrent modification the order is re-read and the update applied
    again against the fresh status, up to ``max_retries`` times.

    Raises:
        NotFoundError: order does not exist
        InvalidStateError: strict mode rejected the transition
        ConcurrencyError: still conflicting after all retries
    """
    attempt = 0
    while True:
        order = db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise NotFoundError("Order", order_id)

        try:
            status_change = _apply_field_changes(db, order, changes, actor_id, strict)
            db.commit()
        except ConcurrencyError:
            db.rollback()
            if attempt >= max_retries:
                logger.error(f"Order {order_id}: update abandoned after {attempt + 1} conflicting attempts")
                raise
            attempt += 1
            logger.warning(f"Order {order_id}: concurrent modification, retrying ({attempt}/{max_retries})")
            continue
        except Exception:
            db.rollback()
            raise

        db.refresh(order)
        return OrderUpdateResult(order=order, status_change=status_change)
