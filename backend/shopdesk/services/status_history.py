"""
Order Status History Service

Writes and reads the append-only status audit trail. Writers add the record
to the caller's session; the caller commits it together with the status
change so the two can never diverge.
"""
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload

from shopdesk.models.order_status_history import OrderStatusHistory
from shopdesk.logging_config import get_logger

logger = get_logger(__name__)


def record_transition(
    db: Session,
    order_id: int,
    old_status: Optional[str],
    new_status: str,
    actor_id: Optional[int],
    reason: Optional[str] = None,
) -> Optional[OrderStatusHistory]:
    """
    Record one status transition for an order.

    Args:
        db: Database session
        order_id: ID of the order
        old_status: Status before the change (None for the initial status)
        new_status: Status after the change
        actor_id: ID of the user who made the change
        reason: Free-text reason (optional)

    Returns:
        The created OrderStatusHistory, or None when nothing was recorded
        (status unchanged, or no known actor).
    """
    if old_status == new_status:
        return None

    if actor_id is None:
        logger.warning(
            "Status change without an actor; history not recorded",
            extra={"order_id": order_id, "old_status": old_status, "new_status": new_status},
        )
        return None

    entry = OrderStatusHistory(
        order_id=order_id,
        old_status=old_status,
        new_status=new_status,
        changed_by_id=actor_id,
        reason=reason or None,
    )
    db.add(entry)
    # Don't commit - let the calling function handle the transaction
    return entry


def get_history(db: Session, order_id: int) -> List[OrderStatusHistory]:
    """Status history for an order, newest first."""
    return (
        db.query(OrderStatusHistory)
        .options(joinedload(OrderStatusHistory.changed_by))
        .filter(OrderStatusHistory.order_id == order_id)
        .order_by(desc(OrderStatusHistory.changed_at), desc(OrderStatusHistory.id))
        .all()
    )
