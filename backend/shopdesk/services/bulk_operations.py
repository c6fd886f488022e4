"""
Bulk Order Operations

Applies one action to many orders. Each order is handled in its own
transaction: a failure on one id is recorded and the batch moves on, so
every id ends up in exactly one of ``success`` / ``failed``.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopdesk.exceptions import NotFoundError, ShopDeskException, ValidationError
from shopdesk.models.order import Order
from shopdesk.services.order_status import apply_status_change, flush_order
from shopdesk.logging_config import get_logger

logger = get_logger(__name__)

ACTION_TRASH = "trash"
ACTION_CHANGE_STATUS = "changeStatus"
BULK_ACTIONS = (ACTION_TRASH, ACTION_CHANGE_STATUS)


@dataclass
class BulkResult:
    success: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return (
            f"Bulk update completed. {len(self.success)} succeeded, "
            f"{len(self.failed)} failed."
        )


def _apply_one(
    db: Session,
    order_id: int,
    action: str,
    actor_id: Optional[int],
    status: Optional[str],
    reason: Optional[str],
    strict: bool,
) -> Dict[str, Any]:
    """Apply the action to a single order and commit. Returns the success entry."""
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order", order_id)

    if action == ACTION_TRASH:
        order.is_trashed = True
        flush_order(db, order)
        db.commit()
        return {"order_id": order_id, "action": "trashed"}

    if action == ACTION_CHANGE_STATUS and status:
        result = apply_status_change(db, order, status, actor_id, reason=reason, strict=strict)
        db.commit()
        entry = {"order_id": order_id, "action": "status changed", "status": status}
        if result.warning:
            entry["warning"] = result.warning
        return entry

    raise ValidationError("Invalid action or missing status", field="action", value=action)


def bulk_apply(
    db: Session,
    order_ids: Sequence[int],
    action: str,
    actor_id: Optional[int],
    status: Optional[str] = None,
    reason: Optional[str] = None,
    strict: bool = False,
) -> BulkResult:
    """
    Apply ``trash`` or ``changeStatus`` to each order id independently.

    Args:
        db: Database session
        order_ids: Orders to process, in order (duplicates are processed again)
        action: "trash" or "changeStatus"
        actor_id: User performing the operation (recorded in status history)
        status: Target status for changeStatus
        reason: Reason recorded with each status change
        strict: Reject unusual transitions per item instead of warning

    Returns:
        BulkResult with per-id outcomes
    """
    results = BulkResult()

    for order_id in order_ids:
        try:
            results.success.append(
                _apply_one(db, order_id, action, actor_id, status, reason, strict)
            )
        except ShopDeskException as exc:
            db.rollback()
            results.failed.append({"order_id": order_id, "message": exc.message})
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Bulk {action}: database error on order {order_id}", exc_info=True)
            results.failed.append({"order_id": order_id, "message": "Database error while updating order"})

    logger.info(
        results.summary,
        extra={"action": action, "succeeded": len(results.success), "failed": len(results.failed)},
    )
    return results
