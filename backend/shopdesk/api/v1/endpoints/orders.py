"""
Order Management Endpoints (staff)

Listing, detail, single and bulk updates, soft delete, staff notes,
shipment and CSV export. Fixed paths are declared before /{order_id}.
"""
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from shopdesk.api.v1.deps import get_current_staff_user
from shopdesk.core.settings import Settings, get_settings
from shopdesk.core.status_config import (
    ORDER_STATUS_VALUES,
    TERMINAL_STATUSES,
    get_allowed_transitions,
    get_status_badge_color,
    get_status_display_name,
    is_terminal,
)
from shopdesk.db.session import get_db
from shopdesk.exceptions import ValidationError
from shopdesk.models.shipment import Shipment
from shopdesk.models.user import User
from shopdesk.schemas.common import MessageResponse
from shopdesk.schemas.order import (
    BulkOrderRequest,
    BulkOrderResponse,
    NoteCreate,
    NotesResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderResponse,
    OrderUpdate,
    OrderUpdateResponse,
    ShipmentUpdate,
    ShipmentUpsertResponse,
    StatusTransitionsResponse,
)
from shopdesk.services import order_service
from shopdesk.services.bulk_operations import bulk_apply
from shopdesk.services.export import format_order_for_export, orders_to_csv
from shopdesk.services.order_service import OrderFilters
from shopdesk.services.order_status import update_order
from shopdesk.services.status_history import get_history
from shopdesk.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


def get_order_filters(
    day: Optional[int] = Query(None, ge=0, description="Orders created in the last N days"),
    status_filter: Optional[str] = Query(None, alias="status", description="All, an exact status or a fragment"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=200),
    method: Optional[str] = Query(None, description="Payment method (substring)"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    customer_name: Optional[str] = Query(None, description="Customer name or invoice"),
    customer: Optional[str] = Query(None, description="Customer name or email"),
    origin: Optional[str] = Query(None, description="Referral channel (substring)"),
    search: Optional[str] = Query(None, description="Order code, invoice, customer name or email"),
    sort_by: Optional[str] = Query(None, pattern="^(date|total|order_code)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    include_trashed: bool = Query(False),
    settings: Settings = Depends(get_settings),
) -> OrderFilters:
    """Query parameters shared by the order list and the CSV export."""
    return OrderFilters(
        day=day,
        status=status_filter,
        page=page,
        limit=limit or settings.DEFAULT_PAGE_LIMIT,
        method=method,
        start_date=start_date,
        end_date=end_date,
        customer_name=customer_name,
        customer=customer,
        origin=origin,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        include_trashed=include_trashed,
    )


# ============================================================================
# COLLECTION ENDPOINTS
# ============================================================================

@router.get("", response_model=OrderListResponse)
async def list_orders(
    filters: OrderFilters = Depends(get_order_filters),
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
):
    """
    List orders with filters, sorting and pagination.

    Trashed orders are hidden unless include_trashed=true. method_totals is
    only filled when both start_date and end_date are given.
    """
    result = order_service.list_orders(db, filters)
    pages = (result.total + result.limit - 1) // result.limit if result.total else 0
    return {
        "message": "Orders retrieved successfully",
        "orders": result.orders,
        "limits": result.limit,
        "pages": pages,
        "total_doc": result.total,
        "method_totals": result.method_totals,
        "status_counts": result.status_counts,
    }


@router.get("/export")
async def export_orders(
    filters: OrderFilters = Depends(get_order_filters),
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Export the filtered orders (no pagination, newest first) to CSV."""
    filters.sort_by = None
    filters.sort_order = "desc"
    orders = order_service.build_order_query(db, filters).all()

    rows = [
        format_order_for_export(order, settings.EXPORT_DATE_FORMAT, settings.EXPORT_TIME_FORMAT)
        for order in orders
    ]
    logger.info(f"Exported {len(rows)} orders", extra={"user_id": current_user.id})

    return StreamingResponse(
        iter([orders_to_csv(rows)]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=orders_export_{datetime.now().strftime('%Y%m%d')}.csv"
        }
    )


@router.get("/status-transitions", response_model=StatusTransitionsResponse, response_model_exclude_none=True)
async def get_order_status_transitions(
    current_status: Optional[str] = Query(None, description="Get transitions for a specific status"),
    current_user: User = Depends(get_current_staff_user),
):
    """
    Get the declared status transitions.

    Used by the admin frontend to offer the usual next statuses first.
    Transitions outside this graph are still accepted with a warning unless
    strict mode is enabled.
    """
    if current_status and current_status not in ORDER_STATUS_VALUES:
        raise ValidationError(
            f"Invalid status '{current_status}'. Must be one of: {', '.join(ORDER_STATUS_VALUES)}",
            field="current_status",
            value=current_status,
        )

    response = {
        "statuses": list(ORDER_STATUS_VALUES),
        "transitions": {s: get_allowed_transitions(s) for s in ORDER_STATUS_VALUES},
        "terminal_statuses": [s for s in ORDER_STATUS_VALUES if s in TERMINAL_STATUSES],
        "display_names": {s: get_status_display_name(s) for s in ORDER_STATUS_VALUES},
        "badge_colors": {s: get_status_badge_color(s) for s in ORDER_STATUS_VALUES},
    }
    if current_status:
        response["current_status"] = current_status
        response["allowed_transitions"] = get_allowed_transitions(current_status)
        response["is_terminal"] = is_terminal(current_status)
    return response


@router.get("/customer/{user_id}", response_model=List[OrderResponse])
async def get_customer_orders(
    user_id: int,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
):
    """All orders placed by one customer, newest first."""
    return order_service.get_orders_for_user(db, user_id)


@router.post("/bulk", response_model=BulkOrderResponse)
async def bulk_update_orders(
    request: BulkOrderRequest,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Apply ``trash`` or ``changeStatus`` to many orders.

    Each order succeeds or fails on its own; the response lists both.
    """
    result = bulk_apply(
        db,
        request.order_ids,
        request.action,
        current_user.id,
        status=request.status,
        reason=request.reason,
        strict=settings.STRICT_STATUS_TRANSITIONS,
    )
    return {
        "message": result.summary,
        "results": {"success": result.success, "failed": result.failed},
    }


# ============================================================================
# SINGLE ORDER ENDPOINTS
# ============================================================================

@router.get("/{order_id}", response_model=OrderDetailResponse)
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
):
    """Order with its status history (newest first) and shipment."""
    order = order_service.get_order_or_404(db, order_id)
    shipment = db.query(Shipment).filter(Shipment.order_id == order.id).first()
    return {
        "message": "Order retrieved successfully",
        "order": order,
        "status_history": get_history(db, order.id),
        "shipment": shipment,
    }


@router.api_route("/{order_id}", methods=["PUT", "PATCH"], response_model=OrderUpdateResponse)
async def update_order_endpoint(
    order_id: int,
    payload: OrderUpdate,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Update status, shipment_tracking, origin or is_trashed.

    A status change is checked against the transition graph: unusual
    transitions are applied and reported in ``warning`` (rejected with 400
    in strict mode). Every status change writes one history record.
    """
    result = update_order(
        db,
        order_id,
        payload.model_dump(exclude_unset=True),
        current_user.id,
        strict=settings.STRICT_STATUS_TRANSITIONS,
        max_retries=settings.STATUS_UPDATE_MAX_RETRIES,
    )
    return {
        "message": "Order Updated Successfully!",
        "order": result.order,
        "warning": result.warning,
    }


@router.delete("/{order_id}", response_model=MessageResponse)
async def delete_order(
    order_id: int,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
):
    """Soft delete: the order is moved to trash and keeps its history."""
    order_service.trash_order(db, order_id)
    return {"message": "Order moved to trash successfully!"}


@router.post("/{order_id}/notes", response_model=NotesResponse, status_code=status.HTTP_201_CREATED)
async def add_order_note(
    order_id: int,
    payload: NoteCreate = Body(...),
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
):
    """Append a staff note to an order."""
    notes = order_service.add_staff_note(db, order_id, payload.note, current_user.id)
    return {"message": "Note added successfully", "notes": notes}


@router.put("/{order_id}/shipment", response_model=ShipmentUpsertResponse)
async def upsert_order_shipment(
    order_id: int,
    payload: ShipmentUpdate,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
):
    """Create or update the order's shipment record."""
    shipment = order_service.upsert_shipment(db, order_id, payload)
    return {"message": "Shipment saved successfully", "shipment": shipment}
