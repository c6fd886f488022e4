"""
Order Dashboard Endpoints

Read-only aggregates for the admin dashboard. Mounted under /orders ahead
of the order router so these paths are not taken for an order id.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopdesk.api.v1.deps import get_current_staff_user
from shopdesk.core.settings import Settings, get_settings
from shopdesk.db.session import get_db
from shopdesk.models.user import User
from shopdesk.schemas.dashboard import (
    BestSellerResponse,
    DashboardAmountResponse,
    DashboardCountResponse,
    DashboardOverviewResponse,
    RecentOrdersResponse,
    StatusCountsResponse,
)
from shopdesk.services import dashboard

router = APIRouter(prefix="/orders", tags=["Orders - Dashboard"])


def _pending(counts: dashboard.DashboardCounts) -> dict:
    return {"count": counts.pending_count, "total": float(counts.pending_total)}


@router.get("/dashboard", response_model=DashboardOverviewResponse)
async def get_dashboard_overview(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=200),
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Landing page figures: totals, today's orders, latest orders and the delivered trend."""
    overview = dashboard.get_dashboard_overview(
        db,
        page=page,
        limit=limit or settings.DASHBOARD_PAGE_LIMIT,
        trend_days=settings.WEEKLY_TREND_DAYS,
    )
    return {
        "message": "Dashboard retrieved successfully",
        "total_order": overview.counts.total_order,
        "total_amount": float(overview.total_amount),
        "today_order": overview.today_orders,
        "total_amount_of_this_month": float(overview.this_month_amount),
        "total_pending_order": _pending(overview.counts),
        "total_processing_order": overview.counts.processing_count,
        "total_delivered_order": overview.counts.delivered_count,
        "orders": overview.orders,
        "weekly_sale_report": overview.weekly_sale_report,
    }


@router.get("/dashboard-recent-order", response_model=RecentOrdersResponse)
async def get_dashboard_recent_orders(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=200),
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Most recently updated Pending / Processing / Delivered / Cancel* orders."""
    limit = limit or settings.DASHBOARD_PAGE_LIMIT
    orders, total = dashboard.get_recent_orders(db, page=page, limit=limit)
    return {
        "message": "Recent orders retrieved successfully",
        "orders": orders,
        "page": page,
        "limit": limit,
        "total_order": total,
    }


@router.get("/dashboard-count", response_model=DashboardCountResponse)
async def get_dashboard_count(
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
):
    """Total orders and the Pending / Processing / Delivered counts."""
    counts = dashboard.get_dashboard_count(db)
    return {
        "message": "Order counts retrieved successfully",
        "total_order": counts.total_order,
        "total_pending_order": _pending(counts),
        "total_processing_order": counts.processing_count,
        "total_delivered_order": counts.delivered_count,
    }


@router.get("/dashboard-amount", response_model=DashboardAmountResponse)
async def get_dashboard_amount(
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Total revenue, Delivered revenue this and last month, and the delivered trend."""
    amount = dashboard.get_dashboard_amount(db, trend_days=settings.WEEKLY_TREND_DAYS)
    return {
        "message": "Order amounts retrieved successfully",
        "total_amount": float(amount.total_amount),
        "this_monthly_order_amount": float(amount.this_month_amount),
        "last_month_order_amount": float(amount.last_month_amount),
        "orders_data": amount.trend_orders,
    }


@router.get("/dashboard-status-counts", response_model=StatusCountsResponse)
async def get_dashboard_status_counts(
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
):
    """Order count per status."""
    counts = dashboard.get_status_counts_by_status(db)
    return {
        "message": "Status counts retrieved successfully",
        "counts": counts,
        "total": sum(counts.values()),
    }


@router.get("/best-seller/chart", response_model=BestSellerResponse)
async def get_best_seller_chart(
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Top products by quantity sold."""
    return {
        "message": "Best sellers retrieved successfully",
        "total_doc": dashboard.get_dashboard_count(db).total_order,
        "best_selling_product": dashboard.get_best_sellers(db, limit=settings.BEST_SELLER_LIMIT),
    }
