"""
Dashboard Aggregation Service

Read-only projections over the order table for the admin dashboard. Nothing
here writes. Trashed orders are excluded everywhere, and every aggregate
comes back as 0 when nothing matches.

Revenue for a month is recognized when a Delivered order was last updated,
not when it was created.
"""
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Query, Session

from shopdesk.core.status_config import (
    ORDER_STATUS_VALUES,
    RECENT_ORDER_STATUS_PATTERNS,
    OrderStatus,
)
from shopdesk.models.order import Order


@dataclass
class DashboardCounts:
    total_order: int = 0
    pending_count: int = 0
    pending_total: Decimal = Decimal("0")
    processing_count: int = 0
    delivered_count: int = 0


@dataclass
class DashboardAmount:
    total_amount: Decimal = Decimal("0")
    this_month_amount: Decimal = Decimal("0")
    last_month_amount: Decimal = Decimal("0")
    trend_orders: List[Order] = field(default_factory=list)


@dataclass
class DashboardOverview:
    counts: DashboardCounts
    total_amount: Decimal
    this_month_amount: Decimal
    today_orders: List[Order]
    orders: List[Order]
    weekly_sale_report: List[Order]


def _live_orders(db: Session) -> Query:
    return db.query(Order).filter(Order.is_trashed.is_(False))


def _sum_total(query: Query) -> Decimal:
    value = query.with_entities(func.sum(Order.total)).scalar()
    return Decimal(str(value)) if value is not None else Decimal("0")


def _month_bounds(now: datetime) -> Tuple[datetime, datetime, datetime]:
    """(start of last month, start of this month, start of next month)"""
    this_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    last_month = (this_month - timedelta(days=1)).replace(day=1)
    next_month = (this_month + timedelta(days=32)).replace(day=1)
    return last_month, this_month, next_month


# ============================================================================
# COUNTS
# ============================================================================

def get_status_counts_by_status(db: Session) -> Dict[str, int]:
    """Order count for every status in the vocabulary (0 for unused ones)."""
    rows = (
        _live_orders(db)
        .with_entities(Order.status, func.count(Order.id))
        .group_by(Order.status)
        .all()
    )
    found = dict(rows)
    return {status: found.get(status, 0) for status in ORDER_STATUS_VALUES}


def get_dashboard_count(db: Session) -> DashboardCounts:
    """Total orders plus the Pending (count and value), Processing and Delivered counts."""
    live = _live_orders(db)
    pending = live.filter(Order.status == OrderStatus.PENDING.value)

    return DashboardCounts(
        total_order=live.count(),
        pending_count=pending.count(),
        pending_total=_sum_total(pending),
        processing_count=live.filter(Order.status == OrderStatus.PROCESSING.value).count(),
        delivered_count=live.filter(Order.status == OrderStatus.DELIVERED.value).count(),
    )


# ============================================================================
# REVENUE
# ============================================================================

def get_weekly_trend(db: Session, now: Optional[datetime] = None, days: int = 10) -> List[Order]:
    """Delivered orders last updated within the past ``days`` days, newest first."""
    now = now or datetime.utcnow()
    return (
        _live_orders(db)
        .filter(
            Order.status == OrderStatus.DELIVERED.value,
            Order.updated_at >= now - timedelta(days=days),
        )
        .order_by(desc(Order.updated_at), desc(Order.id))
        .all()
    )


def get_dashboard_amount(db: Session, now: Optional[datetime] = None, trend_days: int = 10) -> DashboardAmount:
    """
    Revenue figures for the dashboard.

    Args:
        db: Database session
        now: Reference time (defaults to utcnow)
        trend_days: Window for the delivered-orders trend

    Returns:
        DashboardAmount: total of all orders, Delivered revenue for this and
        last calendar month (by updated_at), and the trend orders.
    """
    now = now or datetime.utcnow()
    last_month, this_month, next_month = _month_bounds(now)
    delivered = _live_orders(db).filter(Order.status == OrderStatus.DELIVERED.value)

    return DashboardAmount(
        total_amount=_sum_total(_live_orders(db)),
        this_month_amount=_sum_total(
            delivered.filter(Order.updated_at >= this_month, Order.updated_at < next_month)
        ),
        last_month_amount=_sum_total(
            delivered.filter(Order.updated_at >= last_month, Order.updated_at < this_month)
        ),
        trend_orders=get_weekly_trend(db, now=now, days=trend_days),
    )


# ============================================================================
# FEEDS
# ============================================================================

def get_recent_orders(db: Session, page: int = 1, limit: int = 8) -> Tuple[List[Order], int]:
    """
    Most recently updated orders in an active status (Pending, Processing,
    Delivered or any Cancel* status).

    Returns:
        (orders on the requested page, total matching)
    """
    page = max(page, 1)
    limit = max(limit, 1)
    query = _live_orders(db).filter(
        or_(*[Order.status.ilike(f"%{pattern}%") for pattern in RECENT_ORDER_STATUS_PATTERNS])
    )
    total = query.count()
    orders = (
        query.order_by(desc(Order.updated_at), desc(Order.id))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return orders, total


def get_best_sellers(db: Session, limit: int = 4) -> List[Dict[str, object]]:
    """
    Top products by quantity sold, across every cart line of every order.

    Lines are grouped by product title. Ties are ordered by title.
    """
    sold: Counter = Counter()
    for (cart,) in _live_orders(db).with_entities(Order.cart).all():
        for line in cart or []:
            title = line.get("title")
            if not title:
                continue
            sold[title] += int(line.get("quantity") or 0)

    ranked = sorted(sold.items(), key=lambda item: (-item[1], item[0]))
    return [{"title": title, "count": count} for title, count in ranked[:limit]]


def get_dashboard_overview(
    db: Session,
    now: Optional[datetime] = None,
    page: int = 1,
    limit: int = 8,
    trend_days: int = 10,
) -> DashboardOverview:
    """Everything the dashboard landing page shows, in one call."""
    now = now or datetime.utcnow()
    _, this_month, next_month = _month_bounds(now)
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    page = max(page, 1)
    limit = max(limit, 1)

    live = _live_orders(db)
    orders = (
        live.order_by(desc(Order.created_at), desc(Order.id))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    today_orders = (
        live.filter(Order.created_at >= today_start)
        .order_by(desc(Order.created_at), desc(Order.id))
        .all()
    )

    return DashboardOverview(
        counts=get_dashboard_count(db),
        total_amount=_sum_total(live),
        this_month_amount=_sum_total(
            live.filter(Order.created_at >= this_month, Order.created_at < next_month)
        ),
        today_orders=today_orders,
        orders=orders,
        weekly_sale_report=get_weekly_trend(db, now=now, days=trend_days),
    )
