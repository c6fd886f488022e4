"""
Dashboard Pydantic Schemas

Money is rendered as float here; the services keep it as Decimal.
"""
from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime


class DashboardOrder(BaseModel):
    """Compact order row for dashboard lists"""
    id: int
    invoice: int
    order_code: str
    customer_name: Optional[str] = None
    payment_method: str
    total: float
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PendingSummary(BaseModel):
    count: int = 0
    total: float = 0.0


class DashboardCountResponse(BaseModel):
    message: str
    total_order: int
    total_pending_order: PendingSummary
    total_processing_order: int
    total_delivered_order: int


class TrendPoint(BaseModel):
    """Delivered order in the weekly trend window"""
    id: int
    payment_method: str
    total: float
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DashboardAmountResponse(BaseModel):
    message: str
    total_amount: float
    this_monthly_order_amount: float
    last_month_order_amount: float
    orders_data: List[TrendPoint]


class RecentOrdersResponse(BaseModel):
    message: str
    orders: List[DashboardOrder]
    page: int
    limit: int
    total_order: int


class BestSellerEntry(BaseModel):
    title: str
    count: int


class BestSellerResponse(BaseModel):
    message: str
    total_doc: int
    best_selling_product: List[BestSellerEntry]


class StatusCountsResponse(BaseModel):
    """Order count for every status in the vocabulary"""
    message: str
    counts: Dict[str, int]
    total: int


class DashboardOverviewResponse(BaseModel):
    message: str
    total_order: int
    total_amount: float
    today_order: List[DashboardOrder]
    total_amount_of_this_month: float
    total_pending_order: PendingSummary
    total_processing_order: int
    total_delivered_order: int
    orders: List[DashboardOrder]
    weekly_sale_report: List[TrendPoint]
