"""
API v1 Router - ShopDesk
"""
from fastapi import APIRouter
from shopdesk.api.v1.endpoints import (
    dashboard,
    orders,
    customer_orders,
)

router = APIRouter()

# Dashboard aggregates (fixed /orders/... paths, before /orders/{order_id})
router.include_router(dashboard.router)

# Order management (staff)
router.include_router(orders.router)

# Customer checkout and tracking
router.include_router(customer_orders.router)
