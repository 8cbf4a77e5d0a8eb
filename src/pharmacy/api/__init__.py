"""HTTP surface for the pharmacy core."""

from pharmacy.api.admin import admin_router
from pharmacy.api.orders import order_router
from pharmacy.api.reviews import medicine_router, review_router

__all__ = ["admin_router", "order_router", "review_router", "medicine_router"]
