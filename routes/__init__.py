"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.customers import router as customers_router
from routes.alerts import router as alerts_router
from routes.containers import router as containers_router
from routes.ingest import router as ingest_router
from routes.orders import router as orders_router

__all__ = [
    "customers_router",
    "alerts_router",
    "containers_router",
    "ingest_router",
    "orders_router",
]
