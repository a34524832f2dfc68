"""API routers."""

from pulsecity.routers.health import router as health_router
from pulsecity.routers.intelligence import router as intelligence_router
from pulsecity.routers.metrics import router as metrics_router

__all__ = [
    "health_router",
    "intelligence_router",
    "metrics_router",
]
