"""
API routes for asset certification.

Available routers:
- certification: Certification request and status endpoints
- health: Health check endpoint
- metrics: Prometheus scrape endpoint
"""

from src.api.routes.certification import router as certification_router
from src.api.routes.health import router as health_router
from src.api.routes.metrics import router as metrics_router

__all__: list[str] = ["certification_router", "health_router", "metrics_router"]
