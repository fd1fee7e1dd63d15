"""Liveness endpoint.

Does not touch the database or the ledger RPC; readiness of those is
reported per request through the certification error taxonomy.
"""

from fastapi import APIRouter

from src import __version__
from src.api.models.health import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(status="healthy", version=__version__)
