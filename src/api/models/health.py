"""Health check response models."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness check body.

    Attributes:
        status: Always "healthy" when the process can serve requests.
        service: Service name.
        version: Package version.
    """

    status: str
    service: str = "asset-certification"
    version: str
