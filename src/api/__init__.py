"""
API layer - FastAPI routes and HTTP concerns for asset certification.

This layer contains:
- FastAPI route definitions
- Request/Response DTOs
- HTTP middleware

IMPORT RULES:
- CAN import from: application, domain, bootstrap, infrastructure.observability
- CANNOT import from: infrastructure directly
- Uses dependency injection for infrastructure adapters
"""

__all__: list[str] = []
