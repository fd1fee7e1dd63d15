"""Access control adapters."""

from src.infrastructure.adapters.access.service_token_access_control import (
    ServiceTokenAccessControl,
)

__all__ = ["ServiceTokenAccessControl"]
