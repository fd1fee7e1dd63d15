"""Certification API dependencies.

Dependency injection for the certification routes. The controller comes
from the minting composition root; tests override it with
set_minting_controller().
"""

from fastapi import Header

from src.application.services.minting_controller import MintingController
from src.bootstrap.minting import get_minting_components, reset_minting_components
from src.domain.models.caller_context import CallerContext

BEARER_PREFIX = "bearer "

_minting_controller: MintingController | None = None


def get_minting_controller() -> MintingController:
    """Get the minting controller instance.

    Returns the override when one is set, otherwise the controller wired
    by src.bootstrap.minting.
    """
    if _minting_controller is not None:
        return _minting_controller
    return get_minting_components().controller


def set_minting_controller(controller: MintingController) -> None:
    """Set a custom minting controller (testing/override)."""
    global _minting_controller
    _minting_controller = controller


def reset_certification_dependencies() -> None:
    """Reset certification singletons (testing cleanup)."""
    global _minting_controller
    _minting_controller = None
    reset_minting_components()


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX) :].strip()
    return token or None


def get_caller_context(
    x_caller_id: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
) -> CallerContext:
    """Build the caller context from gateway-asserted headers.

    X-Caller-Id carries the owner identity; Authorization: Bearer carries
    the service credential.
    """
    return CallerContext(
        caller_id=x_caller_id.strip() if x_caller_id and x_caller_id.strip() else None,
        service_credentials=_bearer_token(authorization),
    )
