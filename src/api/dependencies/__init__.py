"""API dependencies for dependency injection."""

from src.api.dependencies.certification import (
    get_caller_context,
    get_minting_controller,
    reset_certification_dependencies,
    set_minting_controller,
)

__all__: list[str] = [
    "get_caller_context",
    "get_minting_controller",
    "reset_certification_dependencies",
    "set_minting_controller",
]
