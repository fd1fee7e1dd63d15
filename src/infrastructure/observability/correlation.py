"""Correlation ids for tracing a certification across awaits.

A certification request spans an HTTP handler, a store CAS, a ledger
broadcast and a confirmation wait that can last minutes. The id lives in a
contextvar so every log line on that path carries it, and the reconciliation
sweep runs under one id per pass.

Usage:
    with correlation_scope(request.headers.get("X-Correlation-ID")) as cid:
        ...

    processors = [..., correlation_id_processor, ...]
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any
from uuid import uuid4

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    return str(uuid4())


def get_correlation_id() -> str:
    """Current correlation id, empty when none is set."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> Token[str]:
    """Set the id; pass the returned token to reset_correlation_id()."""
    return _correlation_id.set(correlation_id)


def reset_correlation_id(token: Token[str]) -> None:
    _correlation_id.reset(token)


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Run a block under a correlation id, generating one when absent.

    Args:
        correlation_id: Incoming id (e.g. from X-Correlation-ID), or None.

    Yields:
        The id in effect inside the block.
    """
    effective = correlation_id or generate_correlation_id()
    token = set_correlation_id(effective)
    try:
        yield effective
    finally:
        reset_correlation_id(token)


def correlation_id_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor stamping the current correlation id."""
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict
