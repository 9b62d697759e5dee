"""Context propagation for parent-child span relationships."""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spanwire._span import Span

_active_span: ContextVar[Span | None] = ContextVar("_active_span", default=None)


def active_span() -> Span | None:
    """Return the span currently open in this context, or None."""
    return _active_span.get()


def activate(span: Span | None) -> Token[Span | None]:
    """Make ``span`` the active span; pass the token to ``deactivate``."""
    return _active_span.set(span)


def deactivate(token: Token[Span | None]) -> None:
    _active_span.reset(token)
