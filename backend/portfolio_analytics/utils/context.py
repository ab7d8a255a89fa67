# backend/portfolio_analytics/utils/context.py
"""
Request-scoped context for Portfolio Analytics.

Holds the correlation ID of the request being served and the user whose
portfolio is being analysed, so log records emitted deep inside the analytics
can be traced back to one HTTP call.

Backed by contextvars, which are isolated per request (thread or task) and
propagate through async/await.

Usage:
    from portfolio_analytics.utils.context import set_correlation_id, set_user_id

    set_correlation_id("abc-123")   # middleware
    set_user_id("user-42")          # router
"""

from contextvars import ContextVar

# =============================================================================
# CONTEXT VARIABLES
# =============================================================================

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

_user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)


# =============================================================================
# CORRELATION ID
# =============================================================================

def get_correlation_id() -> str | None:
    """Return the current request's correlation ID, or None outside a request."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current request.

    Called by the correlation middleware before the route handler runs.
    """
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


# =============================================================================
# USER
# =============================================================================

def get_user_id() -> str | None:
    """Return the user whose portfolio the current request targets."""
    return _user_id_var.get()


def set_user_id(user_id: str) -> None:
    _user_id_var.set(user_id)


def clear_request_context() -> None:
    """
    Clear all request-scoped values.

    Called by the correlation middleware once the response is produced.
    """
    _correlation_id_var.set(None)
    _user_id_var.set(None)
