"""
Tracing Context - Request-scoped context for log correlation.

Every API request gets a correlation id (taken from the inbound X-Request-ID
header or generated). Handlers add the estate and acting user once they are
known, and the JSON log formatter stamps all three onto each log line.

Usage:
    TracingContext.set(correlation_id="abc-123", estate_id="65f0...")
    ctx = TracingContext.get()
    TracingContext.clear()
"""

import uuid
from contextvars import ContextVar
from typing import Dict

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_estate_id: ContextVar[str] = ContextVar("estate_id", default="")
_user_id: ContextVar[str] = ContextVar("user_id", default="")


class TracingContext:
    """Context-local tracing fields for the current request."""

    @staticmethod
    def set(
        correlation_id: str = "",
        estate_id: str = "",
        user_id: str = "",
    ) -> None:
        """Set tracing context for current execution."""
        if correlation_id:
            _correlation_id.set(correlation_id)
        if estate_id:
            _estate_id.set(estate_id)
        if user_id:
            _user_id.set(user_id)

    @staticmethod
    def get() -> Dict[str, str]:
        """Get current tracing context as dict."""
        return {
            "correlation_id": _correlation_id.get(),
            "estate_id": _estate_id.get(),
            "user_id": _user_id.get(),
        }

    @staticmethod
    def get_or_create_correlation_id() -> str:
        """Get current correlation ID or create a new one."""
        corr_id = _correlation_id.get()
        if not corr_id:
            corr_id = str(uuid.uuid4())
            _correlation_id.set(corr_id)
        return corr_id

    @staticmethod
    def clear() -> None:
        """Clear all tracing context."""
        _correlation_id.set("")
        _estate_id.set("")
        _user_id.set("")

