"""Exception types raised by the Jupiter client.

The limiter never raises on the hot path: acquire waits instead of failing.
Errors surface only from misconfiguration, strict response validation and
misuse of the connector lifecycle.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class JupiterError(Exception):
    """Base class for every error raised by this package."""


class RateLimiterConfigError(JupiterError, ValueError):
    """Quota or period is zero, negative or not a finite number."""


class InvalidResponseError(JupiterError):
    """Jupiter answered with a payload that does not match its schema."""

    def __init__(
        self,
        message: str = "Invalid response from Jupiter API",
        *,
        errors: Optional[List[Dict[str, str]]] = None,
        data: Any = None,
    ):
        super().__init__(message)
        self.errors = errors or []
        self.data = data


class ConnectorNotReadyError(JupiterError, RuntimeError):
    """Connector used before connect() or after disconnect()."""
