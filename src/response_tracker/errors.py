"""Custom exception types for the GitHub response time tracker."""

from __future__ import annotations

from typing import Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import QuotaStatus


class ResponseTrackerError(Exception):
    """Base exception for all recoverable response tracker errors."""


class ConfigurationError(ResponseTrackerError):
    """Raised when runtime configuration values are missing or invalid."""


class AuthenticationError(ResponseTrackerError):
    """Raised when GitHub credentials are unavailable or rejected."""


class ApiError(ResponseTrackerError):
    """Raised when a GitHub API request fails or returns an unexpected response."""


class RateLimitError(ApiError):
    """Raised when the GitHub request quota is exhausted.

    The run is aborted rather than waiting for the reset; ``quota`` carries the
    status of each API category when a status probe was possible.
    """

    remediation = (
        "Wait for the rate limit to reset and try again, or use a shorter "
        "date range or fewer repositories to reduce API calls."
    )

    def __init__(self, message: str, quota: Optional[Dict[str, "QuotaStatus"]] = None) -> None:
        super().__init__(message)
        self.quota: Dict[str, "QuotaStatus"] = dict(quota or {})


class NotificationError(ResponseTrackerError):
    """Raised when delivering the report to Slack fails."""
