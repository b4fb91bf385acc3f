"""Collector Hub exceptions.

Every domain error derives from CollectorError and carries the HTTP status
the API layer answers with.
"""

from typing import Any, Optional


class CollectorError(Exception):
    """Base class for Collector Hub errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(CollectorError):
    """Missing or invalid request fields."""

    status_code = 400


class NotFoundError(CollectorError):
    """Referenced row does not exist."""

    status_code = 404


class ClaimConflictError(CollectorError):
    """Entries were claimed by someone else between select and update."""

    status_code = 409


class StoreError(CollectorError):
    """Backing store call failed."""

    status_code = 500


class WebhookNotConfiguredError(CollectorError):
    """Trigger requested but no webhook URL is set."""

    status_code = 500


class UpstreamError(CollectorError):
    """Workflow webhook returned non-2xx or was unreachable."""

    status_code = 502
