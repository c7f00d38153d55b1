"""Error taxonomy shared by the booking workflow."""
from __future__ import annotations

from typing import Any


class HealSyncError(Exception):
    """Base class; carries the HTTP status and decoded body when there is one."""

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class ValidationError(HealSyncError):
    """Local, user-correctable input problem. Never reaches the network."""


class TransportError(HealSyncError):
    """Network failure or an unexpected non-2xx response."""


class NotFoundError(TransportError):
    """HTTP 404, usually an endpoint the backend has not implemented yet."""


class ServerError(HealSyncError):
    """HTTP 5xx or a payload that does not match the expected shape."""


def backend_message(payload: Any) -> str | None:
    """Pick the human readable message out of a backend error body."""
    if isinstance(payload, dict):
        for key in ("message", "detail", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return None
