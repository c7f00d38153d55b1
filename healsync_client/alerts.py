"""Transient status messages: the inline alert box and toast notifications."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_DURATION_MS = 3000


class AlertLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Notification(BaseModel):
    message: str
    level: AlertLevel = AlertLevel.INFO
    duration_ms: int = DEFAULT_DURATION_MS
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AlertBox:
    """Holds the message currently on screen plus everything shown so far."""

    def __init__(self) -> None:
        self.current: Notification | None = None
        self.history: list[Notification] = []

    @property
    def visible(self) -> bool:
        return self.current is not None

    def show(self, message: str, level: AlertLevel = AlertLevel.INFO,
             duration_ms: int = DEFAULT_DURATION_MS) -> Notification:
        note = Notification(message=message, level=AlertLevel(level), duration_ms=duration_ms)
        self.current = note
        self.history.append(note)
        log = logger.error if note.level is AlertLevel.ERROR else logger.info
        log("alert_shown", level=note.level.value, message=message)
        return note

    def success(self, message: str, duration_ms: int = DEFAULT_DURATION_MS) -> Notification:
        return self.show(message, AlertLevel.SUCCESS, duration_ms)

    def error(self, message: str, duration_ms: int = DEFAULT_DURATION_MS) -> Notification:
        return self.show(message, AlertLevel.ERROR, duration_ms)

    def warning(self, message: str, duration_ms: int = DEFAULT_DURATION_MS) -> Notification:
        return self.show(message, AlertLevel.WARNING, duration_ms)

    def info(self, message: str, duration_ms: int = DEFAULT_DURATION_MS) -> Notification:
        return self.show(message, AlertLevel.INFO, duration_ms)

    def clear(self) -> None:
        self.current = None
