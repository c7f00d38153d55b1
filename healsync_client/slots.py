"""Slot availability lookup for the booking form.

A failed or malformed availability response never blocks the user: the
form falls back to a fixed business-hours schedule that carries no doctor.
"""
from __future__ import annotations

from datetime import date as date_cls
from typing import Callable

from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from . import client, config
from .errors import HealSyncError, ValidationError
from .logging_config import get_logger
from .models import Identifier, Slot

logger = get_logger(__name__)

DEFAULT_SLOTS: tuple[Slot, ...] = tuple(
    Slot(start_time=start, end_time=end)
    for start, end in (
        ("09:00", "10:00"),
        ("10:00", "11:00"),
        ("11:00", "12:00"),
        ("14:00", "15:00"),
        ("15:00", "16:00"),
        ("16:00", "17:00"),
    )
)

NO_SLOTS_MESSAGE = "No slots available for this date"


class SlotOption(BaseModel):
    value: str
    label: str
    doctor_id: Identifier | None = None
    end_time: str | None = None


class SlotSelect:
    """Time picker fed by the availability lookup.

    Listeners registered with ``on_change`` receive the chosen option.
    """

    def __init__(self) -> None:
        self.options: list[SlotOption] = []
        self.selected: SlotOption | None = None
        self.empty_message: str | None = None
        self.is_fallback = False
        self._listeners: list[Callable[[SlotOption], None]] = []

    def on_change(self, listener: Callable[[SlotOption], None]) -> None:
        self._listeners.append(listener)

    def populate(self, slots: list[Slot]) -> None:
        self.selected = None
        self.is_fallback = False
        self.options = [
            SlotOption(
                value=slot.start_time,
                label=f"{slot.start_time} - {slot.end_time or 'N/A'} ({slot.doctor_name or 'Doctor'})",
                doctor_id=slot.doctor_id,
                end_time=slot.end_time,
            )
            for slot in slots
        ]
        self.empty_message = None if self.options else NO_SLOTS_MESSAGE

    def show_defaults(self) -> None:
        self.selected = None
        self.is_fallback = True
        self.empty_message = None
        self.options = [
            SlotOption(value=slot.start_time, label=_twelve_hour_range(slot), end_time=slot.end_time)
            for slot in DEFAULT_SLOTS
        ]

    def select(self, value: str) -> SlotOption:
        for option in self.options:
            if option.value == value:
                self.selected = option
                for listener in self._listeners:
                    listener(option)
                return option
        raise ValidationError(f"{value} is not an available time")


def _twelve_hour(hhmm: str) -> str:
    hour, minute = (int(part) for part in hhmm.split(":"))
    period = "AM" if hour < 12 else "PM"
    return f"{(hour % 12) or 12:02d}:{minute:02d} {period}"


def _twelve_hour_range(slot: Slot) -> str:
    return f"{_twelve_hour(slot.start_time)} - {_twelve_hour(slot.end_time)}"


def _validate_query(specialty: str, day: str) -> None:
    if not specialty or not specialty.strip():
        raise ValidationError("Specialty is required to look up slots")
    try:
        date_cls.fromisoformat(day)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid appointment date: {day!r}") from exc


def _parse_slots(payload: list) -> list[Slot]:
    slots = []
    for item in payload:
        try:
            slots.append(Slot.model_validate(item))
        except ModelValidationError:
            logger.warning("slot_skipped", slot=item)
    return slots


async def fetch_slots(specialty: str, date: str, select: SlotSelect | None = None) -> list[Slot]:
    """Return open slots for a specialty on a date.

    Live data is returned as-is, including an empty list. Transport failures
    and non-list bodies yield the default schedule instead.
    """
    _validate_query(specialty, date)
    try:
        payload = await client.get_available_slots(specialty, date, config.SLOT_DURATION_MINUTES)
    except HealSyncError as exc:
        logger.warning("slots_unavailable", specialty=specialty, date=date, error=exc.message)
        payload = None

    if not isinstance(payload, list):
        if payload is not None:
            logger.warning("slots_malformed", specialty=specialty, date=date)
        if select is not None:
            select.show_defaults()
        return [slot.model_copy() for slot in DEFAULT_SLOTS]

    slots = _parse_slots(payload)
    logger.info("slots_fetched", specialty=specialty, date=date, count=len(slots))
    if select is not None:
        select.populate(slots)
    return slots


async def check_slot_availability(doctor_id: Identifier, start_date_time: str, end_date_time: str) -> dict:
    """Ask the backend whether a doctor is free; assume free when it cannot answer."""
    try:
        return await client.check_availability(doctor_id, start_date_time, end_date_time)
    except HealSyncError as exc:
        logger.warning("availability_check_failed", doctor_id=doctor_id, error=exc.message)
        return {"available": True, "conflicts": []}
