"""Booking form controller: validate, submit once, report, then navigate."""
from __future__ import annotations

import asyncio
import inspect
from datetime import datetime, timedelta
from typing import Any, Callable

from . import client, config
from .alerts import AlertBox
from .errors import HealSyncError, ValidationError, backend_message
from .logging_config import get_logger
from .models import Appointment, BookingForm, BookingResult, Identifier
from .session import Session
from .slots import SlotOption, SlotSelect
from .storage import APPOINTMENTS_KEY, LocalStore, default_store, store_appointment

logger = get_logger(__name__)

SUCCESS_MESSAGE = "Appointment booked successfully!"
FAILURE_MESSAGE = "Failed to book appointment."
REQUIRED_MESSAGE = "All fields are required."
DOCTOR_REQUIRED_MESSAGE = "Please select a doctor for this appointment."
LOGIN_REQUIRED_MESSAGE = "Please log in as a patient to book an appointment."
IN_FLIGHT_MESSAGE = "Booking already in progress."

_ISO = "%Y-%m-%dT%H:%M:%S"

Navigate = Callable[[str], Any]


class BookingController:
    def __init__(
        self,
        session: Session,
        alerts: AlertBox,
        store: LocalStore | None = None,
        navigate: Navigate | None = None,
        redirect_delay: float | None = None,
        redirect_to: str = "/patient-profile",
    ):
        self.session = session
        self.alerts = alerts
        self.store = store
        self.navigate = navigate
        self.redirect_delay = config.REDIRECT_DELAY if redirect_delay is None else redirect_delay
        self.redirect_to = redirect_to
        self.form = BookingForm()
        self.submitting = False
        self._doctor_from_slot = False

    @property
    def disabled(self) -> bool:
        return self.submitting

    def bind_slot_select(self, select: SlotSelect) -> None:
        select.on_change(self._apply_slot)

    def choose_doctor(self, doctor_id: Identifier | None) -> None:
        self.form.doctor_id = doctor_id
        self._doctor_from_slot = False

    def _apply_slot(self, option: SlotOption) -> None:
        self.form.time = option.value
        self.form.end_time = option.end_time
        if option.doctor_id is not None:
            self.form.doctor_id = option.doctor_id
            self._doctor_from_slot = True
        elif self._doctor_from_slot:
            # a default-schedule slot has no doctor; drop the one a live slot filled in
            self.form.doctor_id = None
            self._doctor_from_slot = False

    def _validate(self, form: BookingForm) -> tuple[str, str]:
        missing = [
            name for name, value in (
                ("doctor", form.doctor_id),
                ("date", form.date),
                ("time", form.time),
                ("reason", form.reason and form.reason.strip()),
            )
            if value in (None, "")
        ]
        if missing == ["doctor"]:
            raise ValidationError(DOCTOR_REQUIRED_MESSAGE)
        if missing:
            raise ValidationError(REQUIRED_MESSAGE, payload=missing)
        if not self.session.is_patient:
            raise ValidationError(LOGIN_REQUIRED_MESSAGE)

        try:
            start = datetime.strptime(f"{form.date} {form.time}", "%Y-%m-%d %H:%M")
        except ValueError as exc:
            raise ValidationError("Enter the date as YYYY-MM-DD and the time as HH:MM.") from exc
        if form.end_time:
            try:
                end = datetime.strptime(f"{form.date} {form.end_time}", "%Y-%m-%d %H:%M")
            except ValueError as exc:
                raise ValidationError(f"Invalid end time: {form.end_time!r}") from exc
            if end <= start:
                raise ValidationError("The appointment must end after it starts.")
        else:
            end = start + timedelta(minutes=config.SLOT_DURATION_MINUTES)
        return start.strftime(_ISO), end.strftime(_ISO)

    async def submit_booking(self, form: BookingForm | None = None) -> BookingResult:
        if self.submitting:
            logger.warning("booking_in_flight")
            return BookingResult(error=IN_FLIGHT_MESSAGE, error_kind="busy")
        form = form or self.form
        self.alerts.clear()

        try:
            start, end = self._validate(form)
        except ValidationError as exc:
            self.alerts.error(exc.message)
            return BookingResult(error=exc.message, error_kind="validation")

        self.submitting = True
        try:
            appointment = await client.book_appointment(
                form.specialty,
                start,
                end,
                self.session.patient_id,
                doctor_id=form.doctor_id,
                reason=form.reason,
            )
        except HealSyncError as exc:
            message = backend_message(exc.payload) or FAILURE_MESSAGE
            logger.warning("booking_failed", status=exc.status_code, error=exc.message)
            self.alerts.error(message)
            return BookingResult(error=message, error_kind="backend")
        finally:
            self.submitting = False

        appointment = _fill_from_request(appointment, form, self.session, start, end)
        logger.info("appointment_booked", appointment_id=appointment.appointment_id,
                    doctor_id=appointment.doctor_id)
        self.alerts.success(SUCCESS_MESSAGE)
        if self.store is not None:
            store_appointment(self.store, appointment, self.session)
        await self._redirect()
        return BookingResult(appointment=appointment)

    async def _redirect(self) -> None:
        if self.navigate is None:
            return
        await asyncio.sleep(self.redirect_delay)
        outcome = self.navigate(self.redirect_to)
        if inspect.isawaitable(outcome):
            await outcome


def _fill_from_request(appointment: Appointment, form: BookingForm, session: Session,
                       start: str, end: str) -> Appointment:
    """Backfill fields the backend did not echo so the cached copy is complete."""
    known = {
        "patient_id": session.patient_id,
        "patient_name": session.name,
        "doctor_id": form.doctor_id,
        "specialty": form.specialty,
        "date": form.date,
        "start_time": form.time,
        "end_time": end[11:16],
        "start_date_time": start,
        "end_date_time": end,
        "reason": form.reason,
    }
    update = {k: v for k, v in known.items() if v is not None and getattr(appointment, k) is None}
    return appointment.model_copy(update=update)


async def fetch_patient_appointments(patient_id: Identifier, store: LocalStore | None = None) -> list[dict]:
    """Patient's own appointments; cached bookings stand in when the API is down."""
    try:
        return await client.get_patient_appointments(patient_id)
    except HealSyncError as exc:
        logger.warning("patient_appointments_unavailable", patient_id=patient_id, error=exc.message)
    store = store if store is not None else default_store()
    return [
        record for record in store.get_list(APPOINTMENTS_KEY)
        if isinstance(record, dict) and str(record.get("patientId")) == str(patient_id)
    ]
