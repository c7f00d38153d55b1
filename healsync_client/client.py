"""Async HealSync backend client.

One short-lived httpx.AsyncClient per call, no retries. Every failure is
mapped onto the error taxonomy in ``errors`` so callers can decide whether
to fall back or to surface it.
"""
from __future__ import annotations

from typing import Any

import httpx

from . import config
from .errors import NotFoundError, ServerError, TransportError, backend_message
from .logging_config import get_logger
from .models import Appointment, Identifier

logger = get_logger(__name__)

_HEADERS = {"Accept": "application/json"}


def _url(path: str) -> str:
    return f"{config.BASE_URL}{path}"


def _book(path: str) -> str:
    return f"{config.API_PREFIX}/book{path}"


def _decode(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise ServerError(
            f"Malformed response from {resp.request.url.path}", status_code=resp.status_code
        ) from exc


def _raise_for_status(resp: httpx.Response) -> None:
    if resp.is_success:
        return
    try:
        payload = resp.json()
    except ValueError:
        payload = resp.text
    message = backend_message(payload) or f"HTTP {resp.status_code} from {resp.request.url.path}"
    if resp.status_code == 404:
        raise NotFoundError(message, status_code=404, payload=payload)
    if resp.status_code >= 500:
        raise ServerError(message, status_code=resp.status_code, payload=payload)
    raise TransportError(message, status_code=resp.status_code, payload=payload)


async def _request(method: str, path: str, params: dict | None = None) -> Any:
    """Issue one request and return the decoded JSON body."""
    try:
        async with httpx.AsyncClient(http2=True, timeout=config.HTTP_TIMEOUT) as client:
            resp = await client.request(method, _url(path), params=params, headers=_HEADERS)
    except httpx.HTTPError as exc:
        raise TransportError(f"{method} {path} failed: {exc}") from exc
    _raise_for_status(resp)
    return _decode(resp)


async def get_available_slots(specialty: str, date: str, duration_minutes: int) -> Any:
    """Raw availability payload; shape checking is left to the caller."""
    params = {"specialty": specialty, "date": date, "durationMinutes": duration_minutes}
    return await _request("GET", _book("/available-slots"), params=params)


async def book_appointment(
    specialty: str | None,
    start_date_time: str,
    end_date_time: str,
    patient_id: Identifier,
    doctor_id: Identifier | None = None,
    reason: str | None = None,
) -> Appointment:
    """Create an appointment. The backend takes query parameters only, no body."""
    params: dict[str, Any] = {
        "speciality": specialty or "",
        "startDateTime": start_date_time,
        "endDateTime": end_date_time,
        "patientId": patient_id,
    }
    if doctor_id is not None:
        params["doctorId"] = doctor_id
    if reason:
        params["reason"] = reason

    payload = await _request("POST", _book("/appointment"), params=params)
    # the Express backend wraps the document as {"message": ..., "appointment": {...}}
    if isinstance(payload, dict) and isinstance(payload.get("appointment"), dict):
        payload = payload["appointment"]
    if not isinstance(payload, dict):
        raise ServerError("Malformed appointment returned by backend", payload=payload)
    return Appointment.model_validate(payload)


async def check_availability(doctor_id: Identifier, start_date_time: str, end_date_time: str) -> dict:
    params = {"doctorId": doctor_id, "startDateTime": start_date_time, "endDateTime": end_date_time}
    payload = await _request("GET", _book("/check-availability"), params=params)
    if not isinstance(payload, dict):
        raise ServerError("Malformed availability check", payload=payload)
    return payload


async def get_doctor_patients(doctor_id: Identifier) -> list[dict]:
    payload = await _request("GET", f"{config.API_PREFIX}/doctor/{doctor_id}/patients")
    if not isinstance(payload, list):
        raise ServerError("Doctor patients response is not a list", payload=payload)
    return payload


def _doctor_appointment_endpoints(doctor_id: Identifier) -> list[tuple[str, dict | None]]:
    return [
        (_book("/doctor/appointments"), {"doctorId": doctor_id}),
        (_book("/filter"), {"doctorId": doctor_id}),
        (f"/api/appointments/doctor/{doctor_id}", None),  # legacy Express route
    ]


async def get_doctor_appointments(doctor_id: Identifier) -> list[dict]:
    """Return the doctor's appointments from the first endpoint that answers.

    Raises the last error when none of the known endpoints respond.
    """
    last_error: Exception | None = None
    for path, params in _doctor_appointment_endpoints(doctor_id):
        try:
            payload = await _request("GET", path, params=params)
        except (TransportError, ServerError) as exc:
            logger.warning("doctor_appointments_endpoint_failed", path=path, error=exc.message)
            last_error = exc
            continue
        logger.debug("doctor_appointments_fetched", path=path)
        return payload if isinstance(payload, list) else [payload]
    raise last_error or NotFoundError(f"No appointment endpoint for doctor {doctor_id}")


async def get_patient_appointments(patient_id: Identifier) -> list[dict]:
    payload = await _request("GET", _book("/patient/appointments"), params={"patientId": patient_id})
    if not isinstance(payload, list):
        raise ServerError("Patient appointments response is not a list", payload=payload)
    return payload
