"""Local key/value persistence mirroring the browser's localStorage.

Values are JSON-encoded. With a path the whole store is kept in one JSON
file, otherwise it lives in memory for the life of the object.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from . import config
from .logging_config import get_logger
from .models import Appointment

logger = get_logger(__name__)

APPOINTMENTS_KEY = "healsync_appointments"
BOOKINGS_KEY = "healSync_bookings"
DOCTOR_PATIENTS_KEY = "doctor_patients"
SESSION_KEY = "healSync_patient_data"


class LocalStore:
    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else None
        self._items: dict[str, str] = {}
        if self.path and self.path.exists():
            self._items = self._load(self.path)

    @staticmethod
    def _load(path: Path) -> dict[str, str]:
        try:
            items = json.loads(path.read_text() or "{}")
        except ValueError:
            logger.warning("store_file_corrupt", path=str(path))
            return {}
        if not isinstance(items, dict):
            logger.warning("store_file_corrupt", path=str(path))
            return {}
        return {key: value for key, value in items.items() if isinstance(value, str)}

    def get_raw(self, key: str) -> str | None:
        return self._items.get(key)

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._items.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("store_value_corrupt", key=key)
            return default

    def get_list(self, key: str) -> list:
        value = self.get(key, [])
        if not isinstance(value, list):
            logger.warning("store_value_not_list", key=key)
            return []
        return value

    def set(self, key: str, value: Any) -> None:
        self._items[key] = json.dumps(value)
        self._flush()

    def set_raw(self, key: str, raw: str) -> None:
        self._items[key] = raw
        self._flush()

    def remove(self, key: str) -> None:
        self._items.pop(key, None)
        self._flush()

    def _flush(self) -> None:
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self._items))


def default_store() -> LocalStore:
    """Store at the configured path, or a throwaway in-memory one."""
    return LocalStore(config.STORE_PATH or None)


def _appointment_count(entry: dict) -> int:
    try:
        return int(entry.get("totalAppointments", 0))
    except (TypeError, ValueError):
        logger.warning("store_value_corrupt", key=DOCTOR_PATIENTS_KEY, field="totalAppointments")
        return 0


def store_appointment(store: LocalStore, appointment: Appointment, session=None) -> None:
    """Cache a freshly booked appointment and update the doctor's patient roster."""
    record = appointment.model_dump(by_alias=True, mode="json", exclude_none=True)
    appointments = store.get_list(APPOINTMENTS_KEY)
    appointments.append(record)
    store.set(APPOINTMENTS_KEY, appointments)

    if appointment.doctor_id is None:
        return
    roster = store.get(DOCTOR_PATIENTS_KEY, {})
    if not isinstance(roster, dict):
        logger.warning("store_value_corrupt", key=DOCTOR_PATIENTS_KEY)
        roster = {}
    doctor_key = str(appointment.doctor_id)
    entries = roster.get(doctor_key, [])
    if not isinstance(entries, list):
        logger.warning("store_value_corrupt", key=DOCTOR_PATIENTS_KEY, doctor_id=doctor_key)
        entries = []
    patients = [entry for entry in entries if isinstance(entry, dict)]
    if len(patients) != len(entries):
        logger.warning("store_value_corrupt", key=DOCTOR_PATIENTS_KEY, doctor_id=doctor_key,
                       dropped=len(entries) - len(patients))
    roster[doctor_key] = patients
    last_seen = appointment.start_date_time or appointment.date
    for entry in patients:
        if str(entry.get("patientId")) == str(appointment.patient_id):
            entry["lastAppointment"] = last_seen
            entry["totalAppointments"] = _appointment_count(entry) + 1
            break
    else:
        patients.append({
            "patientId": appointment.patient_id,
            "name": appointment.patient_name or (session.name if session else None),
            "email": session.email if session else "",
            "phone": session.phone if session else "",
            "lastAppointment": last_seen,
            "totalAppointments": 1,
            "status": "ACTIVE",
        })
    store.set(DOCTOR_PATIENTS_KEY, roster)
    logger.info("appointment_cached", doctor_id=appointment.doctor_id, patient_id=appointment.patient_id)
