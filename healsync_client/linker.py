"""Find the patients linked to a doctor through their appointments.

Three sources are consulted in order (doctor's patient list, locally cached
appointments, doctor's appointment list) and the first that yields anyone
is used. Appointment records come from several generations of the backend
and the booking pages, so patient fields are resolved through an alias
table instead of a single fixed schema.
"""
from __future__ import annotations

from typing import Any, Iterable

from pydantic import ValidationError as ModelValidationError

from . import client
from .chain import FallbackChain
from .errors import HealSyncError, ServerError
from .logging_config import get_logger
from .models import Identifier, Patient
from .storage import APPOINTMENTS_KEY, BOOKINGS_KEY, LocalStore, default_store

logger = get_logger(__name__)

# Patient field -> appointment keys, highest precedence first.
PATIENT_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("patientId",),
    "patientName": ("patientName",),
    "email": ("patientEmail",),
    "patientAge": ("patientAge",),
    "gender": ("patientGender", "gender"),
    "mobileNo": ("patientPhone", "patientMobile"),
    "appointmentDate": ("date", "appointmentDate"),
    "appointmentTime": ("startTime", "time"),
    "status": ("status",),
}

# Used only when a record has a patient id but no value for the field.
PATIENT_FIELD_DEFAULTS: dict[str, str] = {
    "patientName": "Patient {id}",
    "email": "patient{id}@example.com",
    "gender": "Unknown",
    "status": "SCHEDULED",
}


def _present(value: Any) -> bool:
    return value is not None and value != ""


def resolve_field(record: dict, field: str) -> Any:
    for key in PATIENT_FIELD_ALIASES[field]:
        value = record.get(key)
        if _present(value):
            return value
    return None


def patient_from_record(record: dict) -> Patient | None:
    values = {field: resolve_field(record, field) for field in PATIENT_FIELD_ALIASES}
    patient_id = values["id"]
    if _present(patient_id):
        for field, template in PATIENT_FIELD_DEFAULTS.items():
            if not _present(values[field]):
                values[field] = template.format(id=patient_id)
    elif not _present(values["patientName"]):
        return None
    try:
        return Patient.model_validate(values)
    except ModelValidationError:
        logger.warning("patient_record_invalid", patient_id=patient_id)
        return None


def _patient_key(patient: Patient) -> str:
    if _present(patient.id):
        return f"id:{patient.id}"
    return f"name:{patient.patient_name}"


def collapse_patients(patients: Iterable[Patient]) -> list[Patient]:
    """One patient per identifier, later entries overwriting earlier ones."""
    unique: dict[str, Patient] = {}
    for patient in patients:
        unique[_patient_key(patient)] = patient
    return list(unique.values())


def derive_patients(records: Iterable[Any]) -> list[Patient]:
    patients = []
    for record in records:
        if not isinstance(record, dict):
            continue
        patient = patient_from_record(record)
        if patient is None:
            logger.debug("appointment_without_patient", record=record)
            continue
        patients.append(patient)
    return collapse_patients(patients)


def _same_id(left: Any, right: Any) -> bool:
    return left is not None and str(left) == str(right)


def patients_from_local_cache(store: LocalStore, doctor_id: Identifier) -> list[Patient]:
    records = store.get_list(APPOINTMENTS_KEY) + store.get_list(BOOKINGS_KEY)
    mine = [r for r in records if isinstance(r, dict) and _same_id(r.get("doctorId"), doctor_id)]
    return derive_patients(mine)


async def patients_from_doctor_api(doctor_id: Identifier) -> list[Patient]:
    payload = await client.get_doctor_patients(doctor_id)
    try:
        patients = [Patient.model_validate(item) for item in payload if isinstance(item, dict)]
    except ModelValidationError as exc:
        raise ServerError("Malformed patient in doctor patients response") from exc
    return collapse_patients(patients)


async def patients_from_doctor_appointments(doctor_id: Identifier) -> list[Patient]:
    return derive_patients(await client.get_doctor_appointments(doctor_id))


async def resolve_patients(doctor_id: Identifier, store: LocalStore | None = None) -> list[Patient]:
    """Patients of a doctor, or an empty list when no source knows any."""
    store = store if store is not None else default_store()
    chain = FallbackChain([
        ("doctor_patients_api", lambda: patients_from_doctor_api(doctor_id)),
        ("local_cache", lambda: patients_from_local_cache(store, doctor_id)),
        ("doctor_appointments_api", lambda: patients_from_doctor_appointments(doctor_id)),
    ])
    patients = await chain.run()
    if not patients:
        logger.info("no_patients_found", doctor_id=doctor_id)
    return patients


async def get_patient_appointment_history(doctor_id: Identifier, patient_id: Identifier) -> list[dict]:
    try:
        appointments = await client.get_doctor_appointments(doctor_id)
    except HealSyncError as exc:
        logger.warning("appointment_history_unavailable", doctor_id=doctor_id, error=exc.message)
        return []
    return [a for a in appointments if isinstance(a, dict) and _same_id(a.get("patientId"), patient_id)]
