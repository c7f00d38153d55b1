"""HealSync appointment booking client."""
from .alerts import AlertBox, AlertLevel, Notification
from .booking import BookingController, fetch_patient_appointments
from .chain import FallbackChain
from .errors import HealSyncError, NotFoundError, ServerError, TransportError, ValidationError
from .linker import derive_patients, get_patient_appointment_history, resolve_patients
from .models import Appointment, AppointmentStatus, BookingForm, BookingResult, Patient, Slot
from .session import Session
from .slots import DEFAULT_SLOTS, SlotSelect, check_slot_availability, fetch_slots
from .storage import LocalStore, store_appointment

__all__ = [
    "AlertBox", "AlertLevel", "Notification",
    "BookingController", "fetch_patient_appointments",
    "FallbackChain",
    "HealSyncError", "NotFoundError", "ServerError", "TransportError", "ValidationError",
    "derive_patients", "get_patient_appointment_history", "resolve_patients",
    "Appointment", "AppointmentStatus", "BookingForm", "BookingResult", "Patient", "Slot",
    "Session",
    "DEFAULT_SLOTS", "SlotSelect", "check_slot_availability", "fetch_slots",
    "LocalStore", "store_appointment",
]
