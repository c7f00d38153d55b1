from enum import Enum
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field

Identifier = str | int


class AppointmentStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class Slot(BaseModel):
    """Candidate bookable window for a specialty/date, optionally bound to a doctor."""
    model_config = {"populate_by_name": True}

    start_time: str = Field(alias="startTime")  # HH:MM
    end_time: str | None = Field(default=None, alias="endTime")
    doctor_id: Identifier | None = Field(default=None, alias="doctorId")
    doctor_name: str | None = Field(default=None, alias="doctorName")
    specialty: str | None = None
    date: str | None = None


class Appointment(BaseModel):
    """Server-owned booking. The client only reads projections of it."""
    model_config = {"populate_by_name": True, "extra": "allow"}

    appointment_id: Identifier | None = Field(
        default=None,
        validation_alias=AliasChoices("appointmentId", "id", "_id", "appointment_id"),
        serialization_alias="appointmentId",
    )
    patient_id: Identifier | None = Field(default=None, alias="patientId")
    patient_name: str | None = Field(default=None, alias="patientName")
    doctor_id: Identifier | None = Field(default=None, alias="doctorId")
    doctor_name: str | None = Field(default=None, alias="doctorName")
    # the backend spells it "speciality" on the booking endpoint
    specialty: str | None = Field(
        default=None,
        validation_alias=AliasChoices("specialty", "speciality"),
        serialization_alias="specialty",
    )
    date: str | None = None
    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")
    start_date_time: str | None = Field(default=None, alias="startDateTime")  # ISO-8601, no zone
    end_date_time: str | None = Field(default=None, alias="endDateTime")
    status: AppointmentStatus | str = AppointmentStatus.SCHEDULED
    reason: str | None = None


class Patient(BaseModel):
    """Patient as seen from a doctor's dashboard, derived from appointments."""
    model_config = {"populate_by_name": True}

    id: Identifier | None = Field(
        default=None,
        validation_alias=AliasChoices("id", "patientId"),
        serialization_alias="id",
    )
    patient_name: str | None = Field(default=None, alias="patientName")
    email: str | None = None
    patient_age: int | float | str | None = Field(default=None, alias="patientAge")
    gender: str | None = None
    mobile_no: str | int | None = Field(default=None, alias="mobileNo")
    appointment_date: str | None = Field(default=None, alias="appointmentDate")
    appointment_time: str | None = Field(default=None, alias="appointmentTime")
    status: AppointmentStatus | str | None = None


class BookingForm(BaseModel):
    model_config = {"populate_by_name": True}

    doctor_id: Identifier | None = Field(default=None, alias="doctorId")
    date: str | None = None  # YYYY-MM-DD
    time: str | None = None  # HH:MM
    reason: str | None = None
    specialty: str | None = None
    end_time: str | None = Field(default=None, alias="endTime")


class BookingResult(BaseModel):
    appointment: Appointment | None = None
    error: str | None = None
    error_kind: Literal["validation", "backend", "busy"] | None = None

    @property
    def ok(self) -> bool:
        return self.appointment is not None and self.error is None
