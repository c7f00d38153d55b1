"""Explicit session object handed to the components that need the signed-in user."""
from __future__ import annotations

from pydantic import BaseModel, Field

from .models import Identifier
from .storage import SESSION_KEY, LocalStore


class Session(BaseModel):
    model_config = {"populate_by_name": True}

    user_type: str | None = Field(default=None, alias="userType")  # patient | doctor | admin
    patient_id: Identifier | None = Field(default=None, alias="patientId")
    doctor_id: Identifier | None = Field(default=None, alias="doctorId")
    name: str | None = None
    email: str | None = None
    phone: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.patient_id is not None or self.doctor_id is not None

    @property
    def is_patient(self) -> bool:
        return self.patient_id is not None and self.user_type in (None, "patient")

    @property
    def is_doctor(self) -> bool:
        return self.doctor_id is not None and self.user_type in (None, "doctor")

    @classmethod
    def from_store(cls, store: LocalStore) -> "Session":
        data = store.get(SESSION_KEY)
        return cls.model_validate(data) if isinstance(data, dict) else cls()

    def save(self, store: LocalStore) -> None:
        store.set(SESSION_KEY, self.model_dump(by_alias=True, exclude_none=True))
