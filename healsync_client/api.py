from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from . import config
from .alerts import AlertBox
from .booking import BookingController, fetch_patient_appointments
from .errors import ValidationError
from .linker import resolve_patients
from .logging_config import setup_logging
from .models import Appointment, BookingForm, Identifier, Patient, Slot
from .session import Session
from .slots import fetch_slots
from .storage import LocalStore, default_store


class BookRequest(BookingForm):
    patient_id: Identifier = Field(alias="patientId")
    patient_name: str | None = Field(default=None, alias="patientName")


class HealthResp(BaseModel):
    status: str = "ok"


setup_logging(config.LOG_LEVEL)

# HTTPBearer scheme so Swagger-UI can attach the Authorization header globally
auth_scheme = HTTPBearer(auto_error=False)

app = FastAPI(title="HealSync Booking Service")

_store = default_store()


def get_store() -> LocalStore:
    return _store


def verify_key(credentials: HTTPAuthorizationCredentials = Depends(auth_scheme)):
    """Validate Bearer token provided via Authorization header"""
    if credentials is None or credentials.scheme.lower() != "bearer" or credentials.credentials != config.API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")


@app.get("/health", response_model=HealthResp)
async def health():
    return HealthResp()


@app.get("/slots", dependencies=[Depends(verify_key)], response_model=list[Slot])
async def list_slots(
    specialty: str = Query(..., description="Medical specialty, e.g. Cardiology"),
    date: str = Query(..., description="YYYY-MM-DD appointment date"),
):
    """Open slots, or the default schedule when live availability is down."""
    try:
        return await fetch_slots(specialty, date)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.message)


@app.post("/book", dependencies=[Depends(verify_key)], response_model=Appointment)
async def book(req: BookRequest, store: LocalStore = Depends(get_store)):
    session = Session(user_type="patient", patient_id=req.patient_id, name=req.patient_name)
    controller = BookingController(session, AlertBox(), store=store)
    result = await controller.submit_booking(BookingForm.model_validate(req.model_dump()))
    if result.ok:
        return result.appointment
    status = {"validation": 422, "busy": 409}.get(result.error_kind, 502)
    raise HTTPException(status_code=status, detail=result.error)


@app.get("/doctor/{doctor_id}/patients", dependencies=[Depends(verify_key)], response_model=list[Patient])
async def doctor_patients(doctor_id: str, store: LocalStore = Depends(get_store)):
    """Patients linked to a doctor through their appointments."""
    return await resolve_patients(doctor_id, store)


@app.get("/patients/{patient_id}/appointments", dependencies=[Depends(verify_key)])
async def patient_appointments(patient_id: str, store: LocalStore = Depends(get_store)):
    return await fetch_patient_appointments(patient_id, store)
