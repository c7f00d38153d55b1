import asyncio

import httpx
import pytest
import respx

from healsync_client import booking
from healsync_client.alerts import AlertBox, AlertLevel
from healsync_client.booking import BookingController, fetch_patient_appointments
from healsync_client.models import Appointment, BookingForm, Slot
from healsync_client.session import Session
from healsync_client.slots import SlotSelect
from healsync_client.storage import APPOINTMENTS_KEY, DOCTOR_PATIENTS_KEY, LocalStore

BASE = "http://healsync.test"
BOOK_PATH = "/v1/healsync/book/appointment"

VALID = {"doctor_id": 7, "date": "2024-08-15", "time": "09:00", "reason": "checkup", "specialty": "Cardiology"}
CREATED = {"appointmentId": "apt-77", "doctorId": 7, "patientId": "p-1", "status": "SCHEDULED"}


def make_controller(**kwargs):
    pages = []
    kwargs.setdefault("redirect_delay", 0)
    controller = BookingController(
        Session(user_type="patient", patient_id="p-1", name="Asha Rao", email="asha@example.com"),
        AlertBox(),
        navigate=pages.append,
        **kwargs,
    )
    return controller, pages


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["doctor_id", "date", "time", "reason"])
@pytest.mark.parametrize("blank", [None, ""])
async def test_missing_field_never_hits_network(field, blank):
    controller, pages = make_controller()
    form = BookingForm(**{**VALID, field: blank})
    with respx.mock(base_url=BASE, assert_all_called=False) as m:
        route = m.post(BOOK_PATH).respond(201, json=CREATED)

        result = await controller.submit_booking(form)

    assert not route.called
    assert not result.ok and result.error_kind == "validation"
    assert controller.alerts.current.level is AlertLevel.ERROR
    assert pages == []


@pytest.mark.asyncio
async def test_successful_booking_notifies_then_navigates():
    controller, pages = make_controller()
    seen_disabled = []

    def created(request):
        seen_disabled.append(controller.disabled)
        return httpx.Response(201, json=CREATED)

    with respx.mock(base_url=BASE) as m:
        route = m.post(BOOK_PATH).mock(side_effect=created)

        result = await controller.submit_booking(BookingForm(**VALID))

    assert result.ok
    assert result.appointment.appointment_id == "apt-77"
    assert result.appointment.start_date_time == "2024-08-15T09:00:00"
    assert result.appointment.end_date_time == "2024-08-15T10:00:00"
    assert result.appointment.reason == "checkup"
    assert seen_disabled == [True]
    assert not controller.disabled
    assert route.call_count == 1
    params = route.calls.last.request.url.params
    assert params["patientId"] == "p-1"
    assert params["endDateTime"] == "2024-08-15T10:00:00"
    assert controller.alerts.current.level is AlertLevel.SUCCESS
    assert controller.alerts.current.message == booking.SUCCESS_MESSAGE
    assert pages == ["/patient-profile"]


def test_redirect_waits_two_seconds_by_default():
    controller = BookingController(Session(patient_id="p-1"), AlertBox())
    assert controller.redirect_delay == 2.0


@pytest.mark.asyncio
async def test_slot_end_time_is_used():
    controller, _ = make_controller()
    with respx.mock(base_url=BASE) as m:
        route = m.post(BOOK_PATH).respond(201, json=CREATED)
        await controller.submit_booking(BookingForm(**VALID, end_time="09:30"))

    assert route.calls.last.request.url.params["endDateTime"] == "2024-08-15T09:30:00"


@pytest.mark.asyncio
async def test_backend_message_is_surfaced():
    controller, pages = make_controller()
    form = BookingForm(**VALID)
    with respx.mock(base_url=BASE) as m:
        m.post(BOOK_PATH).respond(404, json={"message": "Doctor not found"})

        result = await controller.submit_booking(form)

    assert result.error == "Doctor not found"
    assert result.error_kind == "backend"
    assert controller.alerts.current.message == "Doctor not found"
    assert not controller.disabled
    assert pages == []
    assert form.reason == "checkup"


@pytest.mark.asyncio
async def test_generic_message_without_backend_body():
    controller, _ = make_controller()
    with respx.mock(base_url=BASE) as m:
        m.post(BOOK_PATH).mock(side_effect=[httpx.ConnectError("offline"), httpx.Response(500, text="boom")])

        first = await controller.submit_booking(BookingForm(**VALID))
        second = await controller.submit_booking(BookingForm(**VALID))

    assert first.error == second.error == "Failed to book appointment."
    assert not controller.disabled


@pytest.mark.asyncio
async def test_no_resubmit_while_in_flight():
    controller, _ = make_controller()
    controller.submitting = True
    with respx.mock(base_url=BASE, assert_all_called=False) as m:
        route = m.post(BOOK_PATH).respond(201, json=CREATED)

        result = await controller.submit_booking(BookingForm(**VALID))

    assert result.error_kind == "busy"
    assert not route.called


@pytest.mark.asyncio
async def test_requires_signed_in_patient():
    controller = BookingController(Session(user_type="doctor", doctor_id=7), AlertBox())
    with respx.mock(base_url=BASE, assert_all_called=False) as m:
        route = m.post(BOOK_PATH).respond(201, json=CREATED)
        result = await controller.submit_booking(BookingForm(**VALID))

    assert result.error == booking.LOGIN_REQUIRED_MESSAGE
    assert not route.called


@pytest.mark.asyncio
@pytest.mark.parametrize("changes", [{"date": "15-08-2024"}, {"time": "9am"}, {"end_time": "08:00"}])
async def test_malformed_date_or_time_is_rejected(changes):
    controller, _ = make_controller()
    result = await controller.submit_booking(BookingForm(**{**VALID, **changes}))
    assert result.error_kind == "validation"


@pytest.mark.asyncio
async def test_fallback_slot_needs_explicit_doctor():
    controller, _ = make_controller()
    select = SlotSelect()
    controller.bind_slot_select(select)
    controller.form = BookingForm(date="2024-08-15", reason="checkup")

    select.populate([Slot(start_time="09:00", end_time="10:00", doctor_id=7)])
    select.select("09:00")
    assert controller.form.doctor_id == 7

    select.show_defaults()
    select.select("10:00")
    assert controller.form.doctor_id is None

    result = await controller.submit_booking()
    assert result.error == booking.DOCTOR_REQUIRED_MESSAGE

    controller.choose_doctor(12)
    select.select("11:00")
    assert controller.form.doctor_id == 12


@pytest.mark.asyncio
async def test_booking_is_cached_locally(tmp_path):
    store = LocalStore(tmp_path / "store.json")
    controller, _ = make_controller(store=store)
    with respx.mock(base_url=BASE) as m:
        m.post(BOOK_PATH).respond(201, json=CREATED)
        await controller.submit_booking(BookingForm(**VALID))
        await controller.submit_booking(BookingForm(**{**VALID, "date": "2024-08-22"}))

    reloaded = LocalStore(tmp_path / "store.json")
    cached = reloaded.get_list(APPOINTMENTS_KEY)
    assert [c["appointmentId"] for c in cached] == ["apt-77", "apt-77"]
    roster = reloaded.get(DOCTOR_PATIENTS_KEY)["7"]
    assert len(roster) == 1
    assert roster[0]["totalAppointments"] == 2
    assert roster[0]["lastAppointment"] == "2024-08-22T09:00:00"
    assert roster[0]["email"] == "asha@example.com"


@pytest.mark.asyncio
async def test_patient_appointments_fall_back_to_cache():
    store = LocalStore()
    store.set(APPOINTMENTS_KEY, [{"appointmentId": "a", "patientId": 5}, {"appointmentId": "b", "patientId": 6}])
    with respx.mock(base_url=BASE) as m:
        m.get("/v1/healsync/book/patient/appointments").mock(
            side_effect=[httpx.Response(200, json=[{"appointmentId": "live"}]), httpx.Response(502)]
        )

        live = await fetch_patient_appointments(5, store)
        cached = await fetch_patient_appointments("5", store)

    assert live == [{"appointmentId": "live"}]
    assert cached == [{"appointmentId": "a", "patientId": 5}]


@pytest.mark.asyncio
async def test_corrupt_roster_does_not_break_successful_booking():
    store = LocalStore()
    store.set(DOCTOR_PATIENTS_KEY, {"7": ["junk"]})
    controller, pages = make_controller(store=store)
    with respx.mock(base_url=BASE) as m:
        m.post(BOOK_PATH).respond(201, json=CREATED)

        result = await controller.submit_booking(BookingForm(**VALID))

    assert result.ok
    assert pages == ["/patient-profile"]
    assert [p["patientId"] for p in store.get(DOCTOR_PATIENTS_KEY)["7"]] == ["p-1"]


@pytest.mark.asyncio
async def test_concurrent_submits_send_one_request(monkeypatch):
    controller, pages = make_controller()
    release = asyncio.Event()
    calls = []

    async def slow_book(*args, **kwargs):
        calls.append(args)
        await release.wait()
        return Appointment.model_validate(CREATED)

    async def let_first_finish():
        await asyncio.sleep(0)
        release.set()

    monkeypatch.setattr(booking.client, "book_appointment", slow_book)
    first, second, _ = await asyncio.gather(
        controller.submit_booking(BookingForm(**VALID)),
        controller.submit_booking(BookingForm(**VALID)),
        let_first_finish(),
    )

    assert len(calls) == 1
    assert first.ok
    assert second.error_kind == "busy"
    assert not controller.disabled
    assert pages == ["/patient-profile"]
