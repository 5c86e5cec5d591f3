from datetime import date

import pytest

from carenotify.core.exceptions import NotFoundError, PersistenceError
from carenotify.services import care_events
from carenotify.services.notification_dispatcher import NotificationDispatcher
from conftest import DOCTOR_USER_ID, PATIENT_USER_ID, FakeScheduleStore


async def test_prescription_with_vitals(dispatcher, store):
    summary = await care_events.handle_prescription_submitted(dispatcher, 21, {"bloodPressure": "150/95"})

    assert summary["prescription_notified"] is True
    assert [a["type"] for a in summary["alerts"]] == ["high_blood_pressure"]
    assert sorted(n.category for n in store.for_user(PATIENT_USER_ID)) == ["high_blood_pressure", "prescription"]


async def test_missing_prescription_propagates(dispatcher):
    with pytest.raises(NotFoundError):
        await care_events.handle_prescription_submitted(dispatcher, 404)


async def test_prescription_notification_failure_is_swallowed(dispatcher, store):
    store.fail_insert = True

    summary = await care_events.handle_prescription_submitted(dispatcher, 21)

    assert summary == {"prescription_notified": False, "alerts": []}


async def test_missing_patient_does_not_fail_prescription(dispatcher, lookup):
    lookup.patients.clear()

    summary = await care_events.handle_prescription_submitted(dispatcher, 21)

    assert summary["prescription_notified"] is False


async def test_appointment_booked(dispatcher, store):
    assert await care_events.handle_appointment_booked(dispatcher, 11) is True
    assert store.for_user(DOCTOR_USER_ID)[0].category == "appointment"


async def test_appointment_booked_missing_appointment(dispatcher):
    with pytest.raises(NotFoundError):
        await care_events.handle_appointment_booked(dispatcher, 404)


async def test_appointment_booked_missing_doctor_is_swallowed(dispatcher, lookup):
    lookup.doctors.clear()
    assert await care_events.handle_appointment_booked(dispatcher, 11) is False


async def test_appointment_status_change_store_failure(dispatcher, store):
    store.fail_insert = True
    assert await care_events.handle_appointment_status_changed(dispatcher, 11, "completed") is False


async def test_schedules_from_prescription(dispatcher, lookup, store):
    schedules = FakeScheduleStore()

    created = await care_events.create_schedules_for_prescription(
        dispatcher, schedules, lookup, 21, start=date(2026, 10, 19)
    )

    assert [s.medication_name for s in created] == ["Amoxicillin", "Paracetamol"]
    amoxicillin, paracetamol = created
    assert amoxicillin.end_date == date(2026, 10, 25)
    assert amoxicillin.time_of_day == "morning,evening"
    assert amoxicillin.prescription_item_id == 31
    assert paracetamol.end_date is None
    assert paracetamol.frequency == "as_needed"
    setups = [n for n in store.for_user(PATIENT_USER_ID) if n.category == "medication_reminder_setup"]
    assert len(setups) == 2


async def test_schedules_from_unknown_prescription(dispatcher, lookup):
    with pytest.raises(NotFoundError):
        await care_events.create_schedules_for_prescription(dispatcher, FakeScheduleStore(), lookup, 404)


async def test_schedule_setup_notification_failure_keeps_schedules(dispatcher, lookup, store):
    store.fail_insert = True
    schedules = FakeScheduleStore()

    created = await care_events.create_schedules_for_prescription(dispatcher, schedules, lookup, 21)

    assert len(created) == 2
    assert len(schedules.schedules) == 2


async def test_pharmacist_failure_still_reports_patient_notified(store, registry, lookup):
    dispatcher = NotificationDispatcher(store, registry, lookup, pharmacist_user_ids=[900, 901])
    store.fail_for_users = {900}

    summary = await care_events.handle_prescription_submitted(dispatcher, 21)

    assert summary["prescription_notified"] is True
    assert len(store.for_user(901)) == 1
