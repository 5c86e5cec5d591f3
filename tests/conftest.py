import itertools
import json
from datetime import date, datetime, time, timezone
from typing import Dict, List, Optional

import pytest

from carenotify.core.connection_registry import ConnectionRegistry
from carenotify.core.exceptions import PersistenceError
from carenotify.schemas.care import AppointmentRef, PersonRef, PrescriptionItemRef, PrescriptionRef
from carenotify.schemas.notification import NotificationCreate, NotificationRead
from carenotify.schemas.schedule import ReminderSchedule, ScheduleCreate
from carenotify.services.notification_dispatcher import NotificationDispatcher


class FakeChannel:
    def __init__(self, open_: bool = True, fail: bool = False):
        self.open = open_
        self.fail = fail
        self.sent: List[str] = []

    @property
    def is_open(self) -> bool:
        return self.open

    async def send(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("socket gone")
        self.sent.append(text)

    @property
    def messages(self) -> List[dict]:
        return [json.loads(text) for text in self.sent]


class FakeNotificationStore:
    def __init__(self, events: Optional[list] = None):
        self.rows: Dict[int, NotificationRead] = {}
        self.fail_insert = False
        self.fail_for_users = set()
        self.events = events if events is not None else []
        self._ids = itertools.count(1)

    async def insert(self, notification: NotificationCreate) -> NotificationRead:
        if self.fail_insert or notification.user_id in self.fail_for_users:
            raise PersistenceError("Failed to create notification")
        saved = NotificationRead(
            id=next(self._ids),
            created_at=datetime.now(timezone.utc),
            is_read=False,
            **notification.model_dump(),
        )
        self.rows[saved.id] = saved
        self.events.append(("persist", saved.id))
        return saved

    async def find_by_user(self, user_id: int) -> List[NotificationRead]:
        rows = [n for n in self.rows.values() if n.user_id == user_id]
        return sorted(rows, key=lambda n: (n.created_at, n.id), reverse=True)

    async def mark_read(self, notification_id: int) -> Optional[NotificationRead]:
        row = self.rows.get(notification_id)
        if row is None:
            return None
        row = row.model_copy(update={"is_read": True})
        self.rows[notification_id] = row
        return row

    async def mark_all_read(self, user_id: int) -> int:
        updated = 0
        for row_id, row in list(self.rows.items()):
            if row.user_id == user_id and not row.is_read:
                self.rows[row_id] = row.model_copy(update={"is_read": True})
                updated += 1
        return updated

    def for_user(self, user_id: int) -> List[NotificationRead]:
        return [n for n in self.rows.values() if n.user_id == user_id]


class FakeScheduleStore:
    def __init__(self, schedules: Optional[List[ReminderSchedule]] = None):
        self.schedules: Dict[int, ReminderSchedule] = {s.id: s for s in (schedules or [])}
        self.fail_find = False
        self.fail_mark = False
        self.reminded: List[tuple] = []
        self._ids = itertools.count(100)

    async def find_active_schedules(self, patient_id: Optional[int] = None) -> List[ReminderSchedule]:
        if self.fail_find:
            raise PersistenceError("Failed to retrieve medication schedules")
        return [
            s for s in self.schedules.values()
            if s.is_active and (patient_id is None or s.patient_id == patient_id)
        ]

    async def find_by_patient(self, patient_id: int, active: Optional[bool] = None) -> List[ReminderSchedule]:
        return [
            s for s in self.schedules.values()
            if s.patient_id == patient_id and (active is None or s.is_active == active)
        ]

    async def get(self, schedule_id: int) -> Optional[ReminderSchedule]:
        return self.schedules.get(schedule_id)

    async def insert(self, schedule: ScheduleCreate) -> ReminderSchedule:
        saved = ReminderSchedule(id=next(self._ids), **schedule.model_dump())
        self.schedules[saved.id] = saved
        return saved

    async def deactivate(self, schedule_id: int) -> Optional[ReminderSchedule]:
        schedule = self.schedules.get(schedule_id)
        if schedule is None:
            return None
        schedule = schedule.model_copy(update={"is_active": False})
        self.schedules[schedule_id] = schedule
        return schedule

    async def mark_reminded(self, schedule_id: int, reminded_slots: str) -> None:
        if self.fail_mark:
            raise PersistenceError("Failed to record reminder dispatch")
        self.reminded.append((schedule_id, reminded_slots))
        schedule = self.schedules[schedule_id]
        self.schedules[schedule_id] = schedule.model_copy(update={"last_reminded_slot": reminded_slots})


class FakeLookup:
    def __init__(self):
        self.patients: Dict[int, PersonRef] = {}
        self.doctors: Dict[int, PersonRef] = {}
        self.appointments: Dict[int, AppointmentRef] = {}
        self.prescriptions: Dict[int, PrescriptionRef] = {}
        self.latest_doctor: Dict[int, int] = {}

    async def get_patient(self, patient_id: int) -> Optional[PersonRef]:
        return self.patients.get(patient_id)

    async def get_doctor(self, doctor_id: int) -> Optional[PersonRef]:
        return self.doctors.get(doctor_id)

    async def get_appointment(self, appointment_id: int) -> Optional[AppointmentRef]:
        return self.appointments.get(appointment_id)

    async def get_prescription(self, prescription_id: int) -> Optional[PrescriptionRef]:
        return self.prescriptions.get(prescription_id)

    async def latest_doctor_for_patient(self, patient_id: int) -> Optional[int]:
        return self.latest_doctor.get(patient_id)


class FakeEmail:
    def __init__(self, configured: bool = True, fail: bool = False, result: bool = True):
        self.configured = configured
        self.fail = fail
        self.result = result
        self.sent: List[tuple] = []

    def is_configured(self) -> bool:
        return self.configured

    async def send(self, to_email: str, subject: str, html: str) -> bool:
        if self.fail:
            raise TimeoutError("provider timed out")
        self.sent.append((to_email, subject, html))
        return self.result


# Patient 5 is user 50; doctor 7 is user 70.
PATIENT_ID, PATIENT_USER_ID = 5, 50
DOCTOR_ID, DOCTOR_USER_ID = 7, 70


@pytest.fixture
def lookup() -> FakeLookup:
    lookup = FakeLookup()
    lookup.patients[PATIENT_ID] = PersonRef(id=PATIENT_ID, user_id=PATIENT_USER_ID, full_name="Asha Rao", email="asha@example.com")
    lookup.doctors[DOCTOR_ID] = PersonRef(id=DOCTOR_ID, user_id=DOCTOR_USER_ID, full_name="Meera Iyer", email="meera@example.com")
    lookup.appointments[11] = AppointmentRef(
        id=11, patient_id=PATIENT_ID, doctor_id=DOCTOR_ID,
        appointment_date=date(2026, 10, 20), appointment_time=time(10, 30), status="scheduled",
    )
    lookup.prescriptions[21] = PrescriptionRef(
        id=21, patient_id=PATIENT_ID, doctor_id=DOCTOR_ID,
        items=[
            PrescriptionItemRef(id=31, medication_name="Amoxicillin", dosage="500mg", frequency="twice_daily",
                                time_of_day="morning,evening", duration_days=7, instructions="Take after food."),
            PrescriptionItemRef(id=32, medication_name="Paracetamol", dosage="650mg", frequency="as_needed",
                                time_of_day="as needed"),
        ],
    )
    return lookup


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def store(events) -> FakeNotificationStore:
    return FakeNotificationStore(events)


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def dispatcher(store, registry, lookup) -> NotificationDispatcher:
    return NotificationDispatcher(store, registry, lookup, include_extended_vitals=False, pharmacist_user_ids=[])


def make_schedule(**overrides) -> ReminderSchedule:
    fields = dict(
        id=1,
        patient_id=PATIENT_ID,
        medication_name="Metformin",
        dosage="500mg",
        frequency="once_daily",
        start_date=date(2026, 10, 1),
        end_date=None,
        time_of_day="morning",
        days_of_week=None,
        instructions=None,
        is_active=True,
        last_reminded_slot=None,
    )
    fields.update(overrides)
    return ReminderSchedule(**fields)
