from typing import List, Optional, Protocol

from carenotify.schemas.care import AppointmentRef, PersonRef, PrescriptionRef
from carenotify.schemas.notification import NotificationCreate, NotificationRead
from carenotify.schemas.schedule import ReminderSchedule, ScheduleCreate


class NotificationStore(Protocol):
    async def insert(self, notification: NotificationCreate) -> NotificationRead: ...

    async def find_by_user(self, user_id: int) -> List[NotificationRead]: ...

    async def mark_read(self, notification_id: int) -> Optional[NotificationRead]: ...

    async def mark_all_read(self, user_id: int) -> int: ...


class ScheduleStore(Protocol):
    async def find_active_schedules(self, patient_id: Optional[int] = None) -> List[ReminderSchedule]: ...

    async def find_by_patient(self, patient_id: int, active: Optional[bool] = None) -> List[ReminderSchedule]: ...

    async def get(self, schedule_id: int) -> Optional[ReminderSchedule]: ...

    async def insert(self, schedule: ScheduleCreate) -> ReminderSchedule: ...

    async def deactivate(self, schedule_id: int) -> Optional[ReminderSchedule]: ...

    async def mark_reminded(self, schedule_id: int, reminded_slots: str) -> None: ...


class CareLookup(Protocol):
    """Resolves clinical ids to people and records. Every method returns None when nothing matches."""

    async def get_patient(self, patient_id: int) -> Optional[PersonRef]: ...

    async def get_doctor(self, doctor_id: int) -> Optional[PersonRef]: ...

    async def get_appointment(self, appointment_id: int) -> Optional[AppointmentRef]: ...

    async def get_prescription(self, prescription_id: int) -> Optional[PrescriptionRef]: ...

    async def latest_doctor_for_patient(self, patient_id: int) -> Optional[int]: ...


class EmailProvider(Protocol):
    def is_configured(self) -> bool: ...

    async def send(self, to_email: str, subject: str, html: str) -> bool: ...
