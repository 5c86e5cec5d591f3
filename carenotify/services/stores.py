from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc, and_
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
import logging

from carenotify.core.exceptions import PersistenceError
from carenotify.models.notification import Notification
from carenotify.models.medication_schedule import MedicationSchedule
from carenotify.models.care import Patient, Doctor, Appointment, Prescription
from carenotify.models.user import User
from carenotify.schemas.care import AppointmentRef, PersonRef, PrescriptionRef
from carenotify.schemas.notification import NotificationCreate, NotificationRead
from carenotify.schemas.schedule import ReminderSchedule, ScheduleCreate

logger = logging.getLogger(__name__)


class SqlNotificationStore:
    """NotificationStore over the notifications table. Every write commits on its own."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert(self, notification: NotificationCreate) -> NotificationRead:
        try:
            payload = notification.payload.model_dump(mode="json") if notification.payload else None
            db_notification = Notification(
                user_id=notification.user_id,
                title=notification.title,
                message=notification.message,
                category=notification.category,
                payload=payload,
                is_read=False,
            )
            self.db.add(db_notification)
            await self.db.commit()
            await self.db.refresh(db_notification)
            return NotificationRead.model_validate(db_notification)
        except SQLAlchemyError as e:
            logger.error(f"❌ [Inbox] Failed to record notification for user {notification.user_id}: {e}")
            await self.db.rollback()
            raise PersistenceError("Failed to create notification") from e

    async def find_by_user(self, user_id: int) -> List[NotificationRead]:
        try:
            query = select(Notification).filter(
                Notification.user_id == user_id
            ).order_by(desc(Notification.created_at), desc(Notification.id))
            result = await self.db.execute(query)
            return [NotificationRead.model_validate(n) for n in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"❌ [Inbox] Failed to load notifications for user {user_id}: {e}")
            raise PersistenceError("Failed to retrieve notifications") from e

    async def mark_read(self, notification_id: int) -> Optional[NotificationRead]:
        try:
            result = await self.db.execute(select(Notification).filter(Notification.id == notification_id))
            notification = result.scalar_one_or_none()
            if not notification:
                return None
            if not notification.is_read:
                notification.is_read = True
                self.db.add(notification)
                await self.db.commit()
                await self.db.refresh(notification)
            return NotificationRead.model_validate(notification)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("Failed to update notification") from e

    async def mark_all_read(self, user_id: int) -> int:
        try:
            query = update(Notification).filter(
                Notification.user_id == user_id,
                Notification.is_read == False
            ).values(is_read=True)
            result = await self.db.execute(query)
            await self.db.commit()
            return result.rowcount or 0
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("Failed to update notifications") from e


class SqlScheduleStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_active_schedules(self, patient_id: Optional[int] = None) -> List[ReminderSchedule]:
        filters = [MedicationSchedule.is_active == True]
        if patient_id is not None:
            filters.append(MedicationSchedule.patient_id == patient_id)
        try:
            result = await self.db.execute(
                select(MedicationSchedule).filter(and_(*filters)).order_by(MedicationSchedule.start_date, MedicationSchedule.id)
            )
            return [ReminderSchedule.model_validate(s) for s in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to load active medication schedules: {e}")
            raise PersistenceError("Failed to retrieve medication schedules") from e

    async def find_by_patient(self, patient_id: int, active: Optional[bool] = None) -> List[ReminderSchedule]:
        query = select(MedicationSchedule).filter(MedicationSchedule.patient_id == patient_id)
        if active is not None:
            query = query.filter(MedicationSchedule.is_active == active)
        try:
            result = await self.db.execute(query.order_by(MedicationSchedule.start_date, MedicationSchedule.id))
            return [ReminderSchedule.model_validate(s) for s in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to load medication schedules for patient {patient_id}: {e}")
            await self.db.rollback()
            raise PersistenceError("Failed to retrieve medication schedules") from e

    async def get(self, schedule_id: int) -> Optional[ReminderSchedule]:
        try:
            schedule = await self.db.get(MedicationSchedule, schedule_id)
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to load medication schedule {schedule_id}: {e}")
            await self.db.rollback()
            raise PersistenceError("Failed to retrieve medication schedule") from e
        return ReminderSchedule.model_validate(schedule) if schedule else None

    async def insert(self, schedule: ScheduleCreate) -> ReminderSchedule:
        try:
            db_schedule = MedicationSchedule(**schedule.model_dump())
            self.db.add(db_schedule)
            await self.db.commit()
            await self.db.refresh(db_schedule)
            logger.info(f"💊 Medication schedule {db_schedule.id} created for patient {db_schedule.patient_id}")
            return ReminderSchedule.model_validate(db_schedule)
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to create medication schedule: {e}")
            await self.db.rollback()
            raise PersistenceError("Failed to create medication schedule") from e

    async def deactivate(self, schedule_id: int) -> Optional[ReminderSchedule]:
        try:
            schedule = await self.db.get(MedicationSchedule, schedule_id)
            if not schedule:
                return None
            schedule.is_active = False
            self.db.add(schedule)
            await self.db.commit()
            await self.db.refresh(schedule)
            return ReminderSchedule.model_validate(schedule)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("Failed to deactivate medication schedule") from e

    async def mark_reminded(self, schedule_id: int, reminded_slots: str) -> None:
        try:
            await self.db.execute(
                update(MedicationSchedule)
                .filter(MedicationSchedule.id == schedule_id)
                .values(last_reminded_slot=reminded_slots)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("Failed to record reminder dispatch") from e


class SqlCareLookup:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _person(self, model, record_id: int) -> Optional[PersonRef]:
        result = await self.db.execute(
            select(model, User).join(User, model.user_id == User.id).filter(model.id == record_id)
        )
        row = result.first()
        if not row:
            return None
        record, user = row
        return PersonRef(id=record.id, user_id=user.id, full_name=user.full_name, email=user.email)

    async def get_patient(self, patient_id: int) -> Optional[PersonRef]:
        return await self._person(Patient, patient_id)

    async def get_doctor(self, doctor_id: int) -> Optional[PersonRef]:
        return await self._person(Doctor, doctor_id)

    async def get_appointment(self, appointment_id: int) -> Optional[AppointmentRef]:
        appointment = await self.db.get(Appointment, appointment_id)
        return AppointmentRef.model_validate(appointment) if appointment else None

    async def get_prescription(self, prescription_id: int) -> Optional[PrescriptionRef]:
        result = await self.db.execute(select(Prescription).filter(Prescription.id == prescription_id))
        prescription = result.scalar_one_or_none()
        return PrescriptionRef.model_validate(prescription) if prescription else None

    async def latest_doctor_for_patient(self, patient_id: int) -> Optional[int]:
        result = await self.db.execute(
            select(Appointment.doctor_id)
            .filter(Appointment.patient_id == patient_id)
            .order_by(desc(Appointment.appointment_date), desc(Appointment.appointment_time), desc(Appointment.id))
            .limit(1)
        )
        return result.scalar_one_or_none()
