"""
Single funnel for every alert-producing flow: persist the notification, then
try to push it over the recipient's live channel.

Persistence failures propagate (PersistenceError); a missing or closed
channel does not. Lookups that come back empty raise NotFoundError for the
notification being built.
"""
import logging
from datetime import date, time
from typing import Any, Dict, List, Optional, Sequence, Union

from carenotify.core.config import settings
from carenotify.core.connection_registry import ConnectionRegistry
from carenotify.core.exceptions import NotFoundError
from carenotify.schemas.care import PersonRef
from carenotify.schemas.notification import (
    AppointmentPayload,
    MedicationReminderPayload,
    NotificationCreate,
    NotificationRead,
    PrescriptionPayload,
    VitalsPayload,
)
from carenotify.schemas.schedule import ReminderSchedule
from carenotify.schemas.vitals import AlertDescriptor, VitalSigns
from carenotify.services import schedule_resolver, threshold_evaluator
from carenotify.services.interfaces import CareLookup, NotificationStore
from carenotify.services.schedule_resolver import Slot

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    "scheduled": "confirmed",
    "completed": "marked as completed",
    "cancelled": "cancelled",
}


def format_date(value: date) -> str:
    return value.strftime("%b %d, %Y")


def format_time(value: time) -> str:
    return value.strftime("%I:%M %p")


def doctor_label(doctor: Optional[PersonRef], fallback: str = "Your doctor") -> str:
    if doctor and doctor.full_name:
        return f"Dr. {doctor.full_name}"
    return fallback


def person_label(person: Optional[PersonRef], fallback: str) -> str:
    if person and person.full_name:
        return person.full_name
    return fallback


class NotificationDispatcher:
    def __init__(
        self,
        store: NotificationStore,
        registry: ConnectionRegistry,
        lookup: CareLookup,
        include_extended_vitals: Optional[bool] = None,
        pharmacist_user_ids: Optional[Sequence[int]] = None,
    ):
        self.store = store
        self.registry = registry
        self.lookup = lookup
        self.include_extended_vitals = (
            settings.VITALS_EXTENDED_ALERTS if include_extended_vitals is None else include_extended_vitals
        )
        self.pharmacist_user_ids = list(
            settings.PHARMACIST_USER_IDS if pharmacist_user_ids is None else pharmacist_user_ids
        )

    async def create_and_dispatch(self, notification: NotificationCreate) -> NotificationRead:
        """Persist, then push. Raises PersistenceError if the record could not be stored."""
        saved = await self.store.insert(notification)

        delivered = await self.registry.push(saved.user_id, saved.to_push_message())
        logger.info(
            f"🔔 Notification {saved.id} ({saved.category}) stored for user {saved.user_id}"
            f"{' and pushed' if delivered else ''}"
        )
        return saved

    # --- lookups -------------------------------------------------------

    async def _require_patient(self, patient_id: int) -> PersonRef:
        patient = await self.lookup.get_patient(patient_id)
        if not patient:
            raise NotFoundError("patient", patient_id)
        return patient

    async def _require_doctor(self, doctor_id: int) -> PersonRef:
        doctor = await self.lookup.get_doctor(doctor_id)
        if not doctor:
            raise NotFoundError("doctor", doctor_id)
        return doctor

    async def _require_appointment(self, appointment_id: int):
        appointment = await self.lookup.get_appointment(appointment_id)
        if not appointment:
            raise NotFoundError("appointment", appointment_id)
        return appointment

    # --- prescriptions -------------------------------------------------

    async def dispatch_prescription_created(self, prescription_id: int) -> NotificationRead:
        prescription = await self.lookup.get_prescription(prescription_id)
        if not prescription:
            raise NotFoundError("prescription", prescription_id)
        patient = await self._require_patient(prescription.patient_id)

        doctor = None
        if prescription.doctor_id is not None:
            doctor = await self.lookup.get_doctor(prescription.doctor_id)

        saved = await self.create_and_dispatch(NotificationCreate(
            user_id=patient.user_id,
            title="New Prescription",
            message=f"{doctor_label(doctor)} has prescribed you new medications.",
            category="prescription",
            payload=PrescriptionPayload(prescription_id=prescription_id),
        ))

        if prescription.items:
            for pharmacist_user_id in self.pharmacist_user_ids:
                try:
                    await self.create_and_dispatch(NotificationCreate(
                        user_id=pharmacist_user_id,
                        title="New Prescription to Process",
                        message=f"New prescription for patient {person_label(patient, 'unknown')} needs to be processed.",
                        category="prescription_processing",
                        payload=PrescriptionPayload(prescription_id=prescription_id),
                    ))
                except Exception as e:
                    logger.error(f"❌ Could not notify pharmacist {pharmacist_user_id} of prescription {prescription_id}: {e}")

        return saved

    # --- appointments --------------------------------------------------

    async def dispatch_appointment_created(self, appointment_id: int) -> NotificationRead:
        appointment = await self._require_appointment(appointment_id)
        doctor = await self._require_doctor(appointment.doctor_id)
        patient = await self.lookup.get_patient(appointment.patient_id)

        return await self.create_and_dispatch(NotificationCreate(
            user_id=doctor.user_id,
            title="New Appointment",
            message=(
                f"New appointment with {person_label(patient, 'a patient')} on "
                f"{format_date(appointment.appointment_date)} at {format_time(appointment.appointment_time)}."
            ),
            category="appointment",
            payload=AppointmentPayload(appointment_id=appointment_id),
        ))

    async def dispatch_appointment_status_changed(self, appointment_id: int, new_status: str) -> NotificationRead:
        appointment = await self._require_appointment(appointment_id)
        patient = await self._require_patient(appointment.patient_id)
        doctor = await self.lookup.get_doctor(appointment.doctor_id)

        status_message = STATUS_MESSAGES.get(new_status, f"updated to {new_status}")

        return await self.create_and_dispatch(NotificationCreate(
            user_id=patient.user_id,
            title="Appointment Update",
            message=(
                f"Your appointment with {doctor_label(doctor, 'your doctor')} on "
                f"{format_date(appointment.appointment_date)} at {format_time(appointment.appointment_time)} "
                f"has been {status_message}."
            ),
            category="appointment_update",
            payload=AppointmentPayload(appointment_id=appointment_id),
        ))

    # --- vitals --------------------------------------------------------

    async def dispatch_vitals_check(
        self, patient_id: int, vital_signs: Union[VitalSigns, Dict[str, Any]]
    ) -> List[AlertDescriptor]:
        """Evaluate vitals and send one Health Alert per alert raised. Returns the alerts."""
        patient = await self._require_patient(patient_id)

        if isinstance(vital_signs, VitalSigns):
            raw = vital_signs.model_dump(by_alias=True, exclude_none=True)
        else:
            raw = dict(vital_signs)

        alerts = threshold_evaluator.evaluate_vital_signs(raw, include_extended=self.include_extended_vitals)

        for alert in alerts:
            await self.create_and_dispatch(NotificationCreate(
                user_id=patient.user_id,
                title="Health Alert",
                message=alert.message,
                category=alert.type,
                payload=VitalsPayload(vital_signs=raw),
            ))
            await self._notify_patient_doctor(patient, alert, VitalsPayload(vital_signs=raw, patient_id=patient_id))

        if alerts:
            logger.info(f"🩺 {len(alerts)} vitals alert(s) raised for patient {patient_id}")
        return alerts

    async def dispatch_health_metric_check(
        self, patient_id: int, metric_type: str, value: Dict[str, Any]
    ) -> Optional[AlertDescriptor]:
        patient = await self._require_patient(patient_id)

        alert = threshold_evaluator.evaluate_health_metric(metric_type, value, include_extended=self.include_extended_vitals)
        if not alert:
            return None

        reading = {"metricType": metric_type, **(value or {})}
        await self.create_and_dispatch(NotificationCreate(
            user_id=patient.user_id,
            title="Health Alert",
            message=alert.message,
            category=alert.type,
            payload=VitalsPayload(vital_signs=reading),
        ))
        await self._notify_patient_doctor(patient, alert, VitalsPayload(vital_signs=reading, patient_id=patient_id))
        return alert

    async def _notify_patient_doctor(self, patient: PersonRef, alert: AlertDescriptor, payload: VitalsPayload) -> None:
        """Copy an alert to the doctor of the patient's latest appointment, if there is one."""
        try:
            doctor_id = await self.lookup.latest_doctor_for_patient(patient.id)
            if doctor_id is None:
                return
            doctor = await self.lookup.get_doctor(doctor_id)
            if not doctor:
                return
            await self.create_and_dispatch(NotificationCreate(
                user_id=doctor.user_id,
                title="Patient Vital Alert",
                message=f"Patient {person_label(patient, 'unknown')}: {alert.message}",
                category=f"doctor_{alert.type}",
                payload=payload,
            ))
        except Exception as e:
            logger.warning(f"⚠️ Could not copy {alert.type} alert for patient {patient.id} to doctor: {e}")

    # --- medication reminders -----------------------------------------

    async def dispatch_medication_reminder(
        self, schedule: ReminderSchedule, slot: Optional[Slot] = None, patient: Optional[PersonRef] = None
    ) -> NotificationRead:
        if patient is None:
            patient = await self._require_patient(schedule.patient_id)

        return await self.create_and_dispatch(NotificationCreate(
            user_id=patient.user_id,
            title="Time to Take Your Medication",
            message=compose_reminder_message(schedule, slot),
            category="medication_reminder",
            payload=MedicationReminderPayload(
                schedule_id=schedule.id,
                medication_name=schedule.medication_name,
                slot=slot.label if slot else None,
            ),
        ))

    async def dispatch_reminder_created(self, schedule: ReminderSchedule) -> NotificationRead:
        patient = await self._require_patient(schedule.patient_id)
        return await self.create_and_dispatch(NotificationCreate(
            user_id=patient.user_id,
            title="Medication Reminder Setup",
            message=(
                f"Reminder set for {schedule.medication_name}. "
                f"You'll receive notifications when it's time to take your medication."
            ),
            category="medication_reminder_setup",
            payload=MedicationReminderPayload(schedule_id=schedule.id, medication_name=schedule.medication_name),
        ))

    # --- inbox ---------------------------------------------------------

    async def list_notifications(self, user_id: int) -> List[NotificationRead]:
        return await self.store.find_by_user(user_id)

    async def mark_read(self, notification_id: int) -> NotificationRead:
        notification = await self.store.mark_read(notification_id)
        if not notification:
            raise NotFoundError("notification", notification_id)
        return notification

    async def mark_all_read(self, user_id: int) -> int:
        return await self.store.mark_all_read(user_id)


def compose_reminder_message(schedule: ReminderSchedule, slot: Optional[Slot] = None) -> str:
    """
    "Time to take Amoxicillin (500mg) at 08:00 AM, on Mon, Wed, Fri, from Oct 01, 2026 to Oct 14, 2026."
    """
    medication = schedule.medication_name
    if schedule.dosage:
        medication = f"{medication} ({schedule.dosage})"

    if slot is not None:
        when = slot.label
    else:
        slots = schedule_resolver.resolve_slots(schedule.time_of_day)
        when = ", ".join(s.label for s in slots) if slots else "as needed"

    days = schedule_resolver.describe_days(schedule.days_of_week)
    days_part = days if days == "everyday" else f"on {days}"

    parts = [f"Time to take {medication} at {when}", days_part]
    date_range = schedule_resolver.describe_date_range(schedule.start_date, schedule.end_date)
    if date_range:
        parts.append(date_range)

    message = ", ".join(parts) + "."
    if schedule.instructions:
        message += f" {schedule.instructions}"
    return message
