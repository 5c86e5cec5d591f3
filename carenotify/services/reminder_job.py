import logging
from datetime import datetime
from typing import Optional

from carenotify.schemas.care import PersonRef
from carenotify.schemas.schedule import ReminderSchedule
from carenotify.services import schedule_resolver
from carenotify.services.email_service import render_medication_reminder_email
from carenotify.services.interfaces import CareLookup, EmailProvider, ScheduleStore
from carenotify.services.notification_dispatcher import NotificationDispatcher, compose_reminder_message
from carenotify.services.schedule_resolver import Slot
from carenotify.utils.timezone import to_clinic_time

logger = logging.getLogger(__name__)


class ReminderDispatchJob:
    """
    One sweep over the active medication schedules.

    For each due schedule the in-app reminder goes first; the email is a
    separate step that can fail without touching the in-app result or the
    rest of the sweep.
    """

    def __init__(
        self,
        schedules: ScheduleStore,
        dispatcher: NotificationDispatcher,
        lookup: CareLookup,
        email: EmailProvider,
        tz_name: Optional[str] = None,
    ):
        self.schedules = schedules
        self.dispatcher = dispatcher
        self.lookup = lookup
        self.email = email
        self.tz_name = tz_name

    async def run_sweep(self, now: datetime) -> int:
        """Returns the number of schedules whose in-app reminder was dispatched."""
        local_now = to_clinic_time(now, self.tz_name)

        # A failure here ends the sweep: there is nothing to iterate
        active = await self.schedules.find_active_schedules()

        processed = 0
        emails_sent = 0
        for schedule in active:
            slot = schedule_resolver.due_slot(schedule, local_now)
            if slot is None:
                continue

            patient = await self._dispatch_in_app(schedule, slot, local_now)
            if patient is None:
                continue
            processed += 1

            if await self._send_email(schedule, slot, patient):
                emails_sent += 1

        logger.info(
            f"⏰ Reminder sweep at {local_now.strftime('%Y-%m-%d %H:%M')}: "
            f"{len(active)} active, {processed} dispatched, {emails_sent} emailed"
        )
        return processed

    async def _dispatch_in_app(self, schedule: ReminderSchedule, slot: Slot, now: datetime) -> Optional[PersonRef]:
        try:
            patient = await self.lookup.get_patient(schedule.patient_id)
            if not patient:
                logger.error(f"❌ Patient {schedule.patient_id} not found for schedule {schedule.id}; skipping")
                return None
            await self.dispatcher.dispatch_medication_reminder(schedule, slot, patient=patient)
        except Exception as e:
            logger.error(f"❌ In-app reminder failed for schedule {schedule.id}: {e}")
            return None

        try:
            await self.schedules.mark_reminded(
                schedule.id,
                schedule_resolver.record_occurrence(schedule.last_reminded_slot, slot.occurrence_key(now.date())),
            )
        except Exception as e:
            logger.error(f"❌ Could not record reminder for schedule {schedule.id}: {e}")

        return patient

    async def _send_email(self, schedule: ReminderSchedule, slot: Slot, patient: PersonRef) -> bool:
        try:
            if not self.email.is_configured():
                logger.warning(f"⚠️ Email provider not configured; skipping email for schedule {schedule.id}")
                return False
            if not patient.email:
                logger.info(f"No email address for patient {patient.id}; skipping email for schedule {schedule.id}")
                return False

            title = f"Medication Reminder: {schedule.medication_name}"
            body = render_medication_reminder_email(patient.full_name, title, compose_reminder_message(schedule, slot))
            sent = await self.email.send(patient.email, title, body)
            if not sent:
                logger.warning(f"⚠️ Failed to send email for reminder {schedule.id}")
            return sent
        except Exception as e:
            logger.warning(f"⚠️ Failed to send email for reminder {schedule.id}: {e}")
            return False
