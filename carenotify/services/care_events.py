"""
Notification side of the primary clinical actions.

These run after the primary record (prescription, appointment) has been
committed by its own service. A notification failure never turns the primary
action into a failure; the one exception is a NotFoundError for the primary
entity itself, which propagates to the caller.
"""
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from carenotify.core.exceptions import NotFoundError
from carenotify.schemas.schedule import ReminderSchedule, ScheduleCreate
from carenotify.services.interfaces import CareLookup, ScheduleStore
from carenotify.services.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


def _is_primary_missing(error: Exception, entity: str, entity_id: int) -> bool:
    return isinstance(error, NotFoundError) and error.entity == entity and error.entity_id == entity_id


async def handle_prescription_submitted(
    dispatcher: NotificationDispatcher,
    prescription_id: int,
    vital_signs: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    summary: Dict[str, Any] = {"prescription_notified": False, "alerts": []}

    try:
        await dispatcher.dispatch_prescription_created(prescription_id)
        summary["prescription_notified"] = True
    except Exception as e:
        if _is_primary_missing(e, "prescription", prescription_id):
            raise
        logger.error(f"❌ Error sending prescription notification for {prescription_id}: {e}")

    if vital_signs:
        try:
            prescription = await dispatcher.lookup.get_prescription(prescription_id)
            if prescription:
                alerts = await dispatcher.dispatch_vitals_check(prescription.patient_id, vital_signs)
                summary["alerts"] = [a.model_dump() for a in alerts]
        except Exception as e:
            logger.error(f"❌ Error checking vital signs for prescription {prescription_id}: {e}")

    return summary


async def handle_appointment_booked(dispatcher: NotificationDispatcher, appointment_id: int) -> bool:
    try:
        await dispatcher.dispatch_appointment_created(appointment_id)
        return True
    except Exception as e:
        if _is_primary_missing(e, "appointment", appointment_id):
            raise
        logger.error(f"❌ Error sending appointment notification for {appointment_id}: {e}")
        return False


async def handle_appointment_status_changed(
    dispatcher: NotificationDispatcher, appointment_id: int, new_status: str
) -> bool:
    try:
        await dispatcher.dispatch_appointment_status_changed(appointment_id, new_status)
        return True
    except Exception as e:
        if _is_primary_missing(e, "appointment", appointment_id):
            raise
        logger.error(f"❌ Error sending appointment status update for {appointment_id}: {e}")
        return False


async def create_schedules_for_prescription(
    dispatcher: NotificationDispatcher,
    schedules: ScheduleStore,
    lookup: CareLookup,
    prescription_id: int,
    start: Optional[date] = None,
) -> List[ReminderSchedule]:
    """One medication schedule per prescription item, each followed by a setup notification."""
    prescription = await lookup.get_prescription(prescription_id)
    if not prescription:
        raise NotFoundError("prescription", prescription_id)

    start = start or date.today()
    created = []
    for item in prescription.items:
        end = start + timedelta(days=item.duration_days - 1) if item.duration_days else None
        schedule = await schedules.insert(ScheduleCreate(
            patient_id=prescription.patient_id,
            prescription_item_id=item.id,
            medication_name=item.medication_name,
            dosage=item.dosage or "1 tablet",
            frequency=item.frequency or "once_daily",
            start_date=start,
            end_date=end,
            time_of_day=item.time_of_day or "morning",
            days_of_week=item.days_of_week,
            instructions=item.instructions,
        ))
        created.append(schedule)

        try:
            await dispatcher.dispatch_reminder_created(schedule)
        except Exception as e:
            logger.error(f"❌ Error sending reminder setup notification for schedule {schedule.id}: {e}")

    return created
