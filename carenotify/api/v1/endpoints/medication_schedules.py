from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Optional
from carenotify.api.deps import get_dispatcher, get_lookup, get_schedule_store
from carenotify.schemas.schedule import ScheduleCreate, ScheduleResponse, NextOccurrenceResponse
from carenotify.services import care_events, schedule_resolver
from carenotify.services.notification_dispatcher import NotificationDispatcher
from carenotify.services.stores import SqlCareLookup, SqlScheduleStore
from carenotify.utils.timezone import get_clinic_time
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("", response_model=List[ScheduleResponse])
async def list_schedules(
    patient_id: int,
    active: Optional[bool] = None,
    schedules: SqlScheduleStore = Depends(get_schedule_store)
):
    return await schedules.find_by_patient(patient_id, active)

@router.post("", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    schedule_in: ScheduleCreate,
    schedules: SqlScheduleStore = Depends(get_schedule_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    if schedule_in.end_date and schedule_in.end_date < schedule_in.start_date:
        raise HTTPException(status_code=400, detail="end_date cannot be before start_date")

    schedule = await schedules.insert(schedule_in)
    try:
        await dispatcher.dispatch_reminder_created(schedule)
    except Exception as e:
        logger.error(f"❌ Error sending reminder setup notification for schedule {schedule.id}: {e}")
    return schedule

@router.post("/from-prescription/{prescription_id}", response_model=List[ScheduleResponse], status_code=status.HTTP_201_CREATED)
async def create_schedules_from_prescription(
    prescription_id: int,
    schedules: SqlScheduleStore = Depends(get_schedule_store),
    lookup: SqlCareLookup = Depends(get_lookup),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    """One schedule per prescription item, starting today"""
    return await care_events.create_schedules_for_prescription(dispatcher, schedules, lookup, prescription_id)

@router.post("/{schedule_id}/deactivate", response_model=ScheduleResponse)
async def deactivate_schedule(
    schedule_id: int,
    schedules: SqlScheduleStore = Depends(get_schedule_store)
):
    schedule = await schedules.deactivate(schedule_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="Medication schedule not found")
    return schedule

@router.get("/{schedule_id}/next-occurrence", response_model=NextOccurrenceResponse)
async def next_occurrence(
    schedule_id: int,
    schedules: SqlScheduleStore = Depends(get_schedule_store)
):
    schedule = await schedules.get(schedule_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="Medication schedule not found")

    now = get_clinic_time()
    return NextOccurrenceResponse(
        schedule_id=schedule_id,
        label=schedule_resolver.describe_next_occurrence(schedule, now),
        due_now=schedule_resolver.is_due_now(schedule, now),
    )
