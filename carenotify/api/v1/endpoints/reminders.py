from fastapi import APIRouter, Depends
from pydantic import BaseModel
from datetime import datetime, timezone
from typing import Optional
from carenotify.api.deps import get_reminder_job
from carenotify.services.reminder_job import ReminderDispatchJob

router = APIRouter()

class SweepRequest(BaseModel):
    now: Optional[datetime] = None

class SweepResponse(BaseModel):
    processed: int
    ran_at: datetime

@router.post("/sweep", response_model=SweepResponse)
async def run_sweep(
    request: Optional[SweepRequest] = None,
    job: ReminderDispatchJob = Depends(get_reminder_job)
):
    """Run one reminder sweep now (the scheduler does this on its own cadence)"""
    now = (request.now if request and request.now else None) or datetime.now(timezone.utc)
    processed = await job.run_sweep(now)
    return SweepResponse(processed=processed, ran_at=now)
