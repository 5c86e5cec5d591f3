from pydantic import BaseModel, field_validator
from typing import Optional, Any
from datetime import date
from enum import Enum

class Frequency(str, Enum):
    ONCE_DAILY = "once_daily"
    TWICE_DAILY = "twice_daily"
    THREE_TIMES_DAILY = "three_times_daily"
    FOUR_TIMES_DAILY = "four_times_daily"
    AS_NEEDED = "as_needed"

class ScheduleBase(BaseModel):
    patient_id: int
    medication_name: str
    dosage: str = "1 tablet"
    frequency: str = Frequency.ONCE_DAILY.value
    start_date: date
    end_date: Optional[date] = None
    time_of_day: Optional[str] = "morning"
    days_of_week: Optional[str] = None
    instructions: Optional[str] = None
    prescription_item_id: Optional[int] = None

    @field_validator('medication_name')
    def medication_name_must_not_be_empty(cls, v):
        if not v or not v.strip():
            raise ValueError('Medication name cannot be empty')
        return v.strip()

class ScheduleCreate(ScheduleBase):
    is_active: bool = True

class ReminderSchedule(ScheduleBase):
    """
    A stored medication schedule as the resolver sees it.

    start_date/end_date may be date objects or strings from older clients;
    the resolver treats anything it cannot parse as not due.
    """
    id: Optional[int] = None
    start_date: Any = None
    end_date: Any = None
    is_active: bool = True
    last_reminded_slot: Optional[str] = None

    class Config:
        from_attributes = True

class ScheduleResponse(ScheduleBase):
    id: int
    is_active: bool
    last_reminded_slot: Optional[str] = None

    class Config:
        from_attributes = True

class NextOccurrenceResponse(BaseModel):
    schedule_id: int
    label: str
    due_now: bool
