from pydantic import BaseModel
from typing import Optional, List
from datetime import date, time

class PersonRef(BaseModel):
    id: int
    user_id: int
    full_name: Optional[str] = None
    email: Optional[str] = None

class AppointmentRef(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    appointment_date: date
    appointment_time: time
    status: str = "scheduled"

    class Config:
        from_attributes = True

class PrescriptionItemRef(BaseModel):
    id: int
    medication_name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    time_of_day: Optional[str] = None
    days_of_week: Optional[str] = None
    duration_days: Optional[int] = None
    instructions: Optional[str] = None

    class Config:
        from_attributes = True

class PrescriptionRef(BaseModel):
    id: int
    patient_id: int
    doctor_id: Optional[int] = None
    items: List[PrescriptionItemRef] = []

    class Config:
        from_attributes = True

class AppointmentStatusUpdate(BaseModel):
    status: str
