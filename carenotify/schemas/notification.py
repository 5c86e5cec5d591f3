from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Union, Any, Dict, Annotated
from datetime import datetime

# Payload variants, keyed by "kind"

class AppointmentPayload(BaseModel):
    kind: Literal["appointment"] = "appointment"
    appointment_id: int

class PrescriptionPayload(BaseModel):
    kind: Literal["prescription"] = "prescription"
    prescription_id: int

class VitalsPayload(BaseModel):
    kind: Literal["vitals"] = "vitals"
    vital_signs: Dict[str, Any]
    patient_id: Optional[int] = None

class MedicationReminderPayload(BaseModel):
    kind: Literal["medication_reminder"] = "medication_reminder"
    schedule_id: Optional[int] = None
    medication_name: str
    slot: Optional[str] = None

class GenericPayload(BaseModel):
    kind: Literal["generic"] = "generic"
    data: Dict[str, Any] = {}

NotificationPayload = Annotated[
    Union[AppointmentPayload, PrescriptionPayload, VitalsPayload, MedicationReminderPayload, GenericPayload],
    Field(discriminator="kind"),
]

class NotificationCreate(BaseModel):
    user_id: int
    title: str
    message: str
    category: str
    payload: Optional[NotificationPayload] = None

class NotificationRead(BaseModel):
    id: int
    user_id: int
    title: str
    message: str
    category: str
    payload: Optional[NotificationPayload] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    def to_push_message(self) -> dict:
        """Frame sent over the live channel."""
        return {"type": "notification", **self.model_dump(mode="json")}

class MarkAllReadResponse(BaseModel):
    updated: int

class NotificationList(BaseModel):
    items: List[NotificationRead]
    unread_count: int
