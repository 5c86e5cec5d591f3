from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from carenotify.api.deps import get_dispatcher
from carenotify.schemas.care import AppointmentStatusUpdate
from carenotify.schemas.vitals import AlertDescriptor, AlertsResponse, HealthMetricCheckRequest, VitalsCheckRequest
from carenotify.services import care_events
from carenotify.services.notification_dispatcher import NotificationDispatcher

router = APIRouter()

class PrescriptionSubmitted(BaseModel):
    vital_signs: Optional[Dict[str, Any]] = None

class PrescriptionAlertResponse(BaseModel):
    prescription_notified: bool
    alerts: List[AlertDescriptor] = []

class DispatchResponse(BaseModel):
    notified: bool

@router.post("/vitals", response_model=AlertsResponse)
async def check_vitals(
    request: VitalsCheckRequest,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    """Evaluate a vitals snapshot and raise Health Alerts for the patient"""
    alerts = await dispatcher.dispatch_vitals_check(request.patient_id, request.vital_signs)
    return AlertsResponse(alerts=alerts)

@router.post("/health-metrics", response_model=AlertsResponse)
async def check_health_metric(
    request: HealthMetricCheckRequest,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    alert = await dispatcher.dispatch_health_metric_check(request.patient_id, request.metric_type, request.value)
    return AlertsResponse(alerts=[alert] if alert else [])

@router.post("/prescriptions/{prescription_id}", response_model=PrescriptionAlertResponse)
async def prescription_submitted(
    prescription_id: int,
    body: Optional[PrescriptionSubmitted] = Body(default=None),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    vital_signs = body.vital_signs if body else None
    return await care_events.handle_prescription_submitted(dispatcher, prescription_id, vital_signs)

@router.post("/appointments/{appointment_id}", response_model=DispatchResponse)
async def appointment_booked(
    appointment_id: int,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    notified = await care_events.handle_appointment_booked(dispatcher, appointment_id)
    return DispatchResponse(notified=notified)

@router.post("/appointments/{appointment_id}/status", response_model=DispatchResponse)
async def appointment_status_changed(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    notified = await care_events.handle_appointment_status_changed(dispatcher, appointment_id, update.status)
    return DispatchResponse(notified=notified)
