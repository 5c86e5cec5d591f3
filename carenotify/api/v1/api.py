from fastapi import APIRouter
from carenotify.api.v1.endpoints import notifications, alerts, medication_schedules, reminders

api_router = APIRouter()
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(alerts.router, prefix="/alerts", tags=["alerts"])
api_router.include_router(medication_schedules.router, prefix="/medication-schedules", tags=["medication-schedules"])
api_router.include_router(reminders.router, prefix="/reminders", tags=["reminders"])
