from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from carenotify.core.connection_registry import ConnectionRegistry
from carenotify.core.database import get_db
from carenotify.services.email_service import EmailService
from carenotify.services.notification_dispatcher import NotificationDispatcher
from carenotify.services.reminder_job import ReminderDispatchJob
from carenotify.services.stores import SqlCareLookup, SqlNotificationStore, SqlScheduleStore

def get_registry(request: Request) -> ConnectionRegistry:
    """The process-wide registry created in main.lifespan"""
    return request.app.state.connection_registry

def get_lookup(db: AsyncSession = Depends(get_db)) -> SqlCareLookup:
    return SqlCareLookup(db)

def get_schedule_store(db: AsyncSession = Depends(get_db)) -> SqlScheduleStore:
    return SqlScheduleStore(db)

def get_email_service() -> EmailService:
    return EmailService()

def get_dispatcher(
    db: AsyncSession = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_registry),
    lookup: SqlCareLookup = Depends(get_lookup),
) -> NotificationDispatcher:
    return NotificationDispatcher(SqlNotificationStore(db), registry, lookup)

def get_reminder_job(
    schedules: SqlScheduleStore = Depends(get_schedule_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    lookup: SqlCareLookup = Depends(get_lookup),
    email: EmailService = Depends(get_email_service),
) -> ReminderDispatchJob:
    return ReminderDispatchJob(schedules, dispatcher, lookup, email)
