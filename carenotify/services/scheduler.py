from apscheduler.schedulers.asyncio import AsyncIOScheduler
from datetime import datetime, timezone
from carenotify.core.config import settings
from carenotify.core.connection_registry import ConnectionRegistry
from carenotify.core.database import AsyncSessionLocal
from carenotify.services.email_service import EmailService
from carenotify.services.notification_dispatcher import NotificationDispatcher
from carenotify.services.reminder_job import ReminderDispatchJob
from carenotify.services.stores import SqlCareLookup, SqlNotificationStore, SqlScheduleStore
import logging

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

def build_reminder_job(db, registry: ConnectionRegistry) -> ReminderDispatchJob:
    lookup = SqlCareLookup(db)
    dispatcher = NotificationDispatcher(SqlNotificationStore(db), registry, lookup)
    return ReminderDispatchJob(SqlScheduleStore(db), dispatcher, lookup, EmailService())

async def scheduled_reminder_sweep(registry: ConnectionRegistry):
    """Background sweep, runs every REMINDER_SWEEP_MINUTES"""
    async with AsyncSessionLocal() as db:
        try:
            logger.info("⏰ Running medication reminder sweep...")
            job = build_reminder_job(db, registry)
            await job.run_sweep(datetime.now(timezone.utc))
        except Exception as e:
            logger.error(f"❌ Error in medication reminder sweep: {e}")

def start_scheduler(registry: ConnectionRegistry):
    """Start the APScheduler background job"""
    if not scheduler.running:
        scheduler.add_job(
            scheduled_reminder_sweep,
            "interval",
            minutes=settings.REMINDER_SWEEP_MINUTES,
            kwargs={"registry": registry},
            id="medication_reminder_job",
            replace_existing=True
        )
        scheduler.start()
        logger.info(f"🚀 Background Scheduler started (Runs every {settings.REMINDER_SWEEP_MINUTES} min)")

def shutdown_scheduler():
    """Shut down the scheduler on app exit"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("🛑 Background Scheduler stopped")
