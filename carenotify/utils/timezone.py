from datetime import datetime, timezone
from typing import Optional
import pytz
from carenotify.core.config import settings

def to_clinic_time(now: datetime, tz_name: Optional[str] = None) -> datetime:
    """Aware datetimes are converted to the clinic timezone; naive ones are taken as clinic wall-clock time."""
    if now.tzinfo is None:
        return now
    return now.astimezone(pytz.timezone(tz_name or settings.CLINIC_TIMEZONE))

def get_clinic_time(tz_name: Optional[str] = None) -> datetime:
    """Current time in the clinic timezone as an aware datetime."""
    return to_clinic_time(datetime.now(timezone.utc), tz_name)
