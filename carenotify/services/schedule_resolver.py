"""
Decides whether a medication schedule has an occurrence due, and renders the
next occurrence for display.

Time matching is bucketed by hour: a slot is due from its own minute to the
end of its hour, so "morning" (08:00) covers the whole 8am hour and 21:30
covers 21:30-21:59. Nothing here raises; a schedule the resolver cannot make
sense of is simply never due.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, List, Optional, Sequence, Set, Union

import dateparser

logger = logging.getLogger(__name__)

NAMED_SLOTS = {
    "morning": time(8, 0),
    "afternoon": time(13, 0),
    "evening": time(19, 0),
}

AS_NEEDED_TOKENS = {"as needed", "as_needed", "prn"}

WEEKDAYS = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"] # datetime.weekday() order

_DAY_ALIASES = {
    "monday": "mon", "tuesday": "tue", "tues": "tue", "wednesday": "wed",
    "thursday": "thu", "thur": "thu", "thurs": "thu", "friday": "fri",
    "saturday": "sat", "sunday": "sun",
}


@dataclass(frozen=True)
class Slot:
    name: str # "morning" or the explicit time as given
    at: time

    @property
    def label(self) -> str:
        return self.at.strftime("%I:%M %p")

    def occurrence_key(self, day: date) -> str:
        return f"{day.isoformat()}T{self.at.strftime('%H:%M')}"

    def is_due_at(self, now: datetime) -> bool:
        # From the slot's own minute to the end of its hour
        return now.hour == self.at.hour and now.minute >= self.at.minute

    def is_ahead_of(self, now: datetime) -> bool:
        return (now.hour, now.minute) < (self.at.hour, self.at.minute)


def _tokens(value: Union[str, Sequence[str], None]) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = list(value)
    return [str(item).strip().lower() for item in items if item is not None and str(item).strip()]


def _parse_explicit_time(token: str) -> Optional[time]:
    # Bare numbers ("8") would parse as a day of month
    if ":" not in token and "am" not in token and "pm" not in token:
        return None
    parsed = dateparser.parse(token, languages=["en"])
    if parsed is None:
        return None
    return parsed.time().replace(second=0, microsecond=0)


def resolve_slots(time_of_day: Union[str, Sequence[str], None]) -> List[Slot]:
    """
    "morning, 21:30" -> [Slot(morning 08:00), Slot(21:30)], sorted by time.
    Unknown tokens are skipped; "as needed" contributes no slot.
    """
    slots = {}
    for token in _tokens(time_of_day):
        if token in AS_NEEDED_TOKENS:
            continue
        if token in NAMED_SLOTS:
            at = NAMED_SLOTS[token]
        else:
            at = _parse_explicit_time(token)
            if at is None:
                logger.debug(f"Skipping unknown time-of-day token '{token}'")
                continue
        slots.setdefault(at, Slot(name=token, at=at))
    return [slots[at] for at in sorted(slots)]


def resolve_days(days_of_week: Union[str, Sequence[str], None]) -> Set[str]:
    """Weekday abbreviations the schedule runs on. Nothing configured means every day."""
    tokens = _tokens(days_of_week)
    if not tokens:
        return set(WEEKDAYS)
    days = set()
    for token in tokens:
        token = _DAY_ALIASES.get(token, token[:3])
        if token in WEEKDAYS:
            days.add(token)
    return days


def parse_schedule_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = dateparser.parse(str(value), languages=["en"], settings={"DATE_ORDER": "YMD"})
    return parsed.date() if parsed else None


def is_active_on(schedule, day: date) -> bool:
    """Date-range and weekday checks. Fails closed on unparseable dates."""
    start = parse_schedule_date(getattr(schedule, "start_date", None))
    if start is None or day < start:
        return False

    raw_end = getattr(schedule, "end_date", None)
    if raw_end not in (None, ""):
        end = parse_schedule_date(raw_end)
        if end is None or day > end:
            return False

    return WEEKDAYS[day.weekday()] in resolve_days(getattr(schedule, "days_of_week", None))


def reminded_keys(value: Optional[str]) -> Set[str]:
    """Occurrence keys recorded in last_reminded_slot ("2026-10-19T08:00,2026-10-19T08:30")."""
    return {key.strip() for key in (value or "").split(",") if key.strip()}


def record_occurrence(previous: Optional[str], key: str) -> str:
    """Add key to the keys already sent on the same day. Keys from earlier days are dropped."""
    day = key.split("T", 1)[0]
    keys = {k for k in reminded_keys(previous) if k.startswith(f"{day}T")}
    keys.add(key)
    return ",".join(sorted(keys))


def due_slot(schedule, now: datetime) -> Optional[Slot]:
    """The slot of schedule that is due at now, or None."""
    try:
        if getattr(schedule, "frequency", None) == "as_needed":
            return None
        if not is_active_on(schedule, now.date()):
            return None

        already_sent = reminded_keys(getattr(schedule, "last_reminded_slot", None))
        for slot in resolve_slots(getattr(schedule, "time_of_day", None)):
            if not slot.is_due_at(now):
                continue
            if slot.occurrence_key(now.date()) in already_sent:
                continue
            return slot
        return None
    except Exception as e:
        logger.warning(f"Could not resolve schedule {getattr(schedule, 'id', None)}: {e}")
        return None


def is_due_now(schedule, now: datetime) -> bool:
    return due_slot(schedule, now) is not None


def describe_next_occurrence(schedule, now: datetime) -> str:
    """
    "Today, 08:00 AM" if a slot's time is still ahead today, otherwise
    "Tomorrow, <earliest slot>". Schedules with no usable slot read "As needed".
    """
    try:
        slots = resolve_slots(getattr(schedule, "time_of_day", None))
        if not slots or getattr(schedule, "frequency", None) == "as_needed":
            return "As needed"

        for slot in slots:
            if slot.is_ahead_of(now):
                return f"Today, {slot.label}"
        return f"Tomorrow, {slots[0].label}"
    except Exception as e:
        logger.warning(f"Could not describe schedule {getattr(schedule, 'id', None)}: {e}")
        return "As needed"


def describe_days(days_of_week: Union[str, Sequence[str], None]) -> str:
    days = resolve_days(days_of_week)
    if len(days) == len(WEEKDAYS):
        return "everyday"
    return ", ".join(day.capitalize() for day in WEEKDAYS if day in days)


def describe_date_range(start: Any, end: Any) -> str:
    start_date = parse_schedule_date(start)
    end_date = parse_schedule_date(end)
    if start_date is None:
        return ""
    if end_date is None:
        return f"starting {start_date.strftime('%b %d, %Y')}"
    if start_date == end_date:
        return f"on {start_date.strftime('%b %d, %Y')}"
    return f"from {start_date.strftime('%b %d, %Y')} to {end_date.strftime('%b %d, %Y')}"
