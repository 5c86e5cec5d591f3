from datetime import date, datetime, time

import pytest

from carenotify.services import schedule_resolver as sr
from conftest import make_schedule

# 2026-10-19 is a Monday
MONDAY = date(2026, 10, 19)


def at(hour, minute=0, second=0, day=MONDAY):
    return datetime(day.year, day.month, day.day, hour, minute, second)


def test_resolve_named_and_explicit_slots():
    slots = sr.resolve_slots("evening, 21:30, morning")

    assert [s.at for s in slots] == [time(8, 0), time(19, 0), time(21, 30)]
    assert [s.label for s in slots] == ["08:00 AM", "07:00 PM", "09:30 PM"]


def test_resolve_slots_skips_unknown_and_as_needed():
    assert sr.resolve_slots("as needed") == []
    assert sr.resolve_slots("whenever, afternoon") == [sr.Slot(name="afternoon", at=time(13, 0))]
    assert sr.resolve_slots(None) == []


def test_resolve_slots_accepts_lists_and_deduplicates():
    slots = sr.resolve_slots(["morning", "08:00"])
    assert len(slots) == 1


def test_resolve_days():
    assert sr.resolve_days(None) == set(sr.WEEKDAYS)
    assert sr.resolve_days("Monday, wed,FRI") == {"mon", "wed", "fri"}
    assert sr.resolve_days("funday") == set()


def test_occurrence_key():
    assert sr.Slot("morning", time(8, 0)).occurrence_key(MONDAY) == "2026-10-19T08:00"


@pytest.mark.parametrize("now,due", [
    (at(8, 0, 0), True),
    (at(8, 1), True),
    (at(8, 59), True),
    (at(7, 59), False),
    (at(9, 0), False),
])
def test_morning_slot_is_due_for_its_hour(now, due):
    assert sr.is_due_now(make_schedule(), now) is due


def test_not_due_once_reminded_for_the_slot():
    schedule = make_schedule(last_reminded_slot="2026-10-19T08:00")

    assert not sr.is_due_now(schedule, at(8, 1))
    # Next day's occurrence is a different key
    assert sr.is_due_now(schedule, at(8, 1, day=date(2026, 10, 20)))


def test_second_slot_of_the_day_still_due_after_first_sent():
    schedule = make_schedule(time_of_day="morning,evening", last_reminded_slot="2026-10-19T08:00")

    slot = sr.due_slot(schedule, at(19, 5))

    assert slot.name == "evening"


def test_not_due_after_end_date():
    schedule = make_schedule(end_date=date(2026, 10, 18))
    assert not sr.is_due_now(schedule, at(8, 0))


def test_due_on_end_date():
    schedule = make_schedule(end_date=MONDAY)
    assert sr.is_due_now(schedule, at(8, 0))


def test_not_due_before_start_date():
    schedule = make_schedule(start_date=date(2026, 10, 20))
    assert not sr.is_due_now(schedule, at(8, 0))


def test_weekday_filter():
    schedule = make_schedule(days_of_week="tue,thu")

    assert not sr.is_due_now(schedule, at(8, 0))
    assert sr.is_due_now(schedule, at(8, 0, day=date(2026, 10, 20)))


def test_unparseable_dates_are_never_due():
    assert not sr.is_due_now(make_schedule(start_date="???"), at(8, 0))
    assert not sr.is_due_now(make_schedule(end_date="???"), at(8, 0))


def test_string_dates_are_parsed():
    schedule = make_schedule(start_date="2026-10-01", end_date="2026-10-31")
    assert sr.is_due_now(schedule, at(8, 0))


def test_as_needed_never_due():
    schedule = make_schedule(frequency="as_needed", time_of_day="morning")
    assert not sr.is_due_now(schedule, at(8, 0))


def test_describe_next_occurrence_today_and_tomorrow():
    schedule = make_schedule(time_of_day="morning,evening")

    assert sr.describe_next_occurrence(schedule, at(7, 59)) == "Today, 08:00 AM"
    assert sr.describe_next_occurrence(schedule, at(8, 30)) == "Today, 07:00 PM"
    assert sr.describe_next_occurrence(schedule, at(20, 0)) == "Tomorrow, 08:00 AM"


def test_describe_next_occurrence_tomorrow_uses_earliest_slot():
    schedule = make_schedule(time_of_day="afternoon")
    assert sr.describe_next_occurrence(schedule, at(14, 0)) == "Tomorrow, 01:00 PM"


def test_describe_next_occurrence_as_needed():
    assert sr.describe_next_occurrence(make_schedule(time_of_day="as needed"), at(7, 0)) == "As needed"
    assert sr.describe_next_occurrence(make_schedule(time_of_day=None), at(7, 0)) == "As needed"


def test_describe_days_and_range():
    assert sr.describe_days(None) == "everyday"
    assert sr.describe_days("fri,mon,wed") == "Mon, Wed, Fri"
    assert sr.describe_date_range(date(2026, 10, 1), date(2026, 10, 14)) == "from Oct 01, 2026 to Oct 14, 2026"
    assert sr.describe_date_range(date(2026, 10, 1), date(2026, 10, 1)) == "on Oct 01, 2026"
    assert sr.describe_date_range(date(2026, 10, 1), None) == "starting Oct 01, 2026"
    assert sr.describe_date_range(None, None) == ""


@pytest.mark.parametrize("now,due", [
    (at(21, 0), False),
    (at(21, 29), False),
    (at(21, 30), True),
    (at(21, 59), True),
    (at(22, 0), False),
])
def test_explicit_slot_is_due_from_its_own_minute(now, due):
    assert sr.is_due_now(make_schedule(time_of_day="21:30"), now) is due


def test_explicit_slot_label_agrees_with_due_check():
    schedule = make_schedule(time_of_day="21:30")

    assert sr.describe_next_occurrence(schedule, at(21, 10)) == "Today, 09:30 PM"
    assert sr.describe_next_occurrence(schedule, at(21, 30)) == "Tomorrow, 09:30 PM"


def test_two_slots_in_one_hour_are_tracked_separately():
    schedule = make_schedule(time_of_day="08:00, 08:30", last_reminded_slot="2026-10-19T08:00")

    assert sr.due_slot(schedule, at(8, 15)) is None
    assert sr.due_slot(schedule, at(8, 30)).at == time(8, 30)

    schedule = make_schedule(time_of_day="08:00, 08:30", last_reminded_slot="2026-10-19T08:00,2026-10-19T08:30")
    assert sr.due_slot(schedule, at(8, 45)) is None


def test_record_occurrence_keeps_only_the_same_day():
    assert sr.record_occurrence(None, "2026-10-19T08:00") == "2026-10-19T08:00"
    assert sr.record_occurrence("2026-10-19T08:00", "2026-10-19T08:30") == "2026-10-19T08:00,2026-10-19T08:30"
    assert sr.record_occurrence("2026-10-18T08:00,2026-10-18T19:00", "2026-10-19T08:00") == "2026-10-19T08:00"
    assert sr.reminded_keys(" 2026-10-19T08:00 ,, ") == {"2026-10-19T08:00"}
