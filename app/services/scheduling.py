"""Date-range helpers for the appointment calendar.

Everything here is pure: no session, no I/O. All datetimes are naive UTC,
the storage convention used by the models.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import and_, or_

from app.models.appointment import Appointment, AppointmentRead, AppointmentStatus, CalendarDay

URGENT_WINDOW = timedelta(hours=1)


def intervals_overlap(
    start: datetime, end: datetime, other_start: datetime, other_end: datetime,
) -> bool:
    """True when [start, end) and [other_start, other_end) share any instant.

    Three cases: the new start falls inside the other interval, the new end
    falls inside it, or the new interval contains it entirely.
    """
    starts_inside = other_start <= start < other_end
    ends_inside = other_start < end <= other_end
    contains = start <= other_start and other_end <= end
    return starts_inside or ends_inside or contains


def overlap_clause(start: datetime, end: datetime):
    """SQL form of :func:`intervals_overlap` against ``Appointment`` columns."""
    return or_(
        and_(Appointment.starts_at <= start, Appointment.ends_at > start),
        and_(Appointment.starts_at < end, Appointment.ends_at >= end),
        and_(Appointment.starts_at >= start, Appointment.ends_at <= end),
    )


def month_bounds(now: datetime) -> tuple[datetime, datetime]:
    """First and last instant of ``now``'s calendar month."""
    first = datetime(now.year, now.month, 1)
    if now.month == 12:
        next_first = datetime(now.year + 1, 1, 1)
    else:
        next_first = datetime(now.year, now.month + 1, 1)
    return first, next_first - timedelta(microseconds=1)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open UTC bounds of a calendar date."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def group_calendar(
    appointments: Iterable[AppointmentRead], now: datetime,
) -> list[CalendarDay]:
    """Group appointments by the UTC date of their start, oldest day first.

    ``overdue_count`` counts entries that started before ``now`` and are
    still scheduled.
    """
    groups: dict[str, list[AppointmentRead]] = defaultdict(list)
    for appt in appointments:
        groups[appt.starts_at.date().isoformat()].append(appt)

    days = []
    for day in sorted(groups):
        entries = groups[day]
        overdue = sum(
            1 for a in entries
            if a.starts_at < now and a.status == AppointmentStatus.SCHEDULED
        )
        days.append(
            CalendarDay(
                date=day,
                total_appointments=len(entries),
                overdue_count=overdue,
                appointments=entries,
            )
        )
    return days


def reminder_window(now_utc: datetime, tz_name: str) -> tuple[datetime, datetime]:
    """[tomorrow 00:00, the day after 00:00) in ``tz_name``, as naive UTC."""
    tz = ZoneInfo(tz_name)
    local_now = now_utc.replace(tzinfo=timezone.utc).astimezone(tz)
    tomorrow = local_now.date() + timedelta(days=1)
    start = datetime.combine(tomorrow, time.min, tzinfo=tz)
    end = datetime.combine(tomorrow + timedelta(days=1), time.min, tzinfo=tz)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )


def to_local(value: datetime, tz_name: str) -> datetime:
    return value.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(tz_name))
