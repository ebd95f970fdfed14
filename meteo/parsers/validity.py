"""Resolve day-of-month time groups into absolute UTC timestamps.

Bulletins only carry day/hour(/minute); year and month come from a
reference timestamp, usually the bulletin's own timestamp line.
"""

from __future__ import annotations

import datetime as dt
import re

from meteo.parsers.models import ValidityWindow

PERIOD_RE = re.compile(r"(?P<sday>\d{2})(?P<shour>\d{2})/(?P<eday>\d{2})(?P<ehour>\d{2})")
ISSUE_RE = re.compile(r"(?P<day>\d{2})(?P<hour>\d{2})(?P<min>\d{2})Z")

# change-group days this far behind the emission day belong to the next month
ROLLOVER_DAYS = 20


def _add_month(year: int, month: int, months: int = 1) -> tuple[int, int]:
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def _at(year: int, month: int, day: int, hour: int, minute: int = 0) -> dt.datetime | None:
    if hour == 24 and minute == 0:
        midnight = _at(year, month, day, 0)
        return midnight + dt.timedelta(days=1) if midnight else None
    try:
        return dt.datetime(year, month, day, hour, minute, tzinfo=dt.timezone.utc)
    except ValueError:
        return None


def parse_period(token: str) -> tuple[int, int, int, int] | None:
    match = PERIOD_RE.fullmatch(token)
    if not match:
        return None
    return (
        int(match.group("sday")),
        int(match.group("shour")),
        int(match.group("eday")),
        int(match.group("ehour")),
    )


def parse_issue_group(token: str) -> tuple[int, int, int] | None:
    match = ISSUE_RE.fullmatch(token)
    if not match:
        return None
    return int(match.group("day")), int(match.group("hour")), int(match.group("min"))


def _close_window(
    start: dt.datetime | None,
    end: dt.datetime | None,
    end_day: int,
    end_hour: int,
) -> ValidityWindow | None:
    if start is None:
        return None
    if end is None or end < start:
        end = _at(*_add_month(start.year, start.month), end_day, end_hour)
    if end is None or end <= start:
        return None
    return ValidityWindow(start_utc=start, end_utc=end)


def resolve_window(
    start_day: int,
    start_hour: int,
    end_day: int,
    end_hour: int,
    reference: dt.datetime,
) -> ValidityWindow | None:
    start = _at(reference.year, reference.month, start_day, start_hour)
    end = _at(reference.year, reference.month, end_day, end_hour)
    return _close_window(start, end, end_day, end_hour)


def resolve_after(day: int, hour: int, minute: int, emission: dt.datetime) -> dt.datetime | None:
    year, month = emission.year, emission.month
    if day < emission.day - ROLLOVER_DAYS:
        year, month = _add_month(year, month)
    return _at(year, month, day, hour, minute)


def resolve_change_window(
    start_day: int,
    start_hour: int,
    end_day: int,
    end_hour: int,
    emission: dt.datetime,
) -> ValidityWindow | None:
    start = resolve_after(start_day, start_hour, 0, emission)
    end = resolve_after(end_day, end_hour, 0, emission)
    return _close_window(start, end, end_day, end_hour)


def resolve_issue_time(day: int, hour: int, minute: int, reference: dt.datetime) -> dt.datetime | None:
    year, month = reference.year, reference.month
    if day > reference.day:
        year, month = _add_month(year, month, -1)
    return _at(year, month, day, hour, minute)


def as_utc(reference: dt.datetime) -> dt.datetime:
    if reference.tzinfo is None:
        return reference.replace(tzinfo=dt.timezone.utc)
    return reference.astimezone(dt.timezone.utc)
