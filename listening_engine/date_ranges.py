"""Calendar-aligned time windows for scoping analytics queries."""
from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, List, Optional, Protocol, TypeVar

from dateutil import tz

from . import config
from .models import DateRange

_END_OF_DAY = time(23, 59, 59, 999000)


class Timestamped(Protocol):
    played_at: datetime


T = TypeVar("T", bound=Timestamped)


def window_for(range_name: str, now: Optional[datetime] = None) -> DateRange:
    """Return the window for ``today``, ``week``, ``month``, ``year`` or ``all``.

    Every window ends at 23:59:59.999 on ``now``'s calendar date, in ``now``'s
    own timezone (local time when ``now`` is naive or omitted). Unknown range
    names fall back to ``all``.
    """

    current = _as_aware(now or datetime.now(tz.tzlocal()))
    zone = current.tzinfo
    today = current.date()

    if range_name == "today":
        start_day = today
    elif range_name == "week":
        start_day = today - timedelta(days=today.weekday())
    elif range_name == "month":
        start_day = today.replace(day=1)
    elif range_name == "year":
        start_day = date(today.year, 1, 1)
    else:
        start_day = date(*config.EPOCH_FLOOR)

    return DateRange(start=_start_of(start_day, zone), end=_end_of(today, zone))


def filter_by_range(records: Iterable[T], date_range: DateRange) -> List[T]:
    """Keep the records whose ``played_at`` lies inside the inclusive window."""

    return [record for record in records if date_range.contains(_as_aware(record.played_at))]


def day_range(moment: datetime) -> DateRange:
    moment = _as_aware(moment)
    return DateRange(
        start=_start_of(moment.date(), moment.tzinfo),
        end=_end_of(moment.date(), moment.tzinfo),
    )


def month_range(moment: datetime) -> DateRange:
    moment = _as_aware(moment)
    last_day = calendar.monthrange(moment.year, moment.month)[1]
    return DateRange(
        start=_start_of(moment.date().replace(day=1), moment.tzinfo),
        end=_end_of(moment.date().replace(day=last_day), moment.tzinfo),
    )


def year_range(moment: datetime) -> DateRange:
    moment = _as_aware(moment)
    return DateRange(
        start=_start_of(date(moment.year, 1, 1), moment.tzinfo),
        end=_end_of(date(moment.year, 12, 31), moment.tzinfo),
    )


def time_range_label(range_name: str) -> str:
    return config.TIME_RANGE_LABELS.get(range_name, config.TIME_RANGE_LABELS["all"])


def _start_of(day: date, zone: Optional[tzinfo]) -> datetime:
    return datetime.combine(day, time.min, tzinfo=zone)


def _end_of(day: date, zone: Optional[tzinfo]) -> datetime:
    return datetime.combine(day, _END_OF_DAY, tzinfo=zone)


def _as_aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz.tzlocal())
    return moment
