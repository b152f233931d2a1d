"""Listening aggregations over canonical play records."""
from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from dateutil import tz

from . import config
from .models import (
    ArtistPlayCount,
    CanonicalPlayRecord,
    DayPattern,
    HourPattern,
    ListeningFrequency,
    ListeningSummary,
    TrackPlayCount,
)

_PERIOD_FORMATS = {
    "day": "%Y-%m-%d",
    "month": "%Y-%m",
    "year": "%Y",
}


def aggregate_by_date(
    records: Iterable[CanonicalPlayRecord],
    group_by: str = "day",
    zone: Optional[tzinfo] = None,
) -> List[ListeningFrequency]:
    """Bucket plays by calendar day, month or year, oldest bucket first.

    Buckets follow the local calendar (or ``zone``), the same one
    ``window_for`` uses, so a play kept by a window lands in that window's days.
    """

    if group_by not in _PERIOD_FORMATS:
        raise ValueError(f"group_by must be one of {', '.join(_PERIOD_FORMATS)}")
    pattern = _PERIOD_FORMATS[group_by]

    grouped: Dict[str, List[int]] = {}
    for record in records:
        key = _local(record.played_at, zone).strftime(pattern)
        bucket = grouped.setdefault(key, [0, 0])
        bucket[0] += 1
        bucket[1] += record.duration_ms

    return [
        ListeningFrequency(period=period, play_count=count, total_duration_ms=duration)
        for period, (count, duration) in sorted(grouped.items())
    ]


def top_tracks(
    records: Iterable[CanonicalPlayRecord],
    limit: int = config.DEFAULT_TOP_LIMIT,
) -> List[TrackPlayCount]:
    counts: Dict[Tuple[str, str], List[int]] = {}
    for record in records:
        bucket = counts.setdefault((record.track_name, record.artist_name), [0, 0])
        bucket[0] += 1
        bucket[1] += record.duration_ms

    # sorted() is stable, so ties keep first-seen order
    ranked = sorted(counts.items(), key=lambda item: item[1][0], reverse=True)
    return [
        TrackPlayCount(
            track_name=track_name,
            artist_name=artist_name,
            play_count=count,
            total_duration_ms=duration,
        )
        for (track_name, artist_name), (count, duration) in ranked[:limit]
    ]


def top_artists(
    records: Iterable[CanonicalPlayRecord],
    limit: int = config.DEFAULT_TOP_LIMIT,
) -> List[ArtistPlayCount]:
    """Rank artists by play count; the output feeds genre aggregation."""

    counts: Dict[str, List[int]] = {}
    for record in records:
        bucket = counts.setdefault(record.artist_name or config.UNKNOWN_ARTIST, [0, 0])
        bucket[0] += 1
        bucket[1] += record.duration_ms

    ranked = sorted(counts.items(), key=lambda item: item[1][0], reverse=True)
    return [
        ArtistPlayCount(artist_name=name, play_count=count, total_duration_ms=duration)
        for name, (count, duration) in ranked[:limit]
    ]


def hour_patterns(
    records: Iterable[CanonicalPlayRecord],
    zone: Optional[tzinfo] = None,
) -> List[HourPattern]:
    hours = [0] * 24
    for record in records:
        hours[_local(record.played_at, zone).hour] += 1
    return [HourPattern(hour=hour, play_count=count) for hour, count in enumerate(hours)]


def day_patterns(
    records: Iterable[CanonicalPlayRecord],
    zone: Optional[tzinfo] = None,
) -> List[DayPattern]:
    """Plays per weekday, indexed 0=Sunday through 6=Saturday."""

    days = [0] * 7
    for record in records:
        # isoweekday(): Monday=1 .. Sunday=7
        days[_local(record.played_at, zone).isoweekday() % 7] += 1
    return [
        DayPattern(day=day, day_name=config.DAY_NAMES[day], play_count=count)
        for day, count in enumerate(days)
    ]


def summarize(records: Sequence[CanonicalPlayRecord]) -> ListeningSummary:
    return ListeningSummary(
        total_listening_ms=sum(record.duration_ms for record in records),
        total_tracks=len(records),
        total_artists=len({record.artist_name for record in records if record.artist_name}),
    )


def _local(moment: datetime, zone: Optional[tzinfo]) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=tz.tzlocal())
    return moment.astimezone(zone or tz.tzlocal())
