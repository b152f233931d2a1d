"""Normalization of the live recently-played feed."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from dateutil import tz
from dateutil.parser import isoparse

from .errors import FormatError
from .models import CanonicalPlayRecord, PlaySource


def convert_recently_played(items: Iterable[Dict[str, Any]]) -> List[CanonicalPlayRecord]:
    """Map recently-played items (``{"track": {...}, "played_at": ...}``) to records.

    Multiple artists are joined with ``", "``. Items without a positive track
    duration are skipped.
    """

    records: List[CanonicalPlayRecord] = []
    for index, item in enumerate(items):
        track = item.get("track") or {}
        duration_ms = _parse_duration(track.get("duration_ms"), index)
        if not track.get("name") or duration_ms <= 0:
            continue
        records.append(
            CanonicalPlayRecord(
                track_name=str(track["name"]),
                artist_name=", ".join(
                    str(artist.get("name", "")) for artist in track.get("artists") or []
                ),
                played_at=_parse_played_at(item.get("played_at"), index),
                duration_ms=duration_ms,
                source=PlaySource.LIVE,
            )
        )
    return records


def filter_new_records(
    new_records: Iterable[CanonicalPlayRecord],
    existing_records: Iterable[CanonicalPlayRecord],
) -> List[CanonicalPlayRecord]:
    """Drop records already present, matching on track, artist and play instant."""

    existing_keys = {_record_key(record) for record in existing_records}
    return [record for record in new_records if _record_key(record) not in existing_keys]


def most_recent_played_at(records: Iterable[CanonicalPlayRecord]) -> Optional[datetime]:
    return max((record.played_at for record in records), default=None)


def _record_key(record: CanonicalPlayRecord) -> Tuple[str, str, datetime]:
    return record.track_name, record.artist_name, record.played_at


def _parse_played_at(value: Any, index: int) -> datetime:
    try:
        parsed = isoparse(str(value))
    except (TypeError, ValueError) as exc:
        raise FormatError(f"Unparseable played_at: {value!r}", row=index) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz.tzutc())
    return parsed


def _parse_duration(value: Any, index: int) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise FormatError("Track duration is not a number", row=index)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise FormatError(f"Track duration is not a number: {value!r}", row=index) from exc
