"""Normalization of streaming-history exports into canonical play records.

Two field-naming generations are understood and may be mixed inside a single
batch: the legacy account-data export (``endTime``, ``artistName``,
``trackName``, ``msPlayed``) and the extended streaming history
(``ts``, ``master_metadata_album_artist_name``,
``master_metadata_track_name``, ``ms_played``).
"""
from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from dateutil import tz
from dateutil.parser import isoparse

from . import config
from .errors import FormatError
from .models import CanonicalPlayRecord, PlaySource

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldExtractor:
    """Reads one canonical field from the first populated source field."""

    name: str
    fields: Tuple[str, ...]
    default: Any = None

    def extract(self, entry: Mapping[str, Any]) -> Any:
        for field_name in self.fields:
            value = entry.get(field_name)
            if value:
                return value
        return self.default


TIMESTAMP = FieldExtractor("played_at", config.TIMESTAMP_FIELDS)
ARTIST = FieldExtractor("artist_name", config.ARTIST_FIELDS, "")
TRACK = FieldExtractor("track_name", config.TRACK_FIELDS, "")
DURATION = FieldExtractor("duration_ms", config.DURATION_FIELDS, 0)


def parse_export(raw: Any, *, logger: Optional[Any] = None) -> List[CanonicalPlayRecord]:
    """Normalize a decoded JSON export into canonical play records.

    ``raw`` is either a list of entries or a mapping wrapping that list under
    one of ``config.EXPORT_CONTAINER_FIELDS``. Entries without a track name or
    with a non-positive duration are dropped before conversion. Any timestamp
    that fails to parse rejects the whole batch.
    """

    entries = _unwrap_entries(raw)

    records: List[CanonicalPlayRecord] = []
    dropped = 0
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise FormatError("Export entry is not an object", row=index)
        track_name = str(TRACK.extract(entry)).strip()
        duration_ms = _coerce_duration(DURATION.extract(entry), index)
        if not track_name or duration_ms <= 0:
            dropped += 1
            continue
        records.append(
            CanonicalPlayRecord(
                track_name=track_name,
                artist_name=str(ARTIST.extract(entry)).strip(),
                played_at=_parse_timestamp(TIMESTAMP.extract(entry), index),
                duration_ms=duration_ms,
                source=PlaySource.EXPORT,
            )
        )

    (logger or log).debug("export_parsed", extra={"kept": len(records), "dropped": dropped})
    return records


def parse_csv_export(content: str, *, logger: Optional[Any] = None) -> List[CanonicalPlayRecord]:
    """Normalize delimited-text export content.

    The header row names the fields; each row is mapped to an object and fed
    through :func:`parse_export`. A row whose cell count does not match the
    header rejects the batch.
    """

    reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
    rows: List[Dict[str, Any]] = []
    try:
        for row in reader:
            if None in row or any(value is None for value in row.values()):
                raise FormatError("Row does not match the header", row=reader.line_num)
            rows.append(row)
    except csv.Error as exc:
        raise FormatError(f"Malformed delimited text: {exc}", row=reader.line_num) from exc
    return parse_export(rows, logger=logger)


def parse_export_bytes(
    payload: bytes,
    filename: Optional[str] = None,
    *,
    logger: Optional[Any] = None,
) -> List[CanonicalPlayRecord]:
    """Decode an uploaded export and dispatch to the JSON or tabular path.

    ``.csv`` uploads go straight to the tabular path. Anything else is read as
    JSON first, falling back to delimited text only when it does not decode
    and does not look like JSON. An empty upload is a ``FormatError``.
    """

    try:
        text = payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FormatError("Export is not valid UTF-8 text") from exc

    if not text.strip():
        raise FormatError("Export is empty")

    name = (filename or "").lower()
    if name.endswith(".csv"):
        return parse_csv_export(text, logger=logger)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        if name.endswith(".json") or text.lstrip()[:1] in ("[", "{"):
            raise FormatError(f"Export is not valid JSON: {exc.msg}") from exc
        return parse_csv_export(text, logger=logger)
    return parse_export(data, logger=logger)


def to_legacy_entry(record: CanonicalPlayRecord) -> Dict[str, Any]:
    return {
        "endTime": record.played_at.isoformat(),
        "artistName": record.artist_name,
        "trackName": record.track_name,
        "msPlayed": record.duration_ms,
    }


def to_extended_entry(record: CanonicalPlayRecord) -> Dict[str, Any]:
    return {
        "ts": record.played_at.isoformat(),
        "master_metadata_album_artist_name": record.artist_name,
        "master_metadata_track_name": record.track_name,
        "ms_played": record.duration_ms,
    }


def _unwrap_entries(raw: Any) -> Sequence[Any]:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, Mapping):
        for field_name in config.EXPORT_CONTAINER_FIELDS:
            wrapped = raw.get(field_name)
            if isinstance(wrapped, list):
                return wrapped
    raise FormatError("Invalid export format: expected an array of entries")


def _coerce_duration(value: Any, index: int) -> int:
    if isinstance(value, bool):
        raise FormatError("Play duration is not a number", row=index)
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).strip() or 0))
    except (ValueError, OverflowError) as exc:
        raise FormatError(f"Play duration is not a number: {value!r}", row=index) from exc


def _parse_timestamp(value: Any, index: int) -> datetime:
    if not value:
        raise FormatError("Entry has no timestamp", row=index)
    try:
        parsed = isoparse(str(value).strip())
    except (ValueError, OverflowError) as exc:
        raise FormatError(f"Unparseable timestamp: {value!r}", row=index) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz.tzlocal())
    return parsed

