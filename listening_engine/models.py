"""Domain models for the listening history engine."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict

# Lower-cased, trimmed genre label -> accumulated play-count weight
GenreWeightMap = Dict[str, float]


class PlaySource(str, Enum):
    """Where a play record came from."""

    EXPORT = "export"
    LIVE = "live"


@dataclass(frozen=True)
class CanonicalPlayRecord:
    """One listening event, independent of the export schema it came from."""

    track_name: str
    artist_name: str
    played_at: datetime
    duration_ms: int
    source: PlaySource = PlaySource.EXPORT

    def __post_init__(self) -> None:
        if self.duration_ms <= 0:
            raise ValueError("duration_ms must be positive")

    def as_dict(self) -> Dict[str, object]:
        return {
            "track_name": self.track_name,
            "artist_name": self.artist_name,
            "played_at": self.played_at.isoformat(),
            "duration_ms": self.duration_ms,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class DateRange:
    """Inclusive ``[start, end]`` window used to scope analytics queries."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError("start must not be after end")

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass(frozen=True)
class ArtistPlayCount:
    """Ranked artist entry consumed by genre aggregation."""

    artist_name: str
    play_count: int
    total_duration_ms: int = 0


@dataclass(frozen=True)
class TrackPlayCount:
    track_name: str
    artist_name: str
    play_count: int
    total_duration_ms: int = 0


@dataclass(frozen=True)
class ListeningFrequency:
    """Plays and listening time for one day, month or year bucket."""

    period: str
    play_count: int
    total_duration_ms: int


@dataclass(frozen=True)
class HourPattern:
    hour: int
    play_count: int


@dataclass(frozen=True)
class DayPattern:
    day: int
    day_name: str
    play_count: int


@dataclass(frozen=True)
class ListeningSummary:
    total_listening_ms: int
    total_tracks: int
    total_artists: int
