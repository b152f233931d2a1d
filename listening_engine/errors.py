"""Error types raised across the listening history pipeline."""
from __future__ import annotations

from typing import Optional


class FormatError(ValueError):
    """Raised when an export payload cannot be normalized.

    The whole batch is rejected; ``row`` points at the offending entry when
    the failure is tied to a single entry.
    """

    def __init__(self, message: str, *, row: Optional[int] = None) -> None:
        self.row = row
        if row is not None:
            message = f"{message} (row {row})"
        super().__init__(message)


class LookupFailure(RuntimeError):
    """Raised by an artist-genre resolver when a lookup cannot be completed."""

    def __init__(self, artist_name: str, reason: str = "") -> None:
        self.artist_name = artist_name
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Genre lookup failed for '{artist_name}'{detail}")
