"""Test configuration ensuring repository modules are discoverable."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from listening_engine.errors import LookupFailure  # noqa: E402


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: marks tests as slow and optional")


class FakeGenreResolver:
    """Resolver backed by a dict; names mapped to an exception raise it."""

    def __init__(self, genres_by_artist):
        self.genres_by_artist = dict(genres_by_artist)
        self.calls = []

    def resolve_genres(self, artist_name):
        self.calls.append(artist_name)
        outcome = self.genres_by_artist.get(artist_name, [])
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)


@pytest.fixture
def fake_resolver_factory():
    return FakeGenreResolver


@pytest.fixture
def lookup_failure():
    return LookupFailure
