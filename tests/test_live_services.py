import os

import pytest

from listening_engine import aggregate, env, services
from listening_engine.export import parse_export
from listening_engine.genres import aggregate_genres
from listening_engine.relatability import calculate_relatability_score

env.load_env()

LIVE_KEYS_PRESENT = all(os.environ.get(key) for key in env.SPOTIFY_CREDENTIAL_KEYS)

skip_live = pytest.mark.skipif(
    not LIVE_KEYS_PRESENT,
    reason="Spotify API keys not configured in .env or environment",
)


@skip_live
def test_live_spotify_artist_search_and_genres():
    spotify = services.build_live_clients()["spotify_client"]

    results = spotify.search_artists("Radiohead", limit=1)
    assert results, "Expected at least one search result"
    assert "name" in results[0]

    genres = spotify.resolve_genres("Radiohead")
    assert isinstance(genres, list)
    assert all(isinstance(genre, str) for genre in genres)


@skip_live
@pytest.mark.slow
def test_live_relatability_between_two_histories():
    spotify = services.build_live_clients()["spotify_client"]

    def history(*artists):
        return [
            {"ts": "2024-01-01T00:00:00Z", "artistName": artist, "trackName": f"{artist} track", "msPlayed": 1000}
            for artist in artists
        ]

    records_a = parse_export(history("Radiohead", "Radiohead", "Portishead"))
    records_b = parse_export(history("Radiohead", "Massive Attack"))

    genres_a = aggregate_genres(aggregate.top_artists(records_a), spotify)
    genres_b = aggregate_genres(aggregate.top_artists(records_b), spotify)
    score = calculate_relatability_score(genres_a, genres_b)

    assert 0 <= score <= 100
    if genres_a and genres_a.keys() == genres_b.keys():
        assert score > 0
