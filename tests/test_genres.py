import threading

from listening_engine.genres import aggregate_genres
from listening_engine.models import ArtistPlayCount


def test_weights_accumulate_full_play_count_per_genre(fake_resolver_factory):
    resolver = fake_resolver_factory({
        "Artist A": ["Pop", " Dance Pop ", "electropop"],
        "Artist B": ["pop", "Rock"],
    })
    top_artists = [ArtistPlayCount("Artist A", 10), ArtistPlayCount("Artist B", 4)]

    genres = aggregate_genres(top_artists, resolver)

    assert genres == {"pop": 14, "dance pop": 10, "electropop": 10, "rock": 4}


def test_only_first_ten_artists_are_looked_up(fake_resolver_factory):
    resolver = fake_resolver_factory({f"Artist {i}": [f"genre {i}"] for i in range(15)})
    top_artists = [ArtistPlayCount(f"Artist {i}", 15 - i) for i in range(15)]

    genres = aggregate_genres(top_artists, resolver)

    assert sorted(resolver.calls) == sorted(f"Artist {i}" for i in range(10))
    assert set(genres) == {f"genre {i}" for i in range(10)}


def test_failures_and_empty_genres_contribute_nothing(fake_resolver_factory, lookup_failure):
    resolver = fake_resolver_factory({
        "Broken": lookup_failure("Broken", "HTTP 503"),
        "Crashing": RuntimeError("socket closed"),
        "Obscure": [],
        "Known": ["jazz"],
    })
    top_artists = [
        ArtistPlayCount("Broken", 50),
        ArtistPlayCount("Crashing", 40),
        ArtistPlayCount("Obscure", 30),
        ArtistPlayCount("Known", 2),
    ]

    assert aggregate_genres(top_artists, resolver) == {"jazz": 2}
    assert len(resolver.calls) == 4


def test_resolver_failing_for_everyone_returns_empty_map(fake_resolver_factory, lookup_failure):
    resolver = fake_resolver_factory({name: lookup_failure(name) for name in ("A", "B", "C")})

    genres = aggregate_genres([ArtistPlayCount(name, 3) for name in ("A", "B", "C")], resolver)

    assert genres == {}


def test_empty_artist_list_returns_empty_map(fake_resolver_factory):
    resolver = fake_resolver_factory({})
    assert aggregate_genres([], resolver) == {}
    assert resolver.calls == []


def test_plain_callable_and_mapping_entries_are_accepted():
    top_artists = [{"artistName": "A", "playCount": 3}, {"artist_name": "B", "play_count": 1}]

    genres = aggregate_genres(top_artists, lambda name: ["indie"] if name == "A" else ["folk"])

    assert genres == {"indie": 3, "folk": 1}


def test_lookups_run_concurrently():
    barrier = threading.Barrier(3, timeout=5)

    def resolve(name):
        # Every lookup blocks until all three are in flight at once
        barrier.wait()
        return [name.lower()]

    genres = aggregate_genres([ArtistPlayCount(name, 1) for name in ("X", "Y", "Z")], resolve)

    assert genres == {"x": 1, "y": 1, "z": 1}


def test_failures_are_logged(fake_resolver_factory, lookup_failure, caplog):
    resolver = fake_resolver_factory({"Broken": lookup_failure("Broken", "timeout")})

    with caplog.at_level("WARNING", logger="listening_engine.genres"):
        aggregate_genres([ArtistPlayCount("Broken", 1)], resolver)

    assert any(record.getMessage() == "genre_lookup_failed" for record in caplog.records)
