"""Genre distribution built from a user's top artists."""
from __future__ import annotations

import logging
from concurrent.futures import ALL_COMPLETED, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from . import config, utils
from .errors import LookupFailure
from .models import ArtistPlayCount, GenreWeightMap

log = logging.getLogger(__name__)


class ArtistGenreResolver(Protocol):
    """Resolves an artist display name to zero or more genre labels.

    Implementations raise :class:`LookupFailure` when the lookup cannot be
    completed.
    """

    def resolve_genres(self, artist_name: str) -> Sequence[str]:
        ...


ResolverLike = Union[ArtistGenreResolver, Callable[[str], Sequence[str]]]
ArtistEntry = Union[ArtistPlayCount, Mapping[str, Any]]


def aggregate_genres(
    top_artists: Sequence[ArtistEntry],
    resolver: ResolverLike,
    *,
    limit: int = config.TOP_ARTIST_LOOKUP_LIMIT,
    logger: Optional[Any] = None,
) -> GenreWeightMap:
    """Weight each resolved genre by the play count of the artists carrying it.

    Only the first ``limit`` artists are looked up, all of them concurrently.
    Every lookup is awaited before accumulation starts. An artist whose lookup
    fails, or who has no genres, contributes nothing. An artist with several
    genres adds its full play count to each of them.
    """

    log_target = logger or log
    artists = [_coerce_artist(entry) for entry in top_artists[:limit]]
    if not artists:
        return {}

    resolve = _resolve_callable(resolver)
    with ThreadPoolExecutor(max_workers=min(config.GENRE_LOOKUP_MAX_WORKERS, len(artists))) as executor:
        futures = [
            executor.submit(_safe_lookup, resolve, artist.artist_name, log_target)
            for artist in artists
        ]
        wait(futures, return_when=ALL_COMPLETED)

    genre_map: Dict[str, float] = {}
    resolved_count = 0
    for artist, future in zip(artists, futures):
        genres = future.result()
        if not genres:
            continue
        resolved_count += 1
        for genre in genres:
            label = utils.normalize_genre(genre)
            if not label:
                continue
            genre_map[label] = genre_map.get(label, 0) + artist.play_count

    log_target.debug(
        "genre_aggregation_complete",
        extra={
            "artists": len(artists),
            "resolved": resolved_count,
            "genres": len(genre_map),
        },
    )
    return genre_map


def _safe_lookup(
    resolve: Callable[[str], Sequence[str]],
    artist_name: str,
    log_target: Any,
) -> Optional[List[str]]:
    try:
        genres = resolve(artist_name)
    except LookupFailure as error:
        log_target.warning("genre_lookup_failed", extra={"artist": artist_name, "error": str(error)})
        return None
    except Exception as error:
        log_target.warning(
            "genre_lookup_error",
            extra={"artist": artist_name, "error": repr(error)},
        )
        return None
    return list(genres or [])


def _resolve_callable(resolver: ResolverLike) -> Callable[[str], Sequence[str]]:
    if hasattr(resolver, "resolve_genres"):
        return resolver.resolve_genres
    if callable(resolver):
        return resolver
    raise TypeError("resolver must be callable or expose resolve_genres()")


def _coerce_artist(entry: ArtistEntry) -> ArtistPlayCount:
    if isinstance(entry, ArtistPlayCount):
        return entry
    name = entry.get("artist_name", entry.get("artistName", ""))
    play_count = entry.get("play_count", entry.get("playCount", 0))
    return ArtistPlayCount(artist_name=str(name), play_count=int(play_count or 0))
