"""Spotify Web API client used as the live artist-genre resolver."""
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, List, Optional, Tuple

import requests

from . import cache, config, env, utils
from .errors import LookupFailure
from .genres import ArtistGenreResolver

log = logging.getLogger(__name__)


class SpotifyAPIClient(ArtistGenreResolver):
    """Client-credentials Spotify client exposing artist search and genres."""

    token_url = "https://accounts.spotify.com/api/token"
    api_base = "https://api.spotify.com/v1"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        market: str = config.SPOTIFY_MARKET,
        session: Optional[requests.Session] = None,
        cache_client: Optional[cache.InMemoryCache] = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.market = market
        self.session = session or requests.Session()
        self.cache_client = cache_client
        self._token: Optional[str] = None
        self._token_expires_at: float = 0.0
        self._token_lock = threading.Lock()

    def search_artists(self, query: str, limit: int = config.ARTIST_SEARCH_LIMIT) -> List[Dict[str, Any]]:
        params = {"q": query, "type": "artist", "limit": limit, "market": self.market}
        data = self._request("GET", "/search", params=params)
        return data.get("artists", {}).get("items", [])

    def resolve_genres(self, artist_name: str) -> List[str]:
        """Genres of the best search hit for ``artist_name``.

        Transport and HTTP errors surface as :class:`LookupFailure`; no retry
        is attempted beyond a single token refresh.
        """

        if self.cache_client is None:
            return self._lookup_genres(artist_name)
        genres = self.cache_client.get_or_set(
            "artist_genres",
            cache.build_cache_key(utils.normalize_name(artist_name)),
            lambda: self._lookup_genres(artist_name),
        )
        return list(genres)

    def _lookup_genres(self, artist_name: str) -> List[str]:
        try:
            hits = self.search_artists(artist_name, limit=config.ARTIST_SEARCH_LIMIT)
        except requests.RequestException as error:
            raise LookupFailure(artist_name, str(error)) from error
        if not hits:
            log.debug("artist_not_found", extra={"artist": artist_name})
            return []
        return [str(genre) for genre in hits[0].get("genres") or []]

    def _access_token(self, *, refresh: bool = False) -> str:
        # Lookups share one client across worker threads
        with self._token_lock:
            if refresh or self._token is None or time.time() >= self._token_expires_at:
                self._token, lifetime = self._fetch_token()
                self._token_expires_at = time.time() + lifetime - config.SPOTIFY_TOKEN_EXPIRY_MARGIN_SECONDS
            return self._token

    def _fetch_token(self) -> Tuple[str, int]:
        response = self.session.post(
            self.token_url,
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
        )
        response.raise_for_status()
        body = response.json()
        return body["access_token"], int(body.get("expires_in", 3600))

    def _request(self, method: str, path: str, *, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self._send(method, path, params, self._access_token())
        if response.status_code == 401:
            response = self._send(method, path, params, self._access_token(refresh=True))
        response.raise_for_status()
        return response.json()

    def _send(self, method: str, path: str, params: Optional[Dict[str, Any]], token: str) -> Any:
        return self.session.request(
            method,
            f"{self.api_base}{path}",
            headers={"Authorization": f"Bearer {token}"},
            params=params,
        )


def build_live_clients(
    *,
    cache_client: Optional[cache.InMemoryCache] = None,
    spotify_market: str = config.SPOTIFY_MARKET,
) -> Dict[str, Any]:
    """Wire the Spotify resolver from ``.env`` / environment credentials."""

    env.load_env()
    credentials = env.require(env.SPOTIFY_CREDENTIAL_KEYS)
    cache_client = cache_client or cache.InMemoryCache()

    spotify_client = SpotifyAPIClient(
        client_id=credentials["SPOTIFY_CLIENT_ID"],
        client_secret=credentials["SPOTIFY_CLIENT_SECRET"],
        market=spotify_market,
        cache_client=cache_client,
    )
    log.debug("live_clients_ready", extra={"market": spotify_market})
    return {
        "spotify_client": spotify_client,
        "cache_client": cache_client,
    }
