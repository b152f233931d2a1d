import pytest
import requests

from listening_engine import services
from listening_engine.cache import InMemoryCache
from listening_engine.errors import LookupFailure
from listening_engine.services import SpotifyAPIClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Stands in for requests.Session; replays queued search responses."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.token_requests = 0
        self.requests = []

    def post(self, url, data=None, auth=None):
        self.token_requests += 1
        return FakeResponse(payload={"access_token": f"token-{self.token_requests}", "expires_in": 3600})

    def request(self, method, url, headers=None, params=None):
        self.requests.append({"method": method, "url": url, "headers": headers, "params": params})
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


def _search_payload(*artists):
    return {"artists": {"items": list(artists)}}


def test_resolve_genres_returns_first_hit_genres():
    session = FakeSession([FakeResponse(payload=_search_payload({"name": "Daft Punk", "genres": ["french house", "electro"]}))])
    client = SpotifyAPIClient("id", "secret", session=session)

    assert client.resolve_genres("Daft Punk") == ["french house", "electro"]
    assert session.requests[0]["params"] == {"q": "Daft Punk", "type": "artist", "limit": 1, "market": "US"}
    assert session.requests[0]["headers"] == {"Authorization": "Bearer token-1"}


def test_resolve_genres_without_hits_is_empty():
    session = FakeSession([FakeResponse(payload=_search_payload())])
    client = SpotifyAPIClient("id", "secret", session=session)

    assert client.resolve_genres("Nobody") == []


def test_transport_errors_become_lookup_failures():
    session = FakeSession(error=requests.ConnectionError("connection reset"))
    client = SpotifyAPIClient("id", "secret", session=session)

    with pytest.raises(LookupFailure) as excinfo:
        client.resolve_genres("Daft Punk")

    assert excinfo.value.artist_name == "Daft Punk"


def test_http_errors_become_lookup_failures():
    session = FakeSession([FakeResponse(status_code=503)])
    client = SpotifyAPIClient("id", "secret", session=session)

    with pytest.raises(LookupFailure):
        client.resolve_genres("Daft Punk")


def test_expired_token_is_refreshed_once():
    session = FakeSession([
        FakeResponse(status_code=401),
        FakeResponse(payload=_search_payload({"name": "Air", "genres": ["downtempo"]})),
    ])
    client = SpotifyAPIClient("id", "secret", session=session)

    assert client.resolve_genres("Air") == ["downtempo"]
    assert session.token_requests == 2
    assert session.requests[1]["headers"] == {"Authorization": "Bearer token-2"}


def test_resolved_genres_are_cached_by_normalized_name():
    session = FakeSession([FakeResponse(payload=_search_payload({"name": "Air", "genres": ["downtempo"]}))])
    client = SpotifyAPIClient("id", "secret", session=session, cache_client=InMemoryCache())

    assert client.resolve_genres("Air") == ["downtempo"]
    assert client.resolve_genres("  AIR ") == ["downtempo"]
    assert len(session.requests) == 1


def test_build_live_clients_requires_credentials(monkeypatch):
    monkeypatch.setattr(services.env, "load_env", lambda path=None: {})
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "")
    monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "")

    with pytest.raises(RuntimeError):
        services.build_live_clients()


def test_build_live_clients_wires_shared_cache(monkeypatch):
    monkeypatch.setattr(services.env, "load_env", lambda path=None: {})
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "id")
    monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "secret")

    clients = services.build_live_clients(spotify_market="SE")

    assert clients["spotify_client"].cache_client is clients["cache_client"]
    assert clients["spotify_client"].market == "SE"
