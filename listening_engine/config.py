"""Configuration constants for the listening history engine."""
from __future__ import annotations

# Export field generations, highest priority first
TIMESTAMP_FIELDS = ("endTime", "ts", "played_at")
ARTIST_FIELDS = ("artistName", "master_metadata_album_artist_name")
TRACK_FIELDS = ("trackName", "master_metadata_track_name")
DURATION_FIELDS = ("msPlayed", "ms_played")

# Object exports may wrap the entry array under one of these keys
EXPORT_CONTAINER_FIELDS = ("data",)

# Genre aggregation bounds
TOP_ARTIST_LOOKUP_LIMIT: int = 10
GENRE_LOOKUP_MAX_WORKERS: int = 10

# Temporal windows
EPOCH_FLOOR = (1970, 1, 1)
TIME_RANGES = ("today", "week", "month", "year", "all")
DEFAULT_TIME_RANGE = "all"
TIME_RANGE_LABELS = {
    "today": "Today",
    "week": "This Week",
    "month": "This Month",
    "year": "This Year",
    "all": "All Time",
}

# Aggregations
DEFAULT_TOP_LIMIT: int = 10
UNKNOWN_ARTIST = "Unknown"
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

# Live Spotify client
SPOTIFY_MARKET = "US"
SPOTIFY_TOKEN_EXPIRY_MARGIN_SECONDS: int = 30
ARTIST_SEARCH_LIMIT: int = 1

# Cache namespaces
CACHE_NAMESPACES = {
    "artist_genres": "artist_genres",
    "search_results": "search_results",
}

CACHE_DEFAULT_TTL_SECONDS: int = 60 * 60  # one hour
