"""Spotify credential loading from ``.env`` and the process environment."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Tuple

SPOTIFY_CREDENTIAL_KEYS = ("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET")

# Free-form labels accepted in ``label: value`` lines
CREDENTIAL_LABELS = {
    "client id": "SPOTIFY_CLIENT_ID",
    "spotify client id": "SPOTIFY_CLIENT_ID",
    "client secret": "SPOTIFY_CLIENT_SECRET",
    "spotify client secret": "SPOTIFY_CLIENT_SECRET",
}

DEFAULT_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"


def load_env(path: Optional[Path] = None) -> Dict[str, str]:
    """Read ``KEY=VALUE`` or ``label: value`` lines into ``os.environ``.

    Variables already set in the environment win over the file. Returns every
    pair the file defined.
    """

    env_path = Path(path or DEFAULT_ENV_PATH)
    if not env_path.is_file():
        return {}
    values = dict(_pairs(env_path.read_text(encoding="utf-8")))
    for name, value in values.items():
        os.environ.setdefault(name, value)
    return values


def require(keys: Iterable[str] = SPOTIFY_CREDENTIAL_KEYS) -> Dict[str, str]:
    found = {name: os.environ.get(name, "") for name in keys}
    missing = sorted(name for name, value in found.items() if not value)
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")
    return found


def _pairs(text: str) -> Iterator[Tuple[str, str]]:
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or ("=" not in line and ":" not in line):
            continue
        # split on whichever separator comes first; values may contain the other
        cut = min(index for index in (line.find("="), line.find(":")) if index >= 0)
        label, value = line[:cut], line[cut + 1:]
        name = CREDENTIAL_LABELS.get(label.strip().lower(), label.strip().upper().replace(" ", "_"))
        if name:
            yield name, value.strip().strip("\"'")
