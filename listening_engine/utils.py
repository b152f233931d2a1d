"""Utility helpers for the listening history pipeline."""
from __future__ import annotations


def normalize_name(name: str) -> str:
    return name.strip().casefold()


def normalize_genre(label: str) -> str:
    """Lower-case and trim a genre label so equal genres share one key."""

    return str(label).lower().strip()


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return max(lower, min(upper, value))


def format_duration(ms: int) -> str:
    """Render milliseconds as ``1d 2h 3m``, ``2h 3m``, ``3m 4s`` or ``4s``."""

    seconds = ms // 1000
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h {minutes % 60}m"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def format_duration_hours(ms: int) -> str:
    minutes = ms // 60000
    hours = minutes // 60
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    return f"{minutes}m"
