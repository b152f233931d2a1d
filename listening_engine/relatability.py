"""Taste relatability between two users' genre distributions."""
from __future__ import annotations

import math
from typing import Mapping

from . import utils


def calculate_relatability_score(
    genres_a: Mapping[str, float],
    genres_b: Mapping[str, float],
) -> int:
    """Cosine similarity of the two normalized genre vectors, scaled to 0-100.

    Each map is divided by its own total weight before comparison so that a
    heavy listener and a light listener with the same mix score 100. Empty or
    all-zero inputs score 0.
    """

    if not genres_a or not genres_b:
        return 0

    all_genres = set(genres_a) | set(genres_b)
    if not all_genres:
        return 0

    total_a = sum(genres_a.values())
    total_b = sum(genres_b.values())
    if total_a == 0 or total_b == 0:
        return 0

    dot_product = 0.0
    magnitude_a = 0.0
    magnitude_b = 0.0
    for genre in sorted(all_genres):
        weight_a = genres_a.get(genre, 0) / total_a
        weight_b = genres_b.get(genre, 0) / total_b
        dot_product += weight_a * weight_b
        magnitude_a += weight_a * weight_a
        magnitude_b += weight_b * weight_b

    magnitude_a = math.sqrt(magnitude_a)
    magnitude_b = math.sqrt(magnitude_b)
    if magnitude_a == 0 or magnitude_b == 0:
        return 0

    similarity = utils.clamp(dot_product / (magnitude_a * magnitude_b))
    # half-up rounding, not banker's rounding
    return int(math.floor(similarity * 100 + 0.5))
