#!/usr/bin/env python3
"""Summarize a streaming-history export and optionally compare taste with another."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List

from listening_engine import aggregate, config, env, services
from listening_engine.date_ranges import filter_by_range, time_range_label, window_for
from listening_engine.errors import FormatError
from listening_engine.export import parse_export_bytes
from listening_engine.genres import aggregate_genres
from listening_engine.models import CanonicalPlayRecord
from listening_engine.relatability import calculate_relatability_score
from listening_engine.utils import format_duration


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Normalize a listening-history export and report on it.",
    )
    parser.add_argument("export", type=Path, help="Path to a JSON or CSV export file.")
    parser.add_argument(
        "--range",
        dest="time_range",
        choices=config.TIME_RANGES,
        default=config.DEFAULT_TIME_RANGE,
        help="Time window to keep (default: all).",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=config.DEFAULT_TOP_LIMIT,
        help="Number of top artists to print (default: 10).",
    )
    parser.add_argument(
        "--compare",
        type=Path,
        help="Second export; resolves genres for both via Spotify and prints relatability.",
    )
    parser.add_argument(
        "--json",
        type=Path,
        help="Optional path to write the normalized records as JSON.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(list(argv))


def load_records(path: Path, time_range: str) -> List[CanonicalPlayRecord]:
    records = parse_export_bytes(path.read_bytes(), filename=path.name)
    return filter_by_range(records, window_for(time_range))


def main(argv: Iterable[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    print(f"[1/3] Parsing {args.export} ({time_range_label(args.time_range)})...", flush=True)
    try:
        records = load_records(args.export, args.time_range)
    except (OSError, FormatError) as exc:
        print(f"Failed to load export: {exc}", file=sys.stderr)
        return 1

    summary = aggregate.summarize(records)
    print(
        f"[1/3] {summary.total_tracks} plays, {summary.total_artists} artists, "
        f"{format_duration(summary.total_listening_ms)} listened.\n",
        flush=True,
    )

    print("[2/3] Top artists:")
    artists = aggregate.top_artists(records, limit=args.top)
    for item in artists:
        print(f" - {item.artist_name:30s} plays={item.play_count:5d} time={format_duration(item.total_duration_ms)}")

    if args.json:
        args.json.write_text(json.dumps([record.as_dict() for record in records], indent=2))
        print(f"\nWrote {len(records)} records to {args.json}")

    if not args.compare:
        print("\n[✔] Completed run.")
        return 0

    try:
        other_records = load_records(args.compare, args.time_range)
    except (OSError, FormatError) as exc:
        print(f"Failed to load comparison export: {exc}", file=sys.stderr)
        return 1

    env.load_env()
    try:
        resolver = services.build_live_clients()["spotify_client"]
    except RuntimeError as exc:
        print(f"Environment not configured correctly: {exc}", file=sys.stderr)
        return 1

    print("\n[3/3] Resolving genres...", flush=True)
    genres_a = aggregate_genres(artists, resolver)
    genres_b = aggregate_genres(aggregate.top_artists(other_records, limit=args.top), resolver)
    score = calculate_relatability_score(genres_a, genres_b)
    top_a = sorted(genres_a, key=genres_a.get, reverse=True)[:5]
    top_b = sorted(genres_b, key=genres_b.get, reverse=True)[:5]
    print(f"[3/3] Genres A: {', '.join(top_a) or 'none'}")
    print(f"[3/3] Genres B: {', '.join(top_b) or 'none'}")
    print(f"[3/3] Relatability: {score}/100")

    print("\n[✔] Completed run.")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
