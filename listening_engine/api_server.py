"""Flask API exposing export parsing, aggregations and relatability scoring."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from . import aggregate, config
from .date_ranges import filter_by_range, time_range_label, window_for
from .errors import FormatError
from .export import parse_csv_export, parse_export
from .genres import ArtistGenreResolver, aggregate_genres
from .models import CanonicalPlayRecord
from .relatability import calculate_relatability_score
from .services import build_live_clients

log = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)  # Enable CORS for development


def _spotify_client() -> ArtistGenreResolver:
    client = app.config.get("SPOTIFY_CLIENT")
    if client is None:
        client = build_live_clients()["spotify_client"]
        app.config["SPOTIFY_CLIENT"] = client
    return client


def _error(message: str, status: int):
    return jsonify({"error": message, "status": "error"}), status


def _records_from_request() -> List[CanonicalPlayRecord]:
    if (request.content_type or "").startswith("text/csv"):
        return parse_csv_export(request.get_data(as_text=True))
    payload = request.get_json(force=True, silent=True)
    if payload is None:
        raise FormatError("Request body is not valid JSON")
    if isinstance(payload, dict) and "records" in payload:
        return parse_export(payload["records"])
    return parse_export(payload)


def _apply_range(records: List[CanonicalPlayRecord]) -> tuple[List[CanonicalPlayRecord], Optional[str]]:
    range_name = request.args.get("range")
    if not range_name:
        return records, None
    return filter_by_range(records, window_for(range_name)), range_name


@app.route("/api/export/parse", methods=["POST"])
def parse_upload():
    try:
        records, range_name = _apply_range(_records_from_request())
    except FormatError as exc:
        return _error(str(exc), 400)
    except Exception as exc:  # pragma: no cover - defensive guard
        log.exception("export_parse_failed")
        return _error(str(exc), 500)

    return jsonify({
        "records": [record.as_dict() for record in records],
        "count": len(records),
        "summary": asdict(aggregate.summarize(records)),
        "range": range_name,
        "range_label": time_range_label(range_name) if range_name else None,
        "status": "success",
    })


@app.route("/api/aggregations", methods=["POST"])
def get_aggregations():
    try:
        records, range_name = _apply_range(_records_from_request())
    except FormatError as exc:
        return _error(str(exc), 400)

    limit = request.args.get("limit", default=config.DEFAULT_TOP_LIMIT, type=int)
    group_by = request.args.get("group_by", default="day")
    try:
        frequency = aggregate.aggregate_by_date(records, group_by=group_by)
    except ValueError as exc:
        return _error(str(exc), 400)

    return jsonify({
        "top_artists": [asdict(item) for item in aggregate.top_artists(records, limit=limit)],
        "top_tracks": [asdict(item) for item in aggregate.top_tracks(records, limit=limit)],
        "frequency": [asdict(item) for item in frequency],
        "hour_patterns": [asdict(item) for item in aggregate.hour_patterns(records)],
        "day_patterns": [asdict(item) for item in aggregate.day_patterns(records)],
        "summary": asdict(aggregate.summarize(records)),
        "range": range_name,
        "status": "success",
    })


@app.route("/api/relatability", methods=["POST"])
def get_relatability():
    payload: Dict[str, Any] = request.get_json(force=True, silent=True) or {}

    if "genres_a" in payload and "genres_b" in payload:
        genres_a = payload.get("genres_a") or {}
        genres_b = payload.get("genres_b") or {}
        if not isinstance(genres_a, dict) or not isinstance(genres_b, dict):
            return _error("genres_a and genres_b must be objects", 400)
    elif "artists_a" in payload and "artists_b" in payload:
        try:
            resolver = _spotify_client()
        except RuntimeError as exc:
            return _error(str(exc), 503)
        try:
            genres_a = aggregate_genres(payload.get("artists_a") or [], resolver)
            genres_b = aggregate_genres(payload.get("artists_b") or [], resolver)
        except (AttributeError, TypeError, ValueError) as exc:
            return _error(f"Invalid artist entries: {exc}", 400)
    else:
        return _error("Provide either genres_a/genres_b or artists_a/artists_b", 400)

    try:
        score = calculate_relatability_score(genres_a, genres_b)
    except (TypeError, ValueError) as exc:
        return _error(f"Genre weights must be numbers: {exc}", 400)

    return jsonify({
        "score": score,
        "genres_a": genres_a,
        "genres_b": genres_b,
        "status": "success",
    })


@app.route("/api/health", methods=["GET"])
def health_check():
    return jsonify({
        "status": "healthy",
        "message": "Listening engine API server is running",
        "time_ranges": list(config.TIME_RANGES),
    })


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    logging.basicConfig(level=logging.INFO)
    print("Starting listening engine API server...")
    app.run(debug=True, host="0.0.0.0", port=5000)
