# services/purpleair.py
# Thin proxy around the PurpleAir sensor history endpoint

import json
import math
from typing import Any, List, Optional

import pandas as pd
import requests

from config import (PURPLEAIR_API_URL, PURPLEAIR_TIMEOUT, PURPLEAIR_AVERAGE,
                    TIMESTAMP_FIELDS)


class SensorHistoryError(Exception):
    """Raised with the HTTP status the caller should see."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_epoch(value: Any) -> float:
    """Seconds since epoch for numeric or ISO-string timestamps, NaN if unparseable."""
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            ts = pd.Timestamp(value)
        except ValueError:
            return math.nan
        if pd.isna(ts):
            return math.nan
        if ts.tzinfo is None:
            ts = ts.tz_localize("UTC")
        return ts.timestamp()
    return math.nan


def timestamp_column(fields: Optional[List[str]]) -> int:
    """Index of the timestamp column, first column if the name isn't there."""
    for i, name in enumerate(fields or []):
        if name in TIMESTAMP_FIELDS:
            return i
    return 0


def sort_rows_by_timestamp(rows: List[list], fields: Optional[List[str]]) -> List[list]:
    """Oldest first. Rows with a missing or garbled timestamp go last."""
    col = timestamp_column(fields)

    def key(row):
        raw = row[col] if len(row) > col else None
        t = _to_epoch(raw)
        return (math.isnan(t), 0.0 if math.isnan(t) else t)

    return sorted(rows, key=key)


def build_filename(sensor_index: Any, start_timestamp: Any) -> str:
    safe_start = str(start_timestamp).replace(":", "_").replace("+", "_")
    return f"sensor_{sensor_index}_{safe_start}.json"


def to_csv(payload: dict) -> str:
    """CSV of the history rows, one column per requested field."""
    rows = payload.get("data") or []
    fields = payload.get("fields")
    df = pd.DataFrame(rows, columns=fields if fields else None)
    return df.to_csv(index=False)


def fetch_sensor_history(sensor_index: Any, api_key: str, start_timestamp: Any,
                         end_timestamp: Any, fields: List[str],
                         session: requests.Session = None) -> dict:
    """
    Fetch raw (unaveraged) history for one sensor and package it for download.

    Raises SensorHistoryError for bad input (400), upstream failures
    (upstream status) and network trouble (502).
    """
    if any(_is_blank(v) for v in (sensor_index, api_key, start_timestamp, end_timestamp)):
        raise SensorHistoryError(400, "All fields are required")

    if not fields or not isinstance(fields, list):
        raise SensorHistoryError(400, "At least one field must be selected")

    http = session or requests
    url = f"{PURPLEAIR_API_URL}/sensors/{sensor_index}/history"
    params = {
        "average": PURPLEAIR_AVERAGE,
        "fields": ",".join(fields),
        "start_timestamp": start_timestamp,
        "end_timestamp": end_timestamp
    }

    try:
        response = http.get(url, headers={"X-API-Key": api_key},
                            params=params, timeout=PURPLEAIR_TIMEOUT)
    except requests.RequestException as e:
        raise SensorHistoryError(502, f"Could not reach PurpleAir: {e}")

    if not response.ok:
        try:
            body = response.json()
        except ValueError:
            body = {}
        description = body.get("description") if isinstance(body, dict) else None
        raise SensorHistoryError(
            response.status_code,
            description or f"API error: {response.status_code} {response.reason}"
        )

    data = response.json()

    rows = data.get("data")
    if isinstance(rows, list) and rows:
        data["data"] = sort_rows_by_timestamp(rows, data.get("fields"))

    return {
        "success": True,
        "filename": build_filename(sensor_index, start_timestamp),
        "data_points": len(data.get("data") or []),
        "data": data,
        "json_content": json.dumps(data, indent=2),
        "csv_content": to_csv(data)
    }
