import json

import pytest
import requests

from services.purpleair import (SensorHistoryError, build_filename,
                                fetch_sensor_history, sort_rows_by_timestamp,
                                timestamp_column, to_csv)


class FakeResponse:
    def __init__(self, status_code=200, body=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._body = body

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeSession:
    """Records the last GET and hands back a canned response."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response


HISTORY = {
    "sensor_index": 12345,
    "fields": ["time_stamp", "pm2.5_atm", "humidity"],
    "data": [
        [1717203600, 8.1, 40],
        [1717200000, 7.5, 42],
        [1717207200, 9.0, 38],
    ]
}


def fetch(session, **overrides):
    args = dict(sensor_index=12345, api_key="KEY", start_timestamp="2024-06-01T00:00:00+00:00",
                end_timestamp="2024-06-02T00:00:00+00:00", fields=["pm2.5_atm", "humidity"])
    args.update(overrides)
    return fetch_sensor_history(session=session, **args)


# --- request ---

def test_request_shape():
    session = FakeSession(FakeResponse(body=json.loads(json.dumps(HISTORY))))
    fetch(session)

    url, kwargs = session.calls[0]
    assert url.endswith("/sensors/12345/history")
    assert kwargs["headers"] == {"X-API-Key": "KEY"}
    assert kwargs["params"] == {
        "average": 0,
        "fields": "pm2.5_atm,humidity",
        "start_timestamp": "2024-06-01T00:00:00+00:00",
        "end_timestamp": "2024-06-02T00:00:00+00:00"
    }
    assert kwargs["timeout"] > 0


def test_result_is_sorted_and_packaged():
    session = FakeSession(FakeResponse(body=json.loads(json.dumps(HISTORY))))
    result = fetch(session)

    assert result["success"] is True
    assert result["data_points"] == 3
    assert [row[0] for row in result["data"]["data"]] == [1717200000, 1717203600, 1717207200]
    assert result["filename"] == "sensor_12345_2024-06-01T00_00_00_00_00.json"
    assert json.loads(result["json_content"]) == result["data"]
    assert result["csv_content"].splitlines()[0] == "time_stamp,pm2.5_atm,humidity"
    assert result["csv_content"].splitlines()[1] == "1717200000,7.5,42"


def test_empty_history():
    session = FakeSession(FakeResponse(body={"fields": ["time_stamp"], "data": []}))
    result = fetch(session)

    assert result["data_points"] == 0
    assert result["csv_content"].strip() == "time_stamp"


# --- validation ---

@pytest.mark.parametrize("field", ["sensor_index", "api_key", "start_timestamp", "end_timestamp"])
@pytest.mark.parametrize("blank", [None, "", "   "])
def test_required_fields(field, blank):
    session = FakeSession()
    with pytest.raises(SensorHistoryError) as exc:
        fetch(session, **{field: blank})

    assert exc.value.status_code == 400
    assert exc.value.message == "All fields are required"
    assert session.calls == []


@pytest.mark.parametrize("fields", [None, [], "pm2.5_atm"])
def test_fields_must_be_a_non_empty_list(fields):
    with pytest.raises(SensorHistoryError) as exc:
        fetch(FakeSession(), fields=fields)

    assert exc.value.status_code == 400
    assert exc.value.message == "At least one field must be selected"


# --- upstream failures ---

def test_upstream_description_is_passed_through():
    body = {"error": "ApiKeyInvalidError", "description": "The provided api_key was not valid."}
    session = FakeSession(FakeResponse(403, body, reason="Forbidden"))

    with pytest.raises(SensorHistoryError) as exc:
        fetch(session)

    assert exc.value.status_code == 403
    assert exc.value.message == "The provided api_key was not valid."


def test_upstream_error_without_json_body():
    session = FakeSession(FakeResponse(500, ValueError("no json"), reason="Internal Server Error"))

    with pytest.raises(SensorHistoryError) as exc:
        fetch(session)

    assert exc.value.status_code == 500
    assert exc.value.message == "API error: 500 Internal Server Error"


def test_network_failure_is_bad_gateway():
    session = FakeSession(error=requests.ConnectionError("refused"))

    with pytest.raises(SensorHistoryError) as exc:
        fetch(session)

    assert exc.value.status_code == 502


# --- helpers ---

def test_timestamp_column_lookup():
    assert timestamp_column(["pm2.5_atm", "time_stamp"]) == 1
    assert timestamp_column(["humidity", "timestamp"]) == 1
    assert timestamp_column(["humidity"]) == 0
    assert timestamp_column(None) == 0


def test_sort_iso_strings():
    rows = [["2024-06-01T02:00:00Z", 3], ["2024-06-01T00:00:00Z", 1], ["2024-06-01T01:00:00Z", 2]]
    assert [r[1] for r in sort_rows_by_timestamp(rows, ["time_stamp", "v"])] == [1, 2, 3]


def test_sort_mixed_and_garbled():
    rows = [
        ["bad", 9],
        ["2024-06-01T01:00:00Z", 2],
        [1717200000, 1],  # 2024-06-01T00:00:00Z
        [None, 8],
    ]
    ordered = sort_rows_by_timestamp(rows, ["time_stamp", "v"])
    assert [r[1] for r in ordered] == [1, 2, 9, 8]


def test_filename_sanitizes_start():
    assert build_filename(7, "2024-06-01T00:00:00+05:30") == "sensor_7_2024-06-01T00_00_00_05_30.json"
    assert build_filename(7, 1717200000) == "sensor_7_1717200000.json"


def test_csv_without_field_names():
    assert to_csv({"data": [[1, 2]]}).splitlines() == ["0,1", "1,2"]
