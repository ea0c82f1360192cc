"""Shared test fixtures for the airpoll test suite."""

import copy
import json

import httpx
import pytest

SENSORS_PAYLOAD = {
    "api_version": "V1.0.11-0.0.40",
    "time_stamp": 1664170828,
    "data_time_stamp": 1664170800,
    "location_type": 0,
    "max_age": 604800,
    "firmware_default_version": "7.00",
    "fields": ["sensor_index", "humidity", "temperature", "voc", "pm1.0", "pm2.5", "pm10.0"],
    "data": [
        [15111, 43, 77, None, 6.2, 8.7, 9.4],
        [20755, 55, 69, None, 7.3, 9.9, 10.3],
        [90011, 47, 72, None, 7.1, 10.3, 11.0],
        [127397, 51, 69, None, 4.1, 7.3, 7.8],
    ],
}

FEWER_FIELDS_PAYLOAD = {
    "api_version": "V1.0.11-0.0.40",
    "time_stamp": 1664170828,
    "data_time_stamp": 1664170800,
    "location_type": 0,
    "max_age": 600,
    "firmware_default_version": "7.00",
    "fields": ["sensor_index", "humidity", "temperature"],
    "data": [
        [15111, 43, 77],
        [20755, 55, 69],
    ],
}


@pytest.fixture()
def sensors_payload():
    """A fresh copy of a realistic /sensors response body."""
    return copy.deepcopy(SENSORS_PAYLOAD)


@pytest.fixture()
def fewer_fields_payload():
    return copy.deepcopy(FEWER_FIELDS_PAYLOAD)


@pytest.fixture()
def make_http():
    """
    Build an httpx.Client backed by a canned handler.

    The returned client records every request it sees on `client.requests`.
    """
    clients = []

    def _make(handler):
        seen = []

        def _record(request):
            seen.append(request)
            return handler(request)

        client = httpx.Client(transport=httpx.MockTransport(_record))
        client.requests = seen
        clients.append(client)
        return client

    yield _make
    for c in clients:
        c.close()


@pytest.fixture()
def json_response():
    """Factory for JSON httpx responses."""
    def _make(status_code: int, body) -> httpx.Response:
        return httpx.Response(
            status_code,
            content=json.dumps(body).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
    return _make
