"""
Sensor API Connector.

Fetches the sensor matrix inside a bounding box and checks API key
validity. Transport failures, bad status codes and malformed bodies are
all reported as FetchError so the poll loop can back off and retry.
"""

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

import httpx

from airpoll.errors import ConfigurationError, FetchError
from airpoll.ingestion.validator import validate_params

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.purpleair.com/v1"
REQUEST_TIMEOUT = 5  # seconds


class LocationType(enum.IntEnum):
    OUTSIDE = 0
    INSIDE = 1


class ApiErrorCode(enum.Enum):
    """Error names the sensor API returns in the `error` member of a 4xx body."""
    UNDEFINED = "Undefined"
    API_KEY_MISSING = "ApiKeyMissingError"              # No API key was found in the request
    API_KEY_TYPE_MISMATCH = "ApiKeyTypeMismatchError"   # Key was of the wrong type (READ or WRITE)
    API_KEY_INVALID = "ApiKeyInvalidError"              # Key was not valid
    API_KEY_RESTRICTED = "ApiKeyRestrictedError"        # Key is restricted to certain hosts or referrers
    API_DISABLED = "ApiDisabledError"                   # Calls to this endpoint are restricted for the key
    INVALID_TOKEN = "InvalidTokenError"                 # Token was not valid

    @classmethod
    def from_name(cls, name) -> "ApiErrorCode":
        for code in cls:
            if code.value == name:
                return code
        return cls.UNDEFINED


@dataclass
class SensorResponse:
    """Decoded `/sensors` payload."""
    api_version: str
    time_stamp: int
    data_time_stamp: int
    location_type: LocationType
    max_age: int
    firmware_default_version: str
    fields: List[str] = field(default_factory=list)
    data: List[list] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: dict) -> "SensorResponse":
        try:
            fields = list(payload["fields"])
            data = [[_check_cell(cell) for cell in row] for row in payload["data"]]
            return cls(
                api_version=str(payload.get("api_version", "")),
                time_stamp=int(payload.get("time_stamp", 0)),
                data_time_stamp=int(payload["data_time_stamp"]),
                location_type=LocationType(int(payload.get("location_type", 0))),
                max_age=int(payload.get("max_age", 0)),
                firmware_default_version=str(payload.get("firmware_default_version", "")),
                fields=fields,
                data=data,
            )
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise FetchError(f"unexpected /sensors response shape: {e}") from e


def _check_cell(cell):
    """Matrix cells must be null or a finite number."""
    if cell is None:
        return None
    if isinstance(cell, bool) or not isinstance(cell, (int, float)):
        raise ValueError(f"non-numeric cell {cell!r}")
    if not math.isfinite(float(cell)):
        raise ValueError(f"non-finite cell {cell!r}")
    return cell


def _parse_api_error(resp: httpx.Response) -> ApiErrorCode:
    """Decode the upstream error name from an error body, UNDEFINED if absent."""
    try:
        body = resp.json()
    except ValueError:
        return ApiErrorCode.UNDEFINED
    if not isinstance(body, dict):
        return ApiErrorCode.UNDEFINED
    return ApiErrorCode.from_name(body.get("error"))


class SensorClient:
    """Read-only client for the sensor network API."""

    def __init__(
        self,
        read_key: str,
        write_key: str = "",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ):
        if not read_key:
            raise ConfigurationError("must provide API read key")
        self.read_key = read_key
        self.write_key = write_key
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "SensorClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def build_url(self, endpoint: str, params: Optional[Mapping[str, str]] = None) -> str:
        """Join base URL and endpoint; query keys are emitted in sorted order."""
        url = self.base_url + endpoint
        if not params:
            return url
        return str(httpx.URL(url, params=sorted(params.items())))

    def _get(self, endpoint: str, params: Optional[Mapping[str, str]] = None) -> httpx.Response:
        headers = {"X-API-Key": self.read_key, "Accept": "application/json"}
        try:
            return self._http.get(self.build_url(endpoint, params), headers=headers)
        except httpx.TimeoutException as e:
            logger.error("Sensor API request timed out for %s", endpoint)
            raise FetchError(f"timeout requesting {endpoint}") from e
        except httpx.RequestError as e:
            logger.error("Sensor API network error for %s: %s", endpoint, e)
            raise FetchError(f"error getting {endpoint}: {e}") from e

    def keys_valid(self) -> bool:
        """
        Check the read key against `/keys`.

        Returns:
            True on HTTP 201, False on HTTP 403.

        Raises:
            FetchError: On transport failure or any other status code.
        """
        resp = self._get("/keys")
        if resp.status_code == httpx.codes.FORBIDDEN:
            return False
        if resp.status_code != httpx.codes.CREATED:
            raise FetchError(
                f"expected return code 201 or 403 got {resp.status_code}",
                status_code=resp.status_code,
            )
        return True

    def get_sensors(self, params: Mapping[str, str]) -> SensorResponse:
        """
        Fetch the sensor matrix for the given request parameters.

        Raises:
            ValidationError: If params fail validation; no request is sent.
            FetchError: On transport failure, non-2xx status or a body that
                does not decode into a SensorResponse.
        """
        validate_params(params)
        resp = self._get("/sensors", params)

        if not resp.is_success:
            api_error = _parse_api_error(resp)
            logger.error(
                "Sensor API HTTP error %s (%s)", resp.status_code, api_error.value
            )
            raise FetchError(
                f"/sensors returned {resp.status_code} ({api_error.value})",
                status_code=resp.status_code,
                api_error=api_error,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            logger.error("Sensor API returned malformed JSON")
            raise FetchError("can not unmarshal response JSON") from e

        if not isinstance(payload, dict):
            raise FetchError("can not unmarshal response JSON")

        sensors = SensorResponse.from_json(payload)
        logger.info(
            "Fetched %d sensors (api %s, snapshot %d)",
            len(sensors.data), sensors.api_version, sensors.data_time_stamp,
        )
        return sensors
