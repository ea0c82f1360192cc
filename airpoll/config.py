"""
Runtime configuration from environment variables (and a local .env file).

Sensor settings are needed by every command; sink settings only by the
continuous publish loop. Missing or malformed values raise
ConfigurationError naming the variable.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from airpoll.errors import ConfigurationError, GeometryError
from airpoll.geo.bounds import GeoPoint
from airpoll.ingestion.sensor_client import DEFAULT_BASE_URL
from airpoll.ingestion.validator import DEFAULT_FIELDS, DEFAULT_LOCATION_TYPE

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 60.0  # seconds between successful cycles


@dataclass(frozen=True)
class SensorSettings:
    read_key: str
    center: GeoPoint
    radius_km: float
    write_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    fields: str = DEFAULT_FIELDS
    location_type: str = DEFAULT_LOCATION_TYPE


@dataclass(frozen=True)
class SinkSettings:
    host: str
    port: int
    database: str
    measurement: str
    tags: Dict[str, str] = field(default_factory=dict)
    username: str = ""
    password: str = ""
    poll_interval: float = DEFAULT_POLL_INTERVAL


def _parse_float(env: Mapping[str, str], name: str) -> float:
    try:
        return float(env[name])
    except ValueError as e:
        raise ConfigurationError(f"could not parse {name} into float") from e


def load_sensor_settings(
    env: Optional[Mapping[str, str]] = None,
    read_key: Optional[str] = None,
    write_key: Optional[str] = None,
) -> SensorSettings:
    """
    Read the sensor-side settings.

    Args:
        env: Variable source, os.environ by default.
        read_key: Overrides PURPLEAIR_READ_KEY when given.
        write_key: Overrides PURPLEAIR_WRITE_KEY when given.
    """
    env = os.environ if env is None else env
    read_key = read_key or env.get("PURPLEAIR_READ_KEY", "")
    write_key = write_key or env.get("PURPLEAIR_WRITE_KEY", "")

    if not read_key:
        raise ConfigurationError("read key is required. Set env PURPLEAIR_READ_KEY")
    if not env.get("PURPLEAIR_LATITUDE") or not env.get("PURPLEAIR_LONGITUDE"):
        raise ConfigurationError(
            "lat,lon is required. Set env PURPLEAIR_LATITUDE, PURPLEAIR_LONGITUDE"
        )
    if not env.get("PURPLEAIR_RANGE_KM"):
        raise ConfigurationError("range in km is required. Set env PURPLEAIR_RANGE_KM")

    lat = _parse_float(env, "PURPLEAIR_LATITUDE")
    lon = _parse_float(env, "PURPLEAIR_LONGITUDE")
    radius_km = _parse_float(env, "PURPLEAIR_RANGE_KM")
    if radius_km < 0:
        raise ConfigurationError("PURPLEAIR_RANGE_KM must not be negative")

    try:
        center = GeoPoint(latitude=lat, longitude=lon)
    except GeometryError as e:
        raise ConfigurationError(str(e)) from e

    logger.info("Sensor settings loaded: center=(%.5f, %.5f) radius=%.2fkm", lat, lon, radius_km)
    return SensorSettings(
        read_key=read_key,
        write_key=write_key,
        center=center,
        radius_km=radius_km,
        base_url=env.get("PURPLEAIR_BASE_URL") or DEFAULT_BASE_URL,
        fields=env.get("PURPLEAIR_FIELDS") or DEFAULT_FIELDS,
        location_type=env.get("PURPLEAIR_LOCATION_TYPE") or DEFAULT_LOCATION_TYPE,
    )


def load_sink_settings(env: Optional[Mapping[str, str]] = None) -> SinkSettings:
    """Read the time-series sink settings for the publish loop."""
    env = os.environ if env is None else env
    host = env.get("INFLUXDB_HOST", "")
    port_str = env.get("INFLUXDB_PORT", "")
    database = env.get("INFLUXDB_DB", "")
    measurement = env.get("INFLUX_MEASUREMENT_NAME", "")
    location = env.get("INFLUX_LOCATION_TAG", "")

    if not measurement:
        raise ConfigurationError("measurement name must be set via env INFLUX_MEASUREMENT_NAME")
    if not location:
        raise ConfigurationError("location tag value must be set via env INFLUX_LOCATION_TAG")
    if not host or not port_str or not database:
        raise ConfigurationError(
            "host, port, and database are required. "
            "Set env INFLUXDB_HOST, INFLUXDB_PORT, INFLUXDB_DB"
        )
    try:
        port = int(port_str)
    except ValueError as e:
        raise ConfigurationError("could not parse INFLUXDB_PORT into int") from e

    poll_interval = DEFAULT_POLL_INTERVAL
    if env.get("POLL_INTERVAL_SECONDS"):
        poll_interval = _parse_float(env, "POLL_INTERVAL_SECONDS")

    return SinkSettings(
        host=host,
        port=port,
        database=database,
        measurement=measurement,
        tags={"location": location},
        username=env.get("INFLUXDB_USERNAME", ""),
        password=env.get("INFLUXDB_PASSWORD", ""),
        poll_interval=poll_interval,
    )
