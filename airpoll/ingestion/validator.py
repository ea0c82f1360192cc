"""
Validator for sensor API request parameters.

Validates:
- Every token of the `fields` parameter is a known sensor field
- `location_type` is "0" (outside) or "1" (inside)
- Every other key is a known URL parameter

Stateless; validation never mutates the parameters.
"""

import logging
from typing import Dict, Mapping, Optional

from airpoll.errors import ValidationError
from airpoll.geo.bounds import GeoPoint, compute_bounds

logger = logging.getLogger(__name__)

DEFAULT_FIELDS = "humidity,temperature,voc,pm1.0,pm2.5,pm10.0,pm2.5_alt"
DEFAULT_LOCATION_TYPE = "0"

# Field catalog, grouped the way the sensor API documents them
SENSOR_FIELDS = (
    "name", "icon", "model", "hardware", "location_type", "private",
    "latitude", "longitude", "altitude", "position_rating",
    "led_brightness", "firmware_version", "firmware_upgrade",
    "rssi", "uptime", "pa_latency", "memory",
    "last_seen", "last_modified", "date_created",
    "channel_state", "channel_flags", "channel_flags_manual", "channel_flags_auto",
    "confidence", "confidence_manual",
)

ENVIRONMENTAL_FIELDS = (
    "humidity", "humidity_a", "humidity_b",
    "temperature", "temperature_a", "temperature_b",
    "pressure", "pressure_a", "pressure_b",
)

MISC_FIELDS = (
    "voc", "voc_a", "voc_b",
    "ozone1", "analog_input",
)

PM1_FIELDS = (
    "pm1.0", "pm1.0_a", "pm1.0_b",
    "pm1.0_atm", "pm1.0_atm_a", "pm1.0_atm_b",
    "pm1.0_cf_1", "pm1.0_cf_1_a", "pm1.0_cf_1_b",
)

PM25_FIELDS = (
    "pm2.5_alt", "pm2.5_alt_a", "pm2.5_alt_b",
    "pm2.5", "pm2.5_a", "pm2.5_b",
    "pm2.5_atm", "pm2.5_atm_a", "pm2.5_atm_b",
    "pm2.5_cf_1", "pm2.5_cf_1_a", "pm2.5_cf_1_b",
)

PM25_AVERAGE_FIELDS = (
    "pm2.5_10minute", "pm2.5_10minute_a", "pm2.5_10minute_b",
    "pm2.5_30minute", "pm2.5_30minute_a", "pm2.5_30minute_b",
    "pm2.5_60minute", "pm2.5_60minute_a", "pm2.5_60minute_b",
    "pm2.5_6hour", "pm2.5_6hour_a", "pm2.5_6hour_b",
    "pm2.5_24hour", "pm2.5_24hour_a", "pm2.5_24hour_b",
    "pm2.5_1week", "pm2.5_1week_a", "pm2.5_1week_b",
)

PM10_FIELDS = (
    "pm10.0", "pm10.0_a", "pm10.0_b",
    "pm10.0_atm", "pm10.0_atm_a", "pm10.0_atm_b",
    "pm10.0_cf_1", "pm10.0_cf_1_a", "pm10.0_cf_1_b",
)

ALL_FIELDS = frozenset(
    SENSOR_FIELDS
    + ENVIRONMENTAL_FIELDS
    + MISC_FIELDS
    + PM1_FIELDS
    + PM25_FIELDS
    + PM25_AVERAGE_FIELDS
    + PM10_FIELDS
)

URL_PARAMS = frozenset({
    "fields",
    "location_type",
    "read_keys",
    "show_only",
    "modified_since",
    "max_age",
    "nwlng",
    "nwlat",
    "selng",
    "selat",
})

LOCATION_TYPES = ("0", "1")


def validate_params(params: Mapping[str, str]) -> None:
    """
    Check a request parameter set against the field and URL whitelists.

    Args:
        params: Mapping of parameter name to string value.

    Raises:
        ValidationError: On the first unknown field, out-of-range location
            type or unknown parameter name. The offending token is
            available as `err.token`.
    """
    for key, value in params.items():
        if key == "fields":
            for field_name in value.split(","):
                if field_name not in ALL_FIELDS:
                    raise ValidationError(f"invalid field {field_name}", field_name)
        elif key == "location_type":
            if value not in LOCATION_TYPES:
                raise ValidationError(f"invalid location type {value}", value)
        elif key not in URL_PARAMS:
            raise ValidationError(f"unknown parameter {key}", key)


def build_params(
    center: GeoPoint,
    radius_km: float,
    fields: str = DEFAULT_FIELDS,
    location_type: str = DEFAULT_LOCATION_TYPE,
    extra: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Assemble and validate the `/sensors` parameters for one poll cycle.

    Raises:
        InvalidBoundsError: If the radius produces an impossible box.
        ValidationError: If any field or parameter is unknown.
    """
    params = {"fields": fields, "location_type": location_type}
    if extra:
        params.update(extra)
    params.update(compute_bounds(center, radius_km).to_params())
    validate_params(params)
    logger.debug("Request params built: %s", params)
    return params
