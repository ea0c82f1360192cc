"""
Line protocol encoder.

Each sample becomes one line:

    measurement[,tag=value...][,sensor_index=<int>] field=<.2f>[,...][,aqi_epa=<int>][,aqi_raw=<int>] <unix ns>

Tags are written sorted by key and fields sorted by name so the output is
deterministic. `pm2.5_alt` drives the EPA-corrected AQI, `pm2.5` the raw AQI.
"""

import logging
from typing import List, Mapping, Optional, Sequence

from airpoll.ingestion.normalizer import Sample
from airpoll.rules.aqi import pm25_to_aqi, round_half_away

logger = logging.getLogger(__name__)

NANOS_PER_SECOND = 1_000_000_000
SUBJECT_KEY = "sensor_index"
EPA_SOURCE_FIELD = "pm2.5_alt"
RAW_SOURCE_FIELD = "pm2.5"


def _escape_measurement(name: str) -> str:
    return name.replace(",", r"\,").replace(" ", r"\ ")


def _escape_key(key: str) -> str:
    """Escape a tag key, tag value or field key."""
    return key.replace(",", r"\,").replace("=", r"\=").replace(" ", r"\ ")


def has_fields(sample: Sample) -> bool:
    return any(name != SUBJECT_KEY for name in sample.data)


def encode_sample(measurement: str, tags: Mapping[str, str], sample: Sample) -> str:
    head = [_escape_measurement(measurement)]
    for key in sorted(tags):
        head.append(f"{_escape_key(key)}={_escape_key(str(tags[key]))}")
    if SUBJECT_KEY in sample.data:
        head.append(f"{SUBJECT_KEY}={round_half_away(float(sample.data[SUBJECT_KEY]))}")

    fields = [
        f"{_escape_key(name)}={float(value):.2f}"
        for name, value in sorted(sample.data.items())
        if name != SUBJECT_KEY
    ]
    if EPA_SOURCE_FIELD in sample.data:
        fields.append(f"aqi_epa={pm25_to_aqi(float(sample.data[EPA_SOURCE_FIELD]))}")
    if RAW_SOURCE_FIELD in sample.data:
        fields.append(f"aqi_raw={pm25_to_aqi(float(sample.data[RAW_SOURCE_FIELD]))}")

    return f"{','.join(head)} {','.join(fields)} {int(sample.timestamp) * NANOS_PER_SECOND}"


def encode(
    measurement: str,
    tags: Optional[Mapping[str, str]],
    samples: Sequence[Sample],
) -> List[str]:
    """
    Encode samples one line each, preserving sample order.

    Samples with no reading besides `sensor_index` are skipped; a line with
    an empty field set is rejected by the sink.
    """
    lines = []
    for s in samples:
        if not has_fields(s):
            logger.debug("Skipping sample without readings: sensor_index=%s", s.sensor_index)
            continue
        lines.append(encode_sample(measurement, tags or {}, s))
    for line in lines:
        logger.debug(line)
    return lines
