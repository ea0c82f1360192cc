"""
Sensor matrix normalizer.

The sensor API answers with a field-name list plus a row-major matrix in
which each row is one sensor. A cell is null when the sensor does not
report that field; such fields are left out of the sample entirely rather
than appearing as a reading of zero.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

Number = Union[int, float]


@dataclass(frozen=True)
class Sample:
    """One sensor's readings at the upstream snapshot time."""
    timestamp: int
    data: Dict[str, Number] = field(default_factory=dict)

    @property
    def sensor_index(self) -> Optional[Number]:
        return self.data.get("sensor_index")

    def to_dict(self) -> dict:
        return {"time_stamp": self.timestamp, "data": dict(self.data)}


def sensors_to_samples(
    timestamp: int,
    fields: Sequence[str],
    rows: Sequence[Sequence[Optional[Number]]],
) -> List[Sample]:
    """
    Convert a sparse sensor matrix into one Sample per row.

    Args:
        timestamp: Data snapshot time shared by every sample of the cycle.
        fields: Column names, positionally aligned with each row.
        rows: Matrix cells; None marks a field the sensor does not report.

    Returns:
        Samples in row order. Cells beyond the end of `fields` are ignored.
    """
    samples = []
    for row in rows:
        data = {name: value for name, value in zip(fields, row) if value is not None}
        samples.append(Sample(timestamp=timestamp, data=data))
    logger.debug("Normalized %d rows into samples", len(samples))
    return samples


def samples_json(samples: Sequence[Sample], indent: Optional[int] = None) -> str:
    """Serialize samples as a JSON array with sorted data keys."""
    return json.dumps([s.to_dict() for s in samples], indent=indent, sort_keys=True)
