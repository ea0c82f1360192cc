"""
Poll-publish loop.

Each cycle runs to completion before the next begins:

    1. build bounds + request params, validate
    2. fetch the sensor matrix
    3. normalize into samples
    4. encode and publish each line
    5. pick the next sleep from the cycle outcome, sleep, repeat

Only FetchError and PublishError are absorbed by the loop; they trigger a
randomized backoff. Configuration, geometry and validation errors cannot
fix themselves by waiting, so they propagate and end the run.

The sleep duration is a pure function of the last outcome (next_sleep),
threaded through the loop rather than held in shared state.
"""

import enum
import logging
import random
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from airpoll.errors import FetchError, PublishError
from airpoll.geo.bounds import GeoPoint
from airpoll.ingestion.normalizer import Sample, sensors_to_samples
from airpoll.ingestion.sensor_client import SensorClient
from airpoll.ingestion.validator import build_params
from airpoll.publishing.influx_writer import InfluxWriter
from airpoll.publishing.line_protocol import encode

logger = logging.getLogger(__name__)

SUCCESS_INTERVAL = 60.0   # seconds
BACKOFF_MIN = 5.0         # seconds
BACKOFF_SPAN = 20.0       # failures sleep in [BACKOFF_MIN, BACKOFF_MIN + BACKOFF_SPAN)


class CycleOutcome(enum.Enum):
    SUCCESS = "success"
    FETCH_FAILED = "fetch_failed"
    PUBLISH_FAILED = "publish_failed"
    CANCELLED = "cancelled"


@dataclass
class CycleResult:
    """Summary of one fetch-transform-publish cycle."""
    outcome: CycleOutcome
    sample_count: int = 0
    published: int = 0
    error: Optional[Exception] = None


def next_sleep(
    outcome: CycleOutcome,
    rng: Optional[random.Random] = None,
    success_interval: float = SUCCESS_INTERVAL,
) -> float:
    """
    Seconds to wait before the next cycle.

    Success waits the regular interval. Any failure waits a uniformly random
    backoff in [5, 25) seconds so retries against a rate-limited API spread out.
    A cancelled cycle does not wait.
    """
    if outcome is CycleOutcome.SUCCESS:
        return success_interval
    if outcome is CycleOutcome.CANCELLED:
        return 0.0
    rng = rng or random
    return BACKOFF_MIN + rng.random() * BACKOFF_SPAN


def fetch_samples(client: SensorClient, params: Dict[str, str]) -> List[Sample]:
    """Fetch one sensor matrix and normalize it."""
    sensors = client.get_sensors(params)
    return sensors_to_samples(sensors.data_time_stamp, sensors.fields, sensors.data)


class Poller:
    """
    Drives the continuous poll/publish cycle.

    Args:
        client: Sensor API client.
        writer: Time-series sink writer.
        build_request: Zero-argument callable producing validated request
            params for a cycle; raises on geometry or validation errors.
        measurement: Line protocol measurement name.
        tags: Tags added to every line.
        stop_event: Set to request a graceful stop; checked before every
            blocking step and interrupts the sleep.
        rng: Random source for the failure backoff.
        success_interval: Sleep after a successful cycle.
    """

    def __init__(
        self,
        client: SensorClient,
        writer: InfluxWriter,
        build_request: Callable[[], Dict[str, str]],
        measurement: str,
        tags: Optional[Dict[str, str]] = None,
        stop_event: Optional[threading.Event] = None,
        rng: Optional[random.Random] = None,
        success_interval: float = SUCCESS_INTERVAL,
    ):
        self.client = client
        self.writer = writer
        self.build_request = build_request
        self.measurement = measurement
        self.tags = dict(tags or {})
        self.stop_event = stop_event or threading.Event()
        self.rng = rng or random.Random()
        self.success_interval = success_interval

    def run_cycle(self) -> CycleResult:
        params = self.build_request()

        try:
            samples = fetch_samples(self.client, params)
        except FetchError as exc:
            logger.error("error getting sensors: %s", exc)
            return CycleResult(outcome=CycleOutcome.FETCH_FAILED, error=exc)

        if self.stop_event.is_set():
            return CycleResult(outcome=CycleOutcome.CANCELLED, sample_count=len(samples))

        lines = encode(self.measurement, self.tags, samples)
        try:
            published = self.writer.publish(lines)
        except PublishError as exc:
            logger.error("error publishing to sink: %s", exc)
            return CycleResult(
                outcome=CycleOutcome.PUBLISH_FAILED,
                sample_count=len(samples),
                error=exc,
            )

        return CycleResult(
            outcome=CycleOutcome.SUCCESS,
            sample_count=len(samples),
            published=published,
        )

    def run(self, max_cycles: Optional[int] = None) -> int:
        """
        Loop until stop_event is set (or max_cycles cycles have run).

        Returns:
            Number of cycles executed.
        """
        cycles = 0
        while not self.stop_event.is_set():
            logger.info("── Poll cycle starting ──")
            result = self.run_cycle()
            cycles += 1
            delay = next_sleep(result.outcome, self.rng, self.success_interval)
            logger.info(
                "── Poll cycle complete: %s samples=%d published=%d, sleeping %.1fs ──",
                result.outcome.value, result.sample_count, result.published, delay,
            )
            if max_cycles is not None and cycles >= max_cycles:
                break
            self.stop_event.wait(delay)
        logger.info("Poller stopped after %d cycles", cycles)
        return cycles


def make_request_builder(center: GeoPoint, radius_km: float, fields: str, location_type: str):
    """Bind the static request inputs into a per-cycle params builder."""
    def build_request() -> Dict[str, str]:
        return build_params(center, radius_km, fields=fields, location_type=location_type)
    return build_request
