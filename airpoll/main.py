"""
airpoll entry point.

Commands:
  sensors  one-shot fetch, prints the normalized samples as pretty JSON
  influx   continuous poll/publish loop against the time-series sink
  keys     checks the read key against the sensor API

Configuration comes from the environment (a local .env file is loaded
first). SIGINT/SIGTERM stop the publish loop after the in-flight step.
"""

import argparse
import logging
import os
import signal
import sys
import threading
from typing import List, Optional

from dotenv import load_dotenv

from airpoll.config import load_sensor_settings, load_sink_settings
from airpoll.errors import AirPollError
from airpoll.ingestion.normalizer import samples_json
from airpoll.ingestion.sensor_client import SensorClient
from airpoll.polling.poller import Poller, fetch_samples, make_request_builder
from airpoll.publishing.influx_writer import InfluxWriter

logger = logging.getLogger("airpoll.main")


def _configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [AIRPOLL] %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stdout,
    )


def _sensor_client(args) -> tuple:
    settings = load_sensor_settings(read_key=args.readkey, write_key=args.writekey)
    client = SensorClient(settings.read_key, settings.write_key, base_url=settings.base_url)
    return settings, client


# ── Commands ──────────────────────────────────────────────────────────────────

def cmd_sensors(args) -> int:
    settings, client = _sensor_client(args)
    build_request = make_request_builder(
        settings.center, settings.radius_km, settings.fields, settings.location_type
    )
    with client:
        samples = fetch_samples(client, build_request())
    print(samples_json(samples, indent=4))
    return 0


def cmd_keys(args) -> int:
    _, client = _sensor_client(args)
    with client:
        valid = client.keys_valid()
    print("read key is valid" if valid else "read key is NOT valid")
    return 0 if valid else 1


def cmd_influx(args) -> int:
    settings, client = _sensor_client(args)
    sink = load_sink_settings()
    writer = InfluxWriter(
        sink.host, sink.port, sink.database,
        username=sink.username, password=sink.password,
    )

    stop_event = threading.Event()

    def _shutdown(sig, frame):
        logger.info("Shutdown signal (%s), stopping poller.", sig)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    poller = Poller(
        client=client,
        writer=writer,
        build_request=make_request_builder(
            settings.center, settings.radius_km, settings.fields, settings.location_type
        ),
        measurement=sink.measurement,
        tags=sink.tags,
        stop_event=stop_event,
        success_interval=sink.poll_interval,
    )
    logger.info(
        "Publishing to %s:%d/%s every %.0fs. Press Ctrl+C or send SIGTERM to stop.",
        sink.host, sink.port, sink.database, sink.poll_interval,
    )
    try:
        poller.run()
    finally:
        client.close()
        writer.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="airpoll",
        description="interact with the air-quality sensor API",
    )
    parser.add_argument("-r", "--readkey", help="sensor API read key (overrides PURPLEAIR_READ_KEY)")
    parser.add_argument("-w", "--writekey", help="sensor API write key (overrides PURPLEAIR_WRITE_KEY)")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser(
        "influx", help="get sensors from the sensor API and post to influx"
    ).set_defaults(func=cmd_influx)
    sub.add_parser(
        "sensors", help="get sensors from the sensor API and print JSON"
    ).set_defaults(func=cmd_sensors)
    sub.add_parser(
        "keys", help="check that the read key is accepted by the sensor API"
    ).set_defaults(func=cmd_keys)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    _configure_logging()
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except AirPollError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
