"""
airpoll: Air-Quality Telemetry Poller.

Components:
    - geo: bounding-box derivation from a center point and radius
    - ingestion: request-parameter validation, sensor API client, matrix normalizer
    - rules: PM2.5 to AQI conversion
    - publishing: line protocol encoder and time-series sink writer
    - polling: resilient poll/publish loop with adaptive backoff
"""

__version__ = "1.0.0"
