"""
Time-series sink writer.

POSTs encoded lines to an InfluxDB 1.x style `/write?db=<database>`
endpoint, one request per line. Delivery is best effort: the first failed
POST aborts the rest of the batch and nothing is retried here.
"""

import logging
from typing import Dict, Iterable, Optional

import httpx

from airpoll.errors import PublishError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 2  # seconds


class InfluxWriter:
    """Line-protocol writer for a single database."""

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        username: str = "",
        password: str = "",
        timeout: float = REQUEST_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ):
        self.host = host
        self.port = port
        self.database = database
        self.username = username
        self.password = password
        self._http = http_client or httpx.Client(timeout=timeout)

    @property
    def write_url(self) -> str:
        return f"http://{self.host}:{self.port}/write"

    def _query(self) -> Dict[str, str]:
        query = {"db": self.database}
        if self.username:
            query["u"] = self.username
            query["p"] = self.password
        return query

    def close(self) -> None:
        self._http.close()

    def write_line(self, line: str) -> None:
        """
        Deliver one line.

        Raises:
            PublishError: On transport failure or an HTTP error status.
        """
        try:
            resp = self._http.post(self.write_url, params=self._query(), content=line.encode("utf-8"))
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error("Sink write timed out (%s:%s)", self.host, self.port)
            raise PublishError(f"timeout writing to {self.host}:{self.port}") from e
        except httpx.HTTPStatusError as e:
            logger.error("Sink HTTP error %s: %s", e.response.status_code, e.response.text.strip())
            raise PublishError(f"sink returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error("Sink network error (%s:%s): %s", self.host, self.port, e)
            raise PublishError(f"error writing to {self.host}:{self.port}: {e}") from e

    def publish(self, lines: Iterable[str]) -> int:
        """
        Deliver lines in order, stopping at the first failure.

        Returns:
            Number of lines written.

        Raises:
            PublishError: From the first line that could not be written.
        """
        written = 0
        for line in lines:
            self.write_line(line)
            written += 1
        logger.info("Published %d lines to %s/%s", written, self.write_url, self.database)
        return written
