"""HTTP client for the statistics collector.

The collector is a separate service that records endpoint hits and answers
hit counts per URI. Everything that can go wrong on the wire (connection
errors, timeouts, non-2xx answers, malformed bodies) surfaces from this
module as ``UpstreamUnavailable``; callers decide whether that matters.
"""

import logging
from datetime import datetime
from typing import Optional

import httpx
import pydantic

from ewm.core import clock
from ewm.core.config import APP_NAME, STATS_SERVER_URL, STATS_TIMEOUT_SECONDS
from ewm.core.errors import UpstreamUnavailable
from ewm.schemas.common import format_date
from ewm.schemas.stats import EndpointHit, ViewStats

logger = logging.getLogger(__name__)


class StatsClient:
    def __init__(
        self,
        base_url: str = STATS_SERVER_URL,
        app_name: str = APP_NAME,
        timeout: float = STATS_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url
        self.app_name = app_name
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    def hit(self, uri: str, ip: str, timestamp: Optional[datetime] = None) -> None:
        """Record that ``uri`` was requested from ``ip``."""
        payload = EndpointHit(
            app=self.app_name,
            uri=uri,
            ip=ip,
            timestamp=timestamp or clock.utcnow(),
        )
        try:
            with self._client() as client:
                resp = client.post("/hit", json=payload.model_dump(mode="json"))
                resp.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Could not record hit for uri={uri}: {e}") from e

    def get_stats(
        self,
        start: datetime,
        end: datetime,
        uris: list[str],
        unique: bool = False,
    ) -> list[ViewStats]:
        """Query hit counts of ``uris`` between ``start`` and ``end``.

        The answer is sparse: URIs nobody requested may be missing.
        """
        params = {
            "start": format_date(start),
            "end": format_date(end),
            "uris": uris,
            "unique": "true" if unique else "false",
        }
        try:
            with self._client() as client:
                resp = client.get("/stats", params=params)
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Could not query stats: {e}") from e
        except ValueError as e:
            raise UpstreamUnavailable(f"Stats answer is not JSON: {e}") from e

        logger.debug("Stats for %d uris: %s", len(uris), body)
        if not isinstance(body, list):
            raise UpstreamUnavailable(f"Stats answer is not a list: {body!r}")
        try:
            return [ViewStats.model_validate(item) for item in body]
        except pydantic.ValidationError as e:
            raise UpstreamUnavailable(f"Malformed stats answer: {e}") from e


def get_stats_client() -> StatsClient:
    return StatsClient()
