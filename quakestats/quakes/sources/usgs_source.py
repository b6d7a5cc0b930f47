from __future__ import annotations
from dataclasses import dataclass, field
import logging

import httpx

from ..errors import FeedUnavailable
from ..settings import DEFAULT_FEED_URL

logger = logging.getLogger(__name__)


@dataclass
class USGSFeedSource:
    """USGS earthquake summary feed (CSV).

    One GET per run, no retries; a failed poll is picked up by the next scheduled run.
    """

    name: str = "usgs"
    url: str = DEFAULT_FEED_URL
    timeout: float = 20.0
    headers: dict = field(default_factory=lambda: {"Accept": "text/csv"})

    def fetch(self) -> bytes:
        try:
            with httpx.Client(timeout=self.timeout, headers=self.headers) as client:
                resp = client.get(self.url)
        except httpx.RequestError as e:
            raise FeedUnavailable(f"Network error fetching {self.url}: {e}") from e
        status = resp.status_code
        if not 200 <= status < 300:
            raise FeedUnavailable(f"Feed {self.url} returned HTTP {status}", status=status)
        body = resp.content
        logger.info(f"Fetched {len(body)} bytes from {self.name} feed")
        return body
