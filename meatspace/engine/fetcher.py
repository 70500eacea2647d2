"""HTTP fetching of remote feeds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

import httpx
import structlog

from ..config import FetchConfig
from ..errors import FetchError


@dataclass(slots=True)
class FetchResponse:
    """Standardised response wrapper."""

    url: str
    status_code: int
    text: str
    headers: Dict[str, str]
    raw: httpx.Response | None = field(repr=False, default=None)


class Fetcher:
    """Retrieve a URL body; any transport failure or non-2xx status is a ``FetchError``."""

    def __init__(
        self,
        config: FetchConfig | None = None,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config or FetchConfig()
        self.logger = logger or structlog.get_logger("meatspace.fetcher")
        self._client = httpx.Client(
            follow_redirects=self.config.follow_redirects,
            timeout=self.config.timeout,
            headers={
                "User-Agent": self.config.user_agent,
                "Accept": "application/json",
            },
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def fetch(self, url: str) -> FetchResponse:
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            self.logger.warning("fetch_error", url=url, error=str(exc))
            raise FetchError(url, str(exc) or exc.__class__.__name__) from exc
        if self._is_failure(response):
            self.logger.warning("fetch_bad_status", url=url, status=response.status_code)
            raise FetchError(
                url, f"Unexpected status {response.status_code}", status_code=response.status_code
            )
        self.logger.debug("fetch_ok", url=url, status=response.status_code)
        return FetchResponse(
            url=str(response.url),
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
            raw=response,
        )

    @staticmethod
    def _is_failure(response: httpx.Response) -> bool:
        return not 200 <= response.status_code < 300


__all__ = ["Fetcher", "FetchResponse"]
