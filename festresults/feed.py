from __future__ import annotations

import logging
from typing import Optional

import httpx

from .decode import decode_bytes
from .errors import EmptyFeedError, FetchError

logger = logging.getLogger(__name__)


class FeedClient:
    """Fetches the raw results CSV from the sheet's web-app URL."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def fetch(self) -> str:
        if not self.url:
            raise FetchError("No feed URL configured.")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport, follow_redirects=True
            ) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                raw = response.content
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise FetchError(f"HTTP error! Status: {status}", status_code=status) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Feed unreachable: {exc}") from exc

        if not raw:
            raise EmptyFeedError()

        logger.debug("Fetched %d bytes from feed", len(raw))
        return decode_bytes(raw)
