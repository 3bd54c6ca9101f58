"""
HTTP client for the playlist file.

One GET per refresh. Transport, status and decoding failures are raised as
PlaylistFetchError subclasses; retrying is left to the scheduler.
"""

import logging
import time
from typing import Optional

import httpx

from . import config
from .exceptions import PlaylistDecodeError, PlaylistHTTPError, categorize_fetch_error

logger = logging.getLogger(config.APP_NAME + ".playlist_client")


class PlaylistClient:
    """
    Fetches the playlist text over HTTP(S).

    Args:
        url: Playlist URL. None uses the configured URL.
        timeout: Request timeout in seconds. None uses the configured timeout.
        client: Optional pre-built ``httpx.AsyncClient`` (its lifecycle then
            belongs to the caller).
    """

    CACHE_BUST_PARAM = "t"

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url or config.get_playlist_url()
        self.timeout = timeout if timeout is not None else config.get_fetch_timeout()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": config.get_user_agent()},
        )

    async def fetch(self, force: bool = False) -> str:
        """
        GET the playlist and return its body.

        Args:
            force: Append a cache-busting parameter and ask intermediaries not
                to serve a cached copy.

        Raises:
            PlaylistFetchError: On any transport, HTTP status or decode failure
        """
        headers = {}
        logger.debug(f"Fetching playlist from {self.url} (force={force})")
        try:
            # The configured URL's own query string is kept; the cache buster is merged in
            url = httpx.URL(self.url)
            if force:
                url = url.copy_merge_params(
                    {self.CACHE_BUST_PARAM: str(int(time.time() * 1000))}
                )
                headers["Cache-Control"] = "no-cache"
            response = await self._client.get(url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise PlaylistHTTPError(
                f"HTTP error! status: {status}", url=self.url, status_code=status
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            raise categorize_fetch_error(e, url=self.url) from e

        try:
            body = response.content.decode(response.encoding or "utf-8")
        except (UnicodeDecodeError, LookupError) as e:
            raise PlaylistDecodeError(
                f"Playlist body could not be decoded: {e}", url=self.url
            ) from e

        logger.debug(f"Playlist received, {len(body)} characters")
        return body

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
