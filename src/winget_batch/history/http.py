"""Shared aiohttp session handling for history sources."""

import logging
from typing import Optional

import aiohttp

from winget_batch import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f"winget-batch/{__version__}"


class HttpSource:
    """Owns one lazily created aiohttp session.

    The session is opened on the first request and reused until ``close``.
    Sources can also be used as async context managers.

    Attributes:
        timeout: Total timeout in seconds for each request.
    """

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def session_open(self) -> bool:
        return self._session is not None and not self._session.closed

    async def _get_session(self) -> aiohttp.ClientSession:
        if not self.session_open:
            self._session = self._create_session()
        return self._session

    def _create_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={"User-Agent": USER_AGENT},
        )

    async def close(self) -> None:
        """Close the session if one was opened."""
        if self.session_open:
            logger.debug("Closing HTTP session")
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HttpSource":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
