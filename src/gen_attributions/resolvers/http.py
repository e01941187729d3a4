from typing import Optional

import aiohttp

from gen_attributions.resolvers.base import ArchiveFetcher


class HttpFetcher(ArchiveFetcher):
    """Base class for fetchers that make HTTP requests.

    Manages a shared aiohttp.ClientSession for connection pooling and reuse.
    """

    def __init__(self, timeout: float = 60.0) -> None:
        """Initialize the HttpFetcher.

        Args:
            timeout: Total timeout in seconds for a single request.
        """
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session.

        Returns:
            The shared aiohttp ClientSession.
        """
        if self._session is None or self._session.closed:
            self._session = self._create_session()
        return self._session

    def _create_session(self) -> aiohttp.ClientSession:
        """Create a new aiohttp.ClientSession.

        Subclasses can override this to provide custom session configuration.

        Returns:
            A new aiohttp.ClientSession instance.
        """
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )

    async def close(self) -> None:
        """Close the aiohttp session.

        Should be called when done using the fetcher to release resources.
        """
        if self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "HttpFetcher":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
