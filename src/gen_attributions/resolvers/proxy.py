"""Go module proxy archive fetcher.

Downloads module zip archives from a GOPROXY-protocol server such as
https://proxy.golang.org.
"""

import asyncio
import logging
import os
from typing import Optional

import aiohttp

from gen_attributions.errors import DownloadError
from gen_attributions.models import ModuleVersion
from gen_attributions.resolvers.http import HttpFetcher

logger = logging.getLogger(__name__)

DEFAULT_PROXY = "https://proxy.golang.org"

# Responses worth retrying: rate limiting and transient server errors
RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


def escape_module_path(value: str) -> str:
    """Apply the module proxy case encoding to a path or version.

    Every upper-case letter is replaced by an exclamation mark followed by
    the lower-case letter, e.g. "github.com/BurntSushi/toml" becomes
    "github.com/!burnt!sushi/toml".
    """
    return "".join(f"!{c.lower()}" if c.isupper() else c for c in value)


def proxy_from_env(value: Optional[str] = None) -> str:
    """Return the first usable proxy URL of a GOPROXY setting.

    Args:
        value: GOPROXY value; read from the environment when None.

    Returns:
        The first entry that is neither "direct" nor "off", or the default
        proxy when there is none.
    """
    if value is None:
        value = os.environ.get("GOPROXY", "")

    for entry in value.replace("|", ",").split(","):
        entry = entry.strip()
        if entry and entry not in ("direct", "off"):
            return entry.rstrip("/")

    return DEFAULT_PROXY


class ModuleProxyFetcher(HttpFetcher):
    """Fetches module archives through the module proxy protocol.

    Attributes:
        proxy_url: Base URL of the module proxy.
        max_retries: Attempts made after a retryable response.
        backoff: Base delay in seconds of the exponential backoff.
    """

    def __init__(
        self,
        proxy_url: str = DEFAULT_PROXY,
        timeout: float = 60.0,
        max_retries: int = 3,
        backoff: float = 1.0,
    ) -> None:
        """Initialize the fetcher.

        Args:
            proxy_url: Base URL of the module proxy.
            timeout: Total timeout in seconds for a single download.
            max_retries: Maximum number of retries for retryable responses.
            backoff: Base delay of the exponential backoff (1s, 2s, 4s...).
        """
        super().__init__(timeout=timeout)
        self.proxy_url = proxy_url.rstrip("/")
        self.max_retries = max_retries
        self.backoff = backoff

    def archive_url(self, version: ModuleVersion) -> str:
        """Return the URL of a module version's zip archive."""
        return (
            f"{self.proxy_url}/{escape_module_path(version.path)}"
            f"/@v/{escape_module_path(version.version)}.zip"
        )

    async def fetch(self, version: ModuleVersion, retry_count: int = 0) -> bytes:
        """Download the zip archive of a module version.

        Args:
            version: Module identity to fetch.
            retry_count: Current retry attempt.

        Returns:
            Raw zip archive bytes.

        Raises:
            DownloadError: On a non-retryable status, on network errors, or
                once retries are exhausted.
        """
        url = self.archive_url(version)
        logger.debug("Downloading %s", url)

        session = await self._get_session()

        try:
            async with session.get(url) as response:
                if response.status in RETRY_STATUSES:
                    if retry_count >= self.max_retries:
                        raise DownloadError(
                            f"proxy returned status {response.status} after "
                            f"{retry_count} retries",
                            version,
                        )
                    wait_time = self._retry_delay(response, retry_count)
                    logger.debug(
                        "Proxy returned %d for %s, retrying in %.1fs",
                        response.status,
                        version,
                        wait_time,
                    )
                elif response.status in (404, 410):
                    raise DownloadError("module not found on proxy", version)
                elif response.status != 200:
                    raise DownloadError(
                        f"proxy returned status {response.status}", version
                    )
                else:
                    return await response.read()

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadError(f"network error: {e}", version) from e

        # The response is released before waiting
        await asyncio.sleep(wait_time)
        return await self.fetch(version, retry_count + 1)

    def _retry_delay(self, response: aiohttp.ClientResponse, retry_count: int) -> float:
        retry_after = response.headers.get("Retry-After")
        if retry_after and retry_after.isdigit():
            return float(retry_after)
        return self.backoff * 2**retry_count
