"""Tests for the module proxy fetcher."""

from typing import AsyncGenerator

import aiohttp
import pytest
from aioresponses import aioresponses

from gen_attributions.errors import DownloadError
from gen_attributions.models import ModuleVersion
from gen_attributions.resolvers.proxy import (
    DEFAULT_PROXY,
    ModuleProxyFetcher,
    escape_module_path,
    proxy_from_env,
)

TOML = ModuleVersion("github.com/BurntSushi/toml", "v1.3.2")
TOML_URL = "https://proxy.example.com/github.com/!burnt!sushi/toml/@v/v1.3.2.zip"


@pytest.fixture
async def fetcher() -> AsyncGenerator[ModuleProxyFetcher, None]:
    """Return a fetcher against a test proxy, without backoff delays."""
    fetcher = ModuleProxyFetcher(
        proxy_url="https://proxy.example.com/", max_retries=2, backoff=0
    )
    yield fetcher
    await fetcher.close()


def test_escape_module_path() -> None:
    """Test the proxy case encoding of upper-case letters."""
    assert escape_module_path("github.com/BurntSushi/toml") == (
        "github.com/!burnt!sushi/toml"
    )
    assert escape_module_path("golang.org/x/sys") == "golang.org/x/sys"
    assert escape_module_path("v1.0.0-RC1") == "v1.0.0-!r!c1"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("", DEFAULT_PROXY),
        ("direct", DEFAULT_PROXY),
        ("off", DEFAULT_PROXY),
        ("https://goproxy.io,direct", "https://goproxy.io"),
        ("direct|https://corp.example.com/", "https://corp.example.com"),
    ],
)
def test_proxy_from_env_value(value: str, expected: str) -> None:
    """Test selecting the first usable GOPROXY entry."""
    assert proxy_from_env(value) == expected


def test_proxy_from_env_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("GOPROXY", "https://goproxy.cn,direct")
    assert proxy_from_env() == "https://goproxy.cn"

    monkeypatch.delenv("GOPROXY")
    assert proxy_from_env() == DEFAULT_PROXY


class TestModuleProxyFetcher:
    """Test suite for ModuleProxyFetcher."""

    def test_archive_url(self, fetcher: ModuleProxyFetcher) -> None:
        """Test that URLs are built with the trailing slash removed."""
        assert fetcher.archive_url(TOML) == TOML_URL

    @pytest.mark.asyncio
    async def test_fetch_successful(self, fetcher: ModuleProxyFetcher) -> None:
        with aioresponses() as m:
            m.get(TOML_URL, status=200, body=b"PK archive")

            data = await fetcher.fetch(TOML)

        assert data == b"PK archive"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 410])
    async def test_fetch_not_found(
        self, fetcher: ModuleProxyFetcher, status: int
    ) -> None:
        """Test that missing modules raise DownloadError naming the module."""
        with aioresponses() as m:
            m.get(TOML_URL, status=status)

            with pytest.raises(DownloadError, match="not found on proxy") as exc:
                await fetcher.fetch(TOML)

        assert exc.value.module == TOML

    @pytest.mark.asyncio
    async def test_fetch_unexpected_status(self, fetcher: ModuleProxyFetcher) -> None:
        with aioresponses() as m:
            m.get(TOML_URL, status=403)

            with pytest.raises(DownloadError, match="status 403"):
                await fetcher.fetch(TOML)

    @pytest.mark.asyncio
    async def test_fetch_retries_transient_errors(
        self, fetcher: ModuleProxyFetcher
    ) -> None:
        """Test that retryable statuses are retried until success."""
        with aioresponses() as m:
            m.get(TOML_URL, status=503)
            m.get(TOML_URL, status=429, headers={"Retry-After": "0"})
            m.get(TOML_URL, status=200, body=b"PK archive")

            data = await fetcher.fetch(TOML)

        assert data == b"PK archive"

    @pytest.mark.asyncio
    async def test_fetch_releases_response_before_backoff(self, mocker) -> None:
        """Test exponential backoff delays, each awaited after the response is released."""
        release = mocker.spy(aiohttp.ClientResponse, "release")
        waits: list[tuple[float, int]] = []

        async def record_sleep(delay: float, *args, **kwargs) -> None:
            if delay > 0:
                waits.append((delay, release.call_count))

        mocker.patch(
            "gen_attributions.resolvers.proxy.asyncio.sleep", side_effect=record_sleep
        )

        async with ModuleProxyFetcher(
            proxy_url="https://proxy.example.com", max_retries=3, backoff=1.0
        ) as fetcher:
            with aioresponses() as m:
                m.get(TOML_URL, status=503)
                m.get(TOML_URL, status=500)
                m.get(TOML_URL, status=200, body=b"PK archive")

                data = await fetcher.fetch(TOML)

        assert data == b"PK archive"
        assert [delay for delay, _ in waits] == [1.0, 2.0]
        assert waits[0][1] >= 1
        assert waits[1][1] >= 2

    @pytest.mark.asyncio
    async def test_fetch_retries_exhausted(self, fetcher: ModuleProxyFetcher) -> None:
        with aioresponses() as m:
            for _ in range(3):
                m.get(TOML_URL, status=502)

            with pytest.raises(DownloadError, match="after 2 retries"):
                await fetcher.fetch(TOML)

    @pytest.mark.asyncio
    async def test_fetch_network_error(self, fetcher: ModuleProxyFetcher) -> None:
        """Test that connection failures become DownloadError."""
        with aioresponses() as m:
            m.get(TOML_URL, exception=aiohttp.ClientConnectionError("refused"))

            with pytest.raises(DownloadError, match="network error"):
                await fetcher.fetch(TOML)

    @pytest.mark.asyncio
    async def test_context_manager_closes_session(self) -> None:
        async with ModuleProxyFetcher() as fetcher:
            session = await fetcher._get_session()
            assert not session.closed

        assert session.closed
