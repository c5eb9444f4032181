"""Tests for HosterResolverRegistry."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from jptv.domain.entities.video import VideoStreamInfo
from jptv.domain.exceptions import ResolutionError
from jptv.domain.ports.hoster_resolver import HosterResolverPort
from jptv.infrastructure.hoster_resolvers import (
    ChannelFetcher,
    HosterResolverRegistry,
    default_resolvers,
    extract_hostname,
)


def _resolver(name: str, fragment: str, result: VideoStreamInfo | None = None) -> MagicMock:
    resolver = MagicMock()
    resolver.name = name
    resolver.matches = lambda hostname: fragment in hostname
    resolver.resolve = AsyncMock(
        return_value=result
        or VideoStreamInfo(iframe_url="in", direct_url="https://cdn/v.mp4", host=name)
    )
    return resolver


class TestExtractHostname:
    def test_lowercases(self) -> None:
        assert extract_hostname("https://WWW.OK.RU/videoembed/1") == "www.ok.ru"

    def test_no_hostname(self) -> None:
        assert extract_hostname("not-a-url") == ""

    def test_empty(self) -> None:
        assert extract_hostname("") == ""


class TestDefaultResolvers:
    def test_dispatch_order(self) -> None:
        fetcher = ChannelFetcher(httpx.AsyncClient())
        names = [r.name for r in default_resolvers(fetcher)]
        assert names == [
            "ok.ru",
            "dailymotion",
            "youtube",
            "vimeo",
            "streamtape",
            "doodstream",
            "mixdrop",
        ]

    def test_all_satisfy_port(self) -> None:
        fetcher = ChannelFetcher(httpx.AsyncClient())
        for resolver in default_resolvers(fetcher):
            assert isinstance(resolver, HosterResolverPort)


class TestHosterResolverRegistry:
    def test_register_and_list(self) -> None:
        registry = HosterResolverRegistry(resolvers=[_resolver("ok.ru", "ok.ru")])
        assert registry.supported_hosters == ["ok.ru"]

    @pytest.mark.asyncio
    async def test_empty_input_is_none(self) -> None:
        registry = HosterResolverRegistry()
        assert await registry.resolve("") is None

    @pytest.mark.asyncio
    async def test_url_without_hostname(self) -> None:
        registry = HosterResolverRegistry()
        result = await registry.resolve("garbage")
        assert result is not None
        assert result.direct_url == "garbage"
        assert result.error is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url",
        [
            "https://OK.RU/videoembed/123",
            "https://ok.ru/videoembed/123",
            "https://www.ok.ru/videoembed/123",
        ],
    )
    async def test_case_insensitive_substring_dispatch(self, url: str) -> None:
        okru = _resolver("ok.ru", "ok.ru")
        other = _resolver("vimeo", "vimeo")
        registry = HosterResolverRegistry(resolvers=[other, okru])

        await registry.resolve(url)

        okru.resolve.assert_awaited_once_with(url)
        other.resolve.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_first_registered_wins(self) -> None:
        first = _resolver("youtube", "youtu")
        second = _resolver("youtu.be", "youtu.be")
        registry = HosterResolverRegistry(resolvers=[first, second])

        await registry.resolve("https://youtu.be/dQw4w9WgXcQ")

        first.resolve.assert_awaited_once()
        second.resolve.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_host_passthrough(self) -> None:
        registry = HosterResolverRegistry(resolvers=[_resolver("ok.ru", "ok.ru")])
        url = "https://Vidoza.net/embed-abc.html"

        result = await registry.resolve(url)

        assert result is not None
        assert result.direct_url == result.iframe_url == url
        assert result.host == "vidoza.net"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_returns_resolver_result(self) -> None:
        expected = VideoStreamInfo(
            iframe_url="https://vimeo.com/1", direct_url="https://cdn/1.mp4", host="vimeo"
        )
        registry = HosterResolverRegistry(resolvers=[_resolver("vimeo", "vimeo", expected)])
        assert await registry.resolve("https://vimeo.com/1") is expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("exc", "error"),
        [
            (httpx.ReadTimeout("slow"), "timeout"),
            (httpx.ConnectError("refused"), "refused"),
            (
                httpx.HTTPStatusError(
                    "gone",
                    request=httpx.Request("GET", "https://mixdrop.ag/e/1"),
                    response=httpx.Response(410),
                ),
                "HTTP 410",
            ),
            (json.JSONDecodeError("Expecting value", "", 0), "Expecting value"),
            (ResolutionError("no qualities"), "no qualities"),
            (KeyError("files"), "'files'"),
        ],
    )
    async def test_failures_become_passthrough(
        self, exc: Exception, error: str
    ) -> None:
        resolver = _resolver("mixdrop", "mixdrop")
        resolver.resolve = AsyncMock(side_effect=exc)
        registry = HosterResolverRegistry(resolvers=[resolver])
        url = "https://mixdrop.ag/e/1"

        result = await registry.resolve(url)

        assert result is not None
        assert result.direct_url == url
        assert result.host == "mixdrop"
        assert result.error is not None
        assert error in result.error
