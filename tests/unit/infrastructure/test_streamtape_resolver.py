"""Tests for StreamtapeResolver."""

from __future__ import annotations

import httpx
import pytest
import respx

from jptv.infrastructure.hoster_resolvers._fetch import ChannelFetcher
from jptv.infrastructure.hoster_resolvers.streamtape import (
    StreamtapeResolver,
    decode_robotlink,
)

_URL = "https://streamtape.com/e/abc123"


class TestDecodeRobotlink:
    def test_drops_three_characters_of_second_fragment(self) -> None:
        assert (
            decode_robotlink("//streamtape.example/get", "xxxfile123")
            == "https://streamtape.example/getfile123"
        )


class TestStreamtapeResolver:
    def test_name(self) -> None:
        resolver = StreamtapeResolver(ChannelFetcher(httpx.AsyncClient()))
        assert resolver.name == "streamtape"
        assert resolver.matches("streamtape.com")
        assert not resolver.matches("strtape.cloud")

    @respx.mock
    @pytest.mark.asyncio()
    async def test_concatenation_obfuscation(self) -> None:
        page = (
            "<script>document.getElementById('robotlink').innerHTML = "
            "'//streamtape.example/get'+('xxxfile123');</script>"
        )
        respx.get(_URL).respond(200, text=page)

        async with httpx.AsyncClient() as client:
            result = await StreamtapeResolver(ChannelFetcher(client)).resolve(_URL)

        assert result.direct_url == "https://streamtape.example/getfile123"
        assert result.host == "streamtape"
        assert result.error is None

    @respx.mock
    @pytest.mark.asyncio()
    async def test_spaced_concatenation(self) -> None:
        page = (
            "document.getElementById('robotlink').innerHTML = "
            "'//streamtape.com/get_video?id=abc&expires=1&ip=x' + ('zzz&token=t0k');"
        )
        respx.get(_URL).respond(200, text=page)

        async with httpx.AsyncClient() as client:
            result = await StreamtapeResolver(ChannelFetcher(client)).resolve(_URL)

        assert result.direct_url == (
            "https://streamtape.com/get_video?id=abc&expires=1&ip=x&token=t0k"
        )

    @respx.mock
    @pytest.mark.asyncio()
    async def test_missing_robotlink_degrades(self) -> None:
        respx.get(_URL).respond(200, text="<html>Video not found</html>")

        async with httpx.AsyncClient() as client:
            result = await StreamtapeResolver(ChannelFetcher(client)).resolve(_URL)

        assert result.direct_url == _URL
        assert result.error == "robotlink not found"
