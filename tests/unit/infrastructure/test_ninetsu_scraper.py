"""Tests for NinetsuScraper session bring-up, listing and post resolution."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import respx

from jptv.domain.entities.session import SessionMode
from jptv.domain.entities.video import VideoStreamInfo
from jptv.infrastructure.flaresolverr.models import SolverResponse
from jptv.infrastructure.flaresolverr.session import FlareSolverrSession
from jptv.infrastructure.hoster_resolvers.registry import HosterResolverRegistry
from jptv.infrastructure.scraping.ninetsu import NinetsuScraper

_SITE = "https://9tsu.cc"
_LISTING = "https://9tsu.cc/douga"
_AJAX = "https://9tsu.cc/wp-admin/admin-ajax.php"
_POST = "https://9tsu.cc/douga/sample-post-1/"
_OKRU = "https://ok.ru/videoembed/4837383627467"

_LOAD_MORE_FORM = {
    "action": "load_more",
    "page": "0",
    "template": "html/loop/content",
    "vars[category_name]": "douga",
    "id_playlist": "",
}


def _session(*, available: bool, acquired: bool = True) -> MagicMock:
    session = MagicMock(spec=FlareSolverrSession)
    session.configure = AsyncMock(return_value=available)
    session.acquire_cookies = AsyncMock(return_value=acquired)
    session.get = AsyncMock(return_value=None)
    session.post = AsyncMock(return_value=None)
    session.last_error = None
    return session


def _resolvers(result: VideoStreamInfo | None = None) -> MagicMock:
    registry = MagicMock(spec=HosterResolverRegistry)
    registry.resolve = AsyncMock(return_value=result)
    return registry


def _page(html: str, url: str = _POST) -> SolverResponse:
    return SolverResponse.direct(url, 200, html, "Mozilla/5.0 Test")


class TestUrls:
    def test_base_and_ajax(self) -> None:
        scraper = NinetsuScraper(_session(available=False), _resolvers())
        assert scraper.base_url == _LISTING
        assert scraper.ajax_url == _AJAX
        assert scraper.mode is SessionMode.UNINITIALIZED

    def test_trailing_slash_and_category(self) -> None:
        scraper = NinetsuScraper(
            _session(available=False),
            _resolvers(),
            site_url="https://mirror.9tsu.cc/",
            category="anime",
        )
        assert scraper.base_url == "https://mirror.9tsu.cc/anime"
        assert scraper.ajax_url == "https://mirror.9tsu.cc/wp-admin/admin-ajax.php"


class TestSessionBringUp:
    @pytest.mark.asyncio
    async def test_solver_mode(self) -> None:
        session = _session(available=True)
        scraper = NinetsuScraper(session, _resolvers())

        assert await scraper.ensure_session() is SessionMode.SOLVER
        session.acquire_cookies.assert_awaited_once_with(_SITE)
        await scraper.aclose()

    @pytest.mark.asyncio
    async def test_solver_mode_when_cookie_prefetch_fails(self) -> None:
        session = _session(available=True, acquired=False)
        scraper = NinetsuScraper(session, _resolvers())

        assert await scraper.ensure_session() is SessionMode.SOLVER
        await scraper.aclose()

    @respx.mock
    @pytest.mark.asyncio
    async def test_direct_mode(self) -> None:
        respx.get(_LISTING).respond(200, text="<html>listing</html>")
        scraper = NinetsuScraper(_session(available=False), _resolvers())

        assert await scraper.ensure_session() is SessionMode.DIRECT
        await scraper.aclose()

    @respx.mock
    @pytest.mark.asyncio
    async def test_challenge_means_degraded(self) -> None:
        route = respx.get(_LISTING).respond(
            200, text="<title>Just a moment...</title>"
        )
        scraper = NinetsuScraper(_session(available=False), _resolvers())

        assert await scraper.ensure_session() is SessionMode.DEGRADED
        assert await scraper.ensure_session() is SessionMode.DEGRADED
        assert route.call_count == 1
        await scraper.aclose()

    @respx.mock
    @pytest.mark.asyncio
    async def test_forbidden_means_degraded(self) -> None:
        respx.get(_LISTING).respond(403, text="denied")
        scraper = NinetsuScraper(_session(available=False), _resolvers())

        assert await scraper.ensure_session() is SessionMode.DEGRADED
        await scraper.aclose()

    @respx.mock
    @pytest.mark.asyncio
    async def test_unreachable_means_degraded(self) -> None:
        respx.get(_LISTING).mock(side_effect=httpx.ConnectError("dns"))
        scraper = NinetsuScraper(_session(available=False), _resolvers())

        assert await scraper.ensure_session() is SessionMode.DEGRADED
        await scraper.aclose()

    @pytest.mark.asyncio
    async def test_concurrent_callers_bring_up_once(self) -> None:
        session = _session(available=True)
        scraper = NinetsuScraper(session, _resolvers())

        modes = await asyncio.gather(*(scraper.ensure_session() for _ in range(4)))

        assert modes == [SessionMode.SOLVER] * 4
        session.configure.assert_awaited_once()
        await scraper.aclose()


class TestGetVideos:
    @pytest.mark.asyncio
    async def test_solver_mode_posts_load_more(self, listing_html: str) -> None:
        session = _session(available=True)
        session.post = AsyncMock(return_value=_page(listing_html, _AJAX))
        scraper = NinetsuScraper(session, _resolvers())

        posts = await scraper.get_videos(1)

        assert [p.id for p in posts] == ["sample-post-1", "second-post"]
        session.post.assert_awaited_once_with(_AJAX, _LOAD_MORE_FORM, max_timeout=60000)
        await scraper.aclose()

    @pytest.mark.asyncio
    async def test_page_is_zero_based_on_the_wire(self) -> None:
        session = _session(available=True)
        session.post = AsyncMock(return_value=_page("", _AJAX))
        scraper = NinetsuScraper(session, _resolvers())

        assert await scraper.get_videos(3) == []
        assert session.post.await_args.args[1]["page"] == "2"
        await scraper.aclose()

    @pytest.mark.asyncio
    async def test_solver_failure_returns_empty(self) -> None:
        session = _session(available=True)
        scraper = NinetsuScraper(session, _resolvers())

        assert await scraper.get_videos(1) == []
        await scraper.aclose()

    @respx.mock
    @pytest.mark.asyncio
    async def test_direct_mode_ajax_form(self, listing_html: str) -> None:
        respx.get(_LISTING).respond(200, text="<html>listing</html>")
        route = respx.post(_AJAX).respond(200, text=listing_html)
        scraper = NinetsuScraper(_session(available=False), _resolvers())

        posts = await scraper.get_videos(1)

        assert len(posts) == 2
        sent = route.calls.last.request
        body = sent.content.decode()
        assert "action=load_more" in body
        assert "page=0" in body
        assert "vars%5Bcategory_name%5D=douga" in body
        assert sent.headers["X-Requested-With"] == "XMLHttpRequest"
        assert sent.headers["Origin"] == _SITE
        assert sent.headers["Referer"] == _SITE
        assert "Mobile" in sent.headers["User-Agent"]
        await scraper.aclose()

    @respx.mock
    @pytest.mark.asyncio
    async def test_direct_mode_http_error_returns_empty(self) -> None:
        respx.get(_LISTING).respond(200, text="<html>listing</html>")
        respx.post(_AJAX).respond(500, text="error")
        scraper = NinetsuScraper(_session(available=False), _resolvers())

        assert await scraper.get_videos(1) == []
        await scraper.aclose()

    @respx.mock
    @pytest.mark.asyncio
    async def test_degraded_returns_empty_without_requests(self) -> None:
        probe = respx.get(_LISTING).respond(200, text="<div class='cf-spinner'></div>")
        scraper = NinetsuScraper(_session(available=False), _resolvers())

        assert await scraper.get_videos(1) == []
        assert await scraper.get_videos(2) == []
        assert probe.call_count == 1
        await scraper.aclose()


class TestResolvePost:
    @pytest.mark.asyncio
    async def test_iframe_embed(self) -> None:
        session = _session(available=True)
        session.get = AsyncMock(
            return_value=_page(f'<div id="player-embed"><iframe src="{_OKRU}"></iframe></div>')
        )
        resolved = VideoStreamInfo(
            iframe_url=_OKRU, direct_url="https://vd.okcdn.ru/video.mp4", host="ok.ru"
        )
        resolvers = _resolvers(resolved)
        scraper = NinetsuScraper(session, resolvers)

        assert await scraper.extract_video_url(_POST) == "https://vd.okcdn.ru/video.mp4"
        session.get.assert_awaited_once_with(_POST, max_timeout=60000)
        resolvers.resolve.assert_awaited_once_with(_OKRU)
        await scraper.aclose()

    @pytest.mark.asyncio
    async def test_ajax_iframe_embed(self) -> None:
        session = _session(available=True)
        session.get = AsyncMock(
            return_value=_page(
                "<script>var postId = 48213;"
                " var data = { action: 'load_video_iframe', _wpnonce: '3f9a1c2b7e' };</script>"
            )
        )
        session.post = AsyncMock(
            return_value=_page(f'<iframe src="{_OKRU}"></iframe>', _AJAX)
        )
        resolvers = _resolvers(VideoStreamInfo.passthrough(_OKRU, "ok.ru", "timeout"))
        scraper = NinetsuScraper(session, resolvers)

        info = await scraper.resolve_post(_POST)

        assert info is not None and info.error == "timeout"
        session.post.assert_awaited_once_with(
            _AJAX,
            {"action": "load_video_iframe", "post_id": "48213", "_wpnonce": "3f9a1c2b7e"},
            max_timeout=30000,
        )
        resolvers.resolve.assert_awaited_once_with(_OKRU)
        await scraper.aclose()

    @pytest.mark.asyncio
    async def test_no_embed(self) -> None:
        session = _session(available=True)
        session.get = AsyncMock(return_value=_page("<p>article text only</p>"))
        resolvers = _resolvers()
        scraper = NinetsuScraper(session, resolvers)

        assert await scraper.extract_video_url(_POST) is None
        resolvers.resolve.assert_not_awaited()
        session.post.assert_not_awaited()
        await scraper.aclose()

    @pytest.mark.asyncio
    async def test_page_fetch_failure(self) -> None:
        session = _session(available=True)
        resolvers = _resolvers()
        scraper = NinetsuScraper(session, resolvers)

        assert await scraper.resolve_post(_POST) is None
        resolvers.resolve.assert_not_awaited()
        await scraper.aclose()

    @respx.mock
    @pytest.mark.asyncio
    async def test_direct_mode_script_embed(self) -> None:
        respx.get(_LISTING).respond(200, text="<html>listing</html>")
        respx.get(_POST).respond(
            200, text="<script>player.src='//ok.ru/videoembed/4837383627467';</script>"
        )
        resolvers = _resolvers(VideoStreamInfo.passthrough(_OKRU, "ok.ru"))
        scraper = NinetsuScraper(_session(available=False), resolvers)

        info = await scraper.resolve_post(_POST)

        assert info is not None
        resolvers.resolve.assert_awaited_once_with(_OKRU)
        await scraper.aclose()

    @respx.mock
    @pytest.mark.asyncio
    async def test_direct_mode_http_error(self) -> None:
        respx.get(_LISTING).respond(200, text="<html>listing</html>")
        respx.get(_POST).respond(404, text="gone")
        resolvers = _resolvers()
        scraper = NinetsuScraper(_session(available=False), resolvers)

        assert await scraper.resolve_post(_POST) is None
        resolvers.resolve.assert_not_awaited()
        await scraper.aclose()

    @respx.mock
    @pytest.mark.asyncio
    async def test_degraded_returns_none(self) -> None:
        respx.get(_LISTING).respond(403, text="blocked")
        resolvers = _resolvers()
        scraper = NinetsuScraper(_session(available=False), resolvers)

        assert await scraper.extract_video_url(_POST) is None
        resolvers.resolve.assert_not_awaited()
        await scraper.aclose()
