"""9tsu.cc listing scraper.

The site sits behind Cloudflare.  On first use the scraper decides once
how to talk to it:

- ``SOLVER``: FlareSolverr is reachable; requests go through the bypass
  session (which upgrades itself to cookie-carrying direct requests).
- ``DIRECT``: no solver, but the site answers a plain mobile browser.
- ``DEGRADED``: blocked and no solver; listings are empty and posts
  cannot be resolved.  Nothing is retried for the process lifetime.

Listings come from the WordPress ``load_more`` AJAX action; a post's
player comes from its page (inline script or iframe) or from the
``load_video_iframe`` action.
"""

from __future__ import annotations

import asyncio
from typing import Mapping

import httpx
import structlog

from jptv.domain.entities.session import SessionMode
from jptv.domain.entities.video import VideoPost, VideoStreamInfo
from jptv.domain.ports.embed_strategy import EmbedStrategyPort
from jptv.infrastructure.common.cloudflare import is_challenge_page
from jptv.infrastructure.common.constants import (
    AJAX_HEADERS,
    BROWSER_ACCEPT,
    DEFAULT_ACCEPT_LANGUAGE,
)
from jptv.infrastructure.flaresolverr.session import FlareSolverrSession
from jptv.infrastructure.hoster_resolvers.registry import HosterResolverRegistry

from .embed_strategies import (
    AjaxIframeStrategy,
    IframeEmbedStrategy,
    ScriptEmbedStrategy,
    first_embed,
)
from .listing_parser import parse_articles

log = structlog.get_logger(__name__)

DEFAULT_SITE_URL = "https://9tsu.cc"
DEFAULT_CATEGORY = "douga"
MOBILE_USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)

_AJAX_PATH = "/wp-admin/admin-ajax.php"
_LISTING_TEMPLATE = "html/loop/content"
_IFRAME_MAX_TIMEOUT_MS = 30_000


class NinetsuScraper:
    """Lists posts of one category and resolves a post to a playable URL."""

    def __init__(
        self,
        session: FlareSolverrSession,
        resolvers: HosterResolverRegistry,
        *,
        site_url: str = DEFAULT_SITE_URL,
        category: str = DEFAULT_CATEGORY,
        http_client: httpx.AsyncClient | None = None,
        user_agent: str = MOBILE_USER_AGENT,
        accept_language: str = DEFAULT_ACCEPT_LANGUAGE,
        timeout: float = 30.0,
        max_timeout_ms: int = 60_000,
    ) -> None:
        self._session = session
        self._resolvers = resolvers
        self._site_url = site_url.rstrip("/")
        self._category = category
        self._max_timeout = max_timeout_ms
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            headers={
                "User-Agent": user_agent,
                "Accept": BROWSER_ACCEPT,
                "Accept-Language": accept_language,
                "Referer": self._site_url,
            },
            timeout=timeout,
            follow_redirects=True,
        )
        self._mode = SessionMode.UNINITIALIZED
        self._init_lock = asyncio.Lock()
        self._strategies: list[EmbedStrategyPort] = [
            ScriptEmbedStrategy(),
            IframeEmbedStrategy(),
            AjaxIframeStrategy(self._post_iframe_form),
        ]

    @property
    def base_url(self) -> str:
        return f"{self._site_url}/{self._category}"

    @property
    def ajax_url(self) -> str:
        return f"{self._site_url}{_AJAX_PATH}"

    @property
    def mode(self) -> SessionMode:
        return self._mode

    # ------------------------------------------------------------------
    # Session bring-up
    # ------------------------------------------------------------------

    async def ensure_session(self) -> SessionMode:
        """Pick the request channel once; later calls return the memoized mode."""
        if self._mode is not SessionMode.UNINITIALIZED:
            return self._mode
        async with self._init_lock:
            if self._mode is SessionMode.UNINITIALIZED:
                self._mode = await self._bring_up()
                log.info("scraper_session_ready", mode=self._mode.value)
        return self._mode

    async def _bring_up(self) -> SessionMode:
        if await self._session.configure():
            # Best effort: the session can still route each request via the solver.
            if not await self._session.acquire_cookies(self._site_url):
                log.warning(
                    "scraper_cookie_prefetch_failed", error=self._session.last_error
                )
            return SessionMode.SOLVER

        try:
            resp = await self._http.get(self.base_url)
        except httpx.HTTPError as exc:
            log.warning("scraper_direct_probe_failed", error=str(exc))
            return SessionMode.DEGRADED

        if not resp.is_success:
            log.warning("scraper_direct_probe_status", status=resp.status_code)
            return SessionMode.DEGRADED
        if is_challenge_page(resp.text):
            log.warning("scraper_cloudflare_challenge", url=self.base_url)
            return SessionMode.DEGRADED
        return SessionMode.DIRECT

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def get_videos(self, page: int, page_size: int = 20) -> list[VideoPost]:
        """Posts of the 1-based listing *page*.

        *page_size* is accepted for interface compatibility; the site
        decides how many posts a page holds.
        """
        if await self.ensure_session() is SessionMode.DEGRADED:
            return []

        form = {
            "action": "load_more",
            "page": str(page - 1),
            "template": _LISTING_TEMPLATE,
            "vars[category_name]": self._category,
            "id_playlist": "",
        }
        try:
            html = await self._post_form(form, self._max_timeout)
        except httpx.HTTPError as exc:
            log.warning("listing_fetch_failed", page=page, error=str(exc))
            return []
        if not html:
            log.warning(
                "listing_fetch_empty", page=page, error=self._session.last_error
            )
            return []

        posts = parse_articles(html)
        log.info("listing_page_parsed", page=page, posts=len(posts))
        return posts

    # ------------------------------------------------------------------
    # Post resolution
    # ------------------------------------------------------------------

    async def extract_video_url(self, page_url: str) -> str | None:
        """Playable URL for the post at *page_url*, or None."""
        info = await self.resolve_post(page_url)
        return info.direct_url if info is not None else None

    async def resolve_post(self, page_url: str) -> VideoStreamInfo | None:
        """Full stream info for the post at *page_url*, or None when no player is found."""
        if await self.ensure_session() is SessionMode.DEGRADED:
            return None

        try:
            html = await self._fetch_page(page_url)
            if not html:
                log.warning("post_fetch_empty", url=page_url)
                return None
            embed_url = await first_embed(self._strategies, html)
        except httpx.HTTPError as exc:
            log.warning("post_fetch_failed", url=page_url, error=str(exc))
            return None

        if embed_url is None:
            log.info("post_no_embed", url=page_url)
            return None
        return await self._resolvers.resolve(embed_url)

    # ------------------------------------------------------------------
    # Channel routing
    # ------------------------------------------------------------------

    async def _fetch_page(self, url: str) -> str | None:
        if self._mode is SessionMode.SOLVER:
            resp = await self._session.get(url, max_timeout=self._max_timeout)
            return resp.html if resp is not None else None
        resp = await self._http.get(url)
        resp.raise_for_status()
        return resp.text

    async def _post_form(self, form: Mapping[str, str], max_timeout: int) -> str | None:
        if self._mode is SessionMode.SOLVER:
            resp = await self._session.post(self.ajax_url, form, max_timeout=max_timeout)
            return resp.html if resp is not None else None
        resp = await self._http.post(
            self.ajax_url,
            data=dict(form),
            headers={"Origin": self._site_url, **AJAX_HEADERS},
        )
        resp.raise_for_status()
        return resp.text

    async def _post_iframe_form(self, form: Mapping[str, str]) -> str | None:
        return await self._post_form(form, _IFRAME_MAX_TIMEOUT_MS)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()
