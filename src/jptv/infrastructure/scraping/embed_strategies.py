"""Ordered strategies for locating a post's player embed URL.

Each strategy takes the fetched post page and returns a valid embed URL
or None; :func:`first_embed` stops at the first hit.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Mapping, Optional, Sequence

import structlog

from jptv.domain.ports.embed_strategy import EmbedStrategyPort
from jptv.infrastructure.common.extraction_rule import ExtractionRule
from jptv.infrastructure.common.html_selectors import parse_html

from .embed_extractor import find_embed_candidate, is_valid_video_url, normalize_video_url

log = structlog.get_logger(__name__)

FormPoster = Callable[[Mapping[str, str]], Awaitable[Optional[str]]]

POST_ID = ExtractionRule.compile(
    "wp_post_id",
    r"var\s+postId\s*=\s*(\d+)",
    example="<script>var postId = 48213;</script>",
)
WP_NONCE = ExtractionRule.compile(
    "wp_nonce",
    r"""_wpnonce:\s*['"]([^'"]+)['"]""",
    example="data: { action: 'load_video_iframe', _wpnonce: '3f9a1c2b7e' }",
)


class ScriptEmbedStrategy:
    """Regex scan of the raw page, inline scripts included."""

    name = "script"

    async def attempt(self, html: str) -> str | None:
        return find_embed_candidate(html)


class IframeEmbedStrategy:
    """DOM scan: the ``#player-embed`` iframe first, then any valid iframe."""

    name = "iframe"

    async def attempt(self, html: str) -> str | None:
        if not html:
            return None
        soup = parse_html(html)
        player = soup.select_one("div#player-embed iframe")
        if player is not None:
            src = normalize_video_url(str(player.get("src") or ""))
            if is_valid_video_url(src):
                return src
        for iframe in soup.select("iframe[src]"):
            src = normalize_video_url(str(iframe.get("src") or ""))
            if is_valid_video_url(src):
                return src
        return None


class AjaxIframeStrategy:
    """Asks the site for the player markup via ``load_video_iframe``.

    The returned fragment goes through *fallbacks* (iframe, then script
    scan by default).
    """

    name = "ajax"

    def __init__(
        self,
        post_form: FormPoster,
        fallbacks: Sequence[EmbedStrategyPort] | None = None,
    ) -> None:
        self._post_form = post_form
        self._fallbacks: Sequence[EmbedStrategyPort] = (
            fallbacks
            if fallbacks is not None
            else (IframeEmbedStrategy(), ScriptEmbedStrategy())
        )

    async def attempt(self, html: str) -> str | None:
        post_id = POST_ID.first(html)
        if post_id is None:
            return None
        nonce = WP_NONCE.first(html) or ""

        fragment = await self._post_form(
            {"action": "load_video_iframe", "post_id": post_id, "_wpnonce": nonce}
        )
        if not fragment:
            log.info("ajax_iframe_empty", post_id=post_id)
            return None
        return await first_embed(self._fallbacks, fragment)


async def first_embed(
    strategies: Sequence[EmbedStrategyPort], html: str
) -> str | None:
    """Run *strategies* in order; return the first valid URL."""
    for strategy in strategies:
        url = await strategy.attempt(html)
        if url and is_valid_video_url(url):
            log.debug("embed_found", strategy=strategy.name, url=url)
            return url
    return None
