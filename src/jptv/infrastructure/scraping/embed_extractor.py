"""Stateless discovery and validation of player embed URLs in page HTML."""

from __future__ import annotations

import re

from jptv.infrastructure.common.extraction_rule import ExtractionRule

# Host fragments accepted as playable embeds.  Deliberately permissive:
# false positives are filtered by the resolver dispatch later on.
VIDEO_HOST_FRAGMENTS: tuple[str, ...] = (
    "ok.ru",
    "dailymotion",
    "youtube",
    "youtu.be",
    "vimeo",
    "streamtape",
    "dood",
    "mixdrop",
    "fembed",
    "vidoza",
    "upstream",
    "videobin",
    "mp4upload",
    "vidlox",
)
_GENERIC_FRAGMENTS: tuple[str, ...] = ("embed", "player")

# Tried in order, from host-specific to any iframe at all.
EMBED_RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule.compile(
        "known_host_src",
        r"""src=['"]([^'"]*(?:ok\.ru|dailymotion|youtube|vimeo|streamtape|dood|mixdrop)[^'"]*)['"]""",
        example="<iframe src=\"//ok.ru/videoembed/123\"></iframe>",
        flags=re.IGNORECASE,
    ),
    ExtractionRule.compile(
        "videoembed_src",
        r"""src=['"]([^'"]+/videoembed/[^'"]+)['"]""",
        example="player.src='https://cdn.example/videoembed/42'",
        flags=re.IGNORECASE,
    ),
    ExtractionRule.compile(
        "embed_src",
        r"""src=['"]([^'"]+embed[^'"]+)['"]""",
        example='<iframe src="https://fembed.example/v/embed-abc.html">',
        flags=re.IGNORECASE,
    ),
    ExtractionRule.compile(
        "any_iframe_src",
        r"""<iframe[^>]+src=['"]([^'"]+)['"]""",
        example='<iframe width="640" src="https://vidoza.net/abc.html">',
        flags=re.IGNORECASE,
    ),
)


def normalize_video_url(url: str) -> str:
    """Give protocol-relative URLs an explicit ``https:`` scheme."""
    if url.startswith("//"):
        return "https:" + url
    return url


def is_valid_video_url(url: str) -> bool:
    """True when *url* mentions a known video host, ``embed`` or ``player``."""
    if not url:
        return False
    lowered = url.lower()
    return any(f in lowered for f in VIDEO_HOST_FRAGMENTS) or any(
        f in lowered for f in _GENERIC_FRAGMENTS
    )


def find_embed_candidate(html: str) -> str | None:
    """Return the first valid embed URL found by the ordered rules, or None."""
    if not html:
        return None
    for rule in EMBED_RULES:
        for raw in rule.iter_first_groups(html):
            url = normalize_video_url(raw)
            if is_valid_video_url(url):
                return url
    return None
