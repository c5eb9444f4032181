"""ok.ru hoster resolver.

The embed page keeps its player configuration in an HTML-encoded JSON
``data-options`` attribute; ``flashvars.metadata`` is itself a JSON
string whose ``videos`` array lists one URL per rendition.  When that
path fails, the first ``.m3u8`` (HLS) and then ``.mp4`` URL in the body
is used.
"""

from __future__ import annotations

import json
from html import unescape
from typing import Any

import structlog

from jptv.domain.entities.video import VideoHost, VideoQuality, VideoStreamInfo
from jptv.infrastructure.common.extraction_rule import ExtractionRule

from ._fetch import ChannelFetcher
from .quality import select_best

log = structlog.get_logger(__name__)

_EMBED_URL = "https://ok.ru/videoembed/{video_id}"
_TIMEOUT = 30

VIDEO_ID = ExtractionRule.compile(
    "okru_video_id",
    r"videoembed/(\d+)",
    example="https://ok.ru/videoembed/4837383627467",
)
DATA_OPTIONS = ExtractionRule.compile(
    "okru_data_options",
    r'data-options="([^"]+)"',
    example='<div data-module="OKVideo" data-options="{&quot;flashvars&quot;:{}}">',
)
HLS_URL = ExtractionRule.compile(
    "okru_hls_url",
    r"""https?://[^"'\s]+\.m3u8[^"'\s]*""",
    example='"hlsManifestUrl":"https://vd.okcdn.ru/video.m3u8?sig=abc"',
)
MP4_URL = ExtractionRule.compile(
    "okru_mp4_url",
    r"""https?://[^"'\s]+\.mp4[^"'\s]*""",
    example='"url":"https://vd.okcdn.ru\\/video.mp4?type=3"',
)


def parse_qualities(options_attr: str) -> list[VideoQuality]:
    """Extract renditions from a raw ``data-options`` attribute value.

    Returns an empty list when any level of the nested JSON is missing.
    """
    options: Any = json.loads(unescape(options_attr))
    metadata_raw = options.get("flashvars", {}).get("metadata")
    if not isinstance(metadata_raw, str) or not metadata_raw:
        return []
    metadata = json.loads(metadata_raw)
    qualities: list[VideoQuality] = []
    for video in metadata.get("videos") or []:
        if isinstance(video, dict) and "url" in video and "name" in video:
            qualities.append(
                VideoQuality(name=str(video["name"] or ""), url=str(video["url"] or ""))
            )
    return qualities


class OkRuResolver:
    """Resolves ok.ru embeds to the best progressive rendition."""

    def __init__(self, fetcher: ChannelFetcher) -> None:
        self._fetcher = fetcher

    @property
    def name(self) -> str:
        return VideoHost.OK_RU.value

    def matches(self, hostname: str) -> bool:
        return "ok.ru" in hostname

    async def resolve(self, url: str) -> VideoStreamInfo:
        host = self.name
        video_id = VIDEO_ID.first(url)
        if video_id is None:
            log.warning("okru_no_video_id", url=url)
            return VideoStreamInfo.passthrough(url, host, "ok.ru video id not found")

        page = await self._fetcher.get(
            _EMBED_URL.format(video_id=video_id), timeout=_TIMEOUT
        )
        html = page.text
        if not html:
            return VideoStreamInfo.passthrough(url, host, "empty ok.ru embed page")

        options_attr = DATA_OPTIONS.first(html)
        if options_attr is not None:
            try:
                qualities = parse_qualities(options_attr)
            except (ValueError, AttributeError) as exc:
                log.warning("okru_options_parse_failed", url=url, error=str(exc))
                qualities = []
            best = select_best(qualities)
            if best is not None and best.url:
                log.debug("okru_resolved", quality=best.name, count=len(qualities))
                return VideoStreamInfo(
                    iframe_url=url,
                    direct_url=best.url,
                    host=host,
                    quality=best.name,
                    available_qualities=tuple(qualities),
                )

        hls = HLS_URL.first(html, group=0)
        if hls is not None:
            return VideoStreamInfo(
                iframe_url=url,
                direct_url=hls.replace("\\/", "/"),
                host=host,
                is_hls=True,
            )

        mp4 = MP4_URL.first(html, group=0)
        if mp4 is not None:
            return VideoStreamInfo(
                iframe_url=url, direct_url=mp4.replace("\\/", "/"), host=host
            )

        log.warning("okru_no_direct_url", url=url)
        return VideoStreamInfo.passthrough(url, host, "direct URL not found")
