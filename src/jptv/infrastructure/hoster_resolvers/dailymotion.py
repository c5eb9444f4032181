"""Dailymotion hoster resolver (player metadata API)."""

from __future__ import annotations

from typing import Any

import structlog

from jptv.domain.entities.video import VideoHost, VideoQuality, VideoStreamInfo
from jptv.domain.exceptions import ResolutionError
from jptv.infrastructure.common.extraction_rule import ExtractionRule

from ._fetch import ChannelFetcher
from .quality import select_best

log = structlog.get_logger(__name__)

_METADATA_URL = "https://www.dailymotion.com/player/metadata/video/{video_id}"
_TIMEOUT = 15

VIDEO_ID = ExtractionRule.compile(
    "dailymotion_video_id",
    r"dailymotion\.com/(?:video|embed/video)/([a-zA-Z0-9]+)",
    example="https://www.dailymotion.com/embed/video/x8abc12",
)


def flatten_qualities(metadata: Any) -> list[VideoQuality]:
    """Flatten ``{"qualities": {label: [{"url": ...}, ...]}}`` into a list."""
    if not isinstance(metadata, dict):
        raise ResolutionError("dailymotion metadata is not an object")
    qualities = metadata.get("qualities")
    if not isinstance(qualities, dict):
        raise ResolutionError("dailymotion metadata has no qualities")

    out: list[VideoQuality] = []
    for label, formats in qualities.items():
        for fmt in formats or []:
            if isinstance(fmt, dict) and "url" in fmt:
                out.append(VideoQuality(name=label, url=str(fmt["url"] or "")))
    return out


class DailymotionResolver:
    def __init__(self, fetcher: ChannelFetcher) -> None:
        self._fetcher = fetcher

    @property
    def name(self) -> str:
        return VideoHost.DAILYMOTION.value

    def matches(self, hostname: str) -> bool:
        return "dailymotion" in hostname

    async def resolve(self, url: str) -> VideoStreamInfo:
        video_id = VIDEO_ID.first(url)
        if video_id is None:
            log.warning("dailymotion_no_video_id", url=url)
            return VideoStreamInfo.passthrough(
                url, self.name, "dailymotion video id not found"
            )

        page = await self._fetcher.get(
            _METADATA_URL.format(video_id=video_id), timeout=_TIMEOUT
        )
        qualities = flatten_qualities(page.json())
        best = select_best(qualities)
        if best is None:
            log.warning("dailymotion_no_qualities", url=url)
            return VideoStreamInfo.passthrough(url, self.name, "no playable quality")

        log.debug("dailymotion_resolved", quality=best.name, count=len(qualities))
        return VideoStreamInfo(
            iframe_url=url,
            direct_url=best.url,
            host=self.name,
            quality=best.name,
            available_qualities=tuple(qualities),
            is_hls=".m3u8" in best.url,
        )
