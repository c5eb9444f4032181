"""Vimeo hoster resolver (player config API, progressive files)."""

from __future__ import annotations

from typing import Any

import structlog

from jptv.domain.entities.video import VideoHost, VideoQuality, VideoStreamInfo
from jptv.domain.exceptions import ResolutionError
from jptv.infrastructure.common.extraction_rule import ExtractionRule

from ._fetch import ChannelFetcher
from .quality import select_best

log = structlog.get_logger(__name__)

_CONFIG_URL = "https://player.vimeo.com/video/{video_id}/config"
_TIMEOUT = 15

VIDEO_ID = ExtractionRule.compile(
    "vimeo_video_id",
    r"vimeo\.com/(?:video/)?(\d+)",
    example="https://player.vimeo.com/video/76979871",
)


def progressive_qualities(config: Any) -> list[VideoQuality]:
    """Read ``request.files.progressive[]`` as ``{url, quality}`` entries."""
    try:
        files = config["request"]["files"]
    except (KeyError, TypeError) as exc:
        raise ResolutionError("vimeo config has no request.files") from exc
    if not isinstance(files, dict):
        raise ResolutionError("vimeo request.files is not an object")

    out: list[VideoQuality] = []
    for entry in files.get("progressive") or []:
        if isinstance(entry, dict) and "url" in entry and "quality" in entry:
            out.append(
                VideoQuality(name=str(entry["quality"] or ""), url=str(entry["url"] or ""))
            )
    return out


class VimeoResolver:
    def __init__(self, fetcher: ChannelFetcher) -> None:
        self._fetcher = fetcher

    @property
    def name(self) -> str:
        return VideoHost.VIMEO.value

    def matches(self, hostname: str) -> bool:
        return "vimeo" in hostname

    async def resolve(self, url: str) -> VideoStreamInfo:
        video_id = VIDEO_ID.first(url)
        if video_id is None:
            log.warning("vimeo_no_video_id", url=url)
            return VideoStreamInfo.passthrough(url, self.name, "vimeo video id not found")

        page = await self._fetcher.get(
            _CONFIG_URL.format(video_id=video_id), timeout=_TIMEOUT
        )
        qualities = progressive_qualities(page.json())
        best = select_best(qualities)
        if best is None:
            log.warning("vimeo_no_progressive", url=url)
            return VideoStreamInfo.passthrough(url, self.name, "no progressive file")

        log.debug("vimeo_resolved", quality=best.name, count=len(qualities))
        return VideoStreamInfo(
            iframe_url=url,
            direct_url=best.url,
            host=self.name,
            quality=best.name,
            available_qualities=tuple(qualities),
        )
