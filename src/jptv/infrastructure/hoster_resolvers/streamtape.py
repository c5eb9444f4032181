"""Streamtape hoster resolver.

The page assembles the download link client-side::

    document.getElementById('robotlink').innerHTML = '//host/get_video?id=...' + ('xyz&token=...');

The real URL is ``https:`` + first fragment + second fragment with its
first three characters dropped.
"""

from __future__ import annotations

import structlog

from jptv.domain.entities.video import VideoHost, VideoStreamInfo
from jptv.infrastructure.common.extraction_rule import ExtractionRule

from ._fetch import ChannelFetcher

log = structlog.get_logger(__name__)

_TIMEOUT = 15

ROBOTLINK = ExtractionRule.compile(
    "streamtape_robotlink",
    r"getElementById\('robotlink'\)\.innerHTML\s*=\s*'([^']+)'\s*\+\s*\('([^']+)'\)",
    example=(
        "document.getElementById('robotlink').innerHTML = "
        "'//streamtape.com/get_video?id=abc&expires=1' + ('xcd&token=t0k')"
    ),
)


def decode_robotlink(first: str, second: str) -> str:
    return f"https:{first}{second[3:]}"


class StreamtapeResolver:
    def __init__(self, fetcher: ChannelFetcher) -> None:
        self._fetcher = fetcher

    @property
    def name(self) -> str:
        return VideoHost.STREAMTAPE.value

    def matches(self, hostname: str) -> bool:
        return "streamtape" in hostname

    async def resolve(self, url: str) -> VideoStreamInfo:
        page = await self._fetcher.get(url, timeout=_TIMEOUT)
        parts = ROBOTLINK.groups(page.text)
        if parts is None:
            log.warning("streamtape_no_robotlink", url=url)
            return VideoStreamInfo.passthrough(url, self.name, "robotlink not found")

        direct_url = decode_robotlink(*parts)
        log.debug("streamtape_resolved", video_url=direct_url[:80])
        return VideoStreamInfo(iframe_url=url, direct_url=direct_url, host=self.name)
