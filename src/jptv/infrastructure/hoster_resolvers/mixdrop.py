"""Mixdrop hoster resolver (best effort).

Reads the ``MDCore.wurl`` assignment from the embed page.  Pages that
pack their player script with ``eval(function(p,a,c,k,e,d)...)`` do not
expose it and degrade to a passthrough.
"""

from __future__ import annotations

import structlog

from jptv.domain.entities.video import VideoHost, VideoStreamInfo
from jptv.infrastructure.common.extraction_rule import ExtractionRule

from ._fetch import ChannelFetcher

log = structlog.get_logger(__name__)

_TIMEOUT = 15

WURL = ExtractionRule.compile(
    "mixdrop_wurl",
    r'MDCore\.wurl\s*=\s*"([^"]+)"',
    example='MDCore.wurl = "\\/\\/a-delivery.mxcontent.net\\/v\\/abc.mp4?s=x&e=1"',
)


def decode_wurl(value: str) -> str:
    return "https:" + value.replace("\\", "")


class MixdropResolver:
    def __init__(self, fetcher: ChannelFetcher) -> None:
        self._fetcher = fetcher

    @property
    def name(self) -> str:
        return VideoHost.MIXDROP.value

    def matches(self, hostname: str) -> bool:
        return "mixdrop" in hostname

    async def resolve(self, url: str) -> VideoStreamInfo:
        page = await self._fetcher.get(url, timeout=_TIMEOUT)
        wurl = WURL.first(page.text)
        if wurl is None:
            log.warning("mixdrop_no_wurl", url=url)
            return VideoStreamInfo.passthrough(url, self.name, "MDCore.wurl not found")

        direct_url = decode_wurl(wurl)
        log.debug("mixdrop_resolved", video_url=direct_url[:80])
        return VideoStreamInfo(iframe_url=url, direct_url=direct_url, host=self.name)
