"""YouTube hoster resolver.

Raw streams sit behind a signed-URL cipher, so the resolver only
canonicalises to the ``/embed/{id}`` player and flags that playback
needs an embedding-capable player.
"""

from __future__ import annotations

from jptv.domain.entities.video import VideoHost, VideoStreamInfo
from jptv.infrastructure.common.extraction_rule import ExtractionRule

_EMBED_URL = "https://www.youtube.com/embed/{video_id}"

VIDEO_ID = ExtractionRule.compile(
    "youtube_video_id",
    r"(?:youtube\.com/(?:watch\?v=|embed/)|youtu\.be/)([a-zA-Z0-9_-]{11})",
    example="https://youtu.be/dQw4w9WgXcQ",
)


class YouTubeResolver:
    @property
    def name(self) -> str:
        return VideoHost.YOUTUBE.value

    def matches(self, hostname: str) -> bool:
        return "youtube" in hostname or "youtu.be" in hostname

    async def resolve(self, url: str) -> VideoStreamInfo:
        video_id = VIDEO_ID.first(url)
        direct_url = _EMBED_URL.format(video_id=video_id) if video_id else url
        return VideoStreamInfo(
            iframe_url=url,
            direct_url=direct_url,
            host=self.name,
            requires_webview=True,
        )
