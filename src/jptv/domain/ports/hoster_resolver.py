"""Port for resolving hoster embed URLs to playable video URLs."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from jptv.domain.entities.video import VideoStreamInfo


@runtime_checkable
class HosterResolverPort(Protocol):
    """Resolves a hoster embed page URL to an actual video stream URL.

    Implementations handle site-specific extraction logic (API calls,
    string-concatenation deobfuscation, token generation, etc.).
    """

    @property
    def name(self) -> str:
        """Hoster name this resolver handles (e.g. 'ok.ru', 'streamtape')."""
        ...

    def matches(self, hostname: str) -> bool:
        """Return True when the lower-cased *hostname* belongs to this hoster."""
        ...

    async def resolve(self, url: str) -> VideoStreamInfo:
        """Resolve a hoster embed URL to a playable video URL.

        Degraded outcomes are returned as a passthrough result with an
        ``error`` set rather than raised.
        """
        ...
