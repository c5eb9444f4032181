"""Port exposed to the UI and translation collaborators."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from jptv.domain.entities.video import VideoPost


@runtime_checkable
class ScrapingPort(Protocol):
    """Listing and video-URL extraction for one streaming site."""

    @property
    def base_url(self) -> str: ...

    async def get_videos(self, page: int, page_size: int = 20) -> list[VideoPost]:
        """Return the posts of a 1-based listing page (empty when blocked)."""
        ...

    async def extract_video_url(self, page_url: str) -> str | None:
        """Return a playable URL for the post at *page_url*, or None."""
        ...
