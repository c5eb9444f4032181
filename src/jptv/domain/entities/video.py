"""Domain entities for video listings and resolved streams.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum


class VideoHost(str, Enum):
    """Third-party video hosts with a dedicated resolver."""

    OK_RU = "ok.ru"
    DAILYMOTION = "dailymotion"
    YOUTUBE = "youtube"
    VIMEO = "vimeo"
    STREAMTAPE = "streamtape"
    DOODSTREAM = "doodstream"
    MIXDROP = "mixdrop"


@dataclass(frozen=True)
class VideoPost:
    """One entry of the site listing.

    ``romanji_title`` and ``localized_title`` start empty and are filled
    in later by the translation collaborator via :meth:`with_translations`.
    """

    id: str
    thumbnail_url: str
    original_title: str
    page_url: str
    romanji_title: str = ""
    localized_title: str = ""
    video_url: str | None = None
    published_date: datetime | None = None
    duration: timedelta | None = None

    def with_translations(self, romanji: str, localized: str) -> VideoPost:
        return replace(self, romanji_title=romanji, localized_title=localized)


@dataclass(frozen=True)
class VideoQuality:
    """A single rendition offered by a host (e.g. ``"720p"`` → url)."""

    name: str
    url: str


@dataclass(frozen=True)
class VideoStreamInfo:
    """Result of resolving an embed URL to a playable URL.

    Returned by HosterResolverPort implementations.  When resolution
    degrades, ``direct_url`` equals ``iframe_url`` and ``error`` says why.
    """

    iframe_url: str
    direct_url: str
    host: str = ""
    quality: str | None = None
    available_qualities: tuple[VideoQuality, ...] = field(default_factory=tuple)
    is_hls: bool = False
    requires_webview: bool = False  # needs an embedding-capable player
    requires_referer: bool = False
    referer: str | None = None
    error: str | None = None

    @classmethod
    def passthrough(
        cls, url: str, host: str = "", error: str | None = None
    ) -> VideoStreamInfo:
        """Return *url* unchanged as both embed and direct URL."""
        return cls(iframe_url=url, direct_url=url, host=host, error=error)

    @property
    def is_resolved(self) -> bool:
        return self.error is None and self.direct_url != self.iframe_url

    @property
    def headers(self) -> dict[str, str]:
        """Request headers a player must send for ``direct_url``."""
        if self.requires_referer and self.referer:
            return {"Referer": self.referer}
        return {}
