"""Quality ranking shared by the multi-rendition resolvers."""

from __future__ import annotations

from typing import Iterable

from jptv.domain.entities.video import VideoQuality

_EXACT: dict[str, int] = {
    "4k": 2160,
    "2160p": 2160,
    "2160": 2160,
    "1440p": 1440,
    "1440": 1440,
    "1080p": 1080,
    "1080": 1080,
    "full": 1080,
    "hd": 1080,
    "720p": 720,
    "720": 720,
    "480p": 480,
    "480": 480,
    "sd": 480,
    "360p": 360,
    "360": 360,
    "240p": 240,
    "240": 240,
    "144p": 144,
    "144": 144,
    # Adaptive streams: better than 480p, worse than 720p.
    "auto": 500,
}

# Checked in order against labels with no exact entry (e.g. "hd1080").
_CONTAINS: tuple[tuple[str, int], ...] = (
    ("1080", 1080),
    ("720", 720),
    ("480", 480),
)


def quality_priority(label: str) -> int:
    """Rank a quality label; higher is better, unknown labels rank 0."""
    exact = _EXACT.get(label.lower())
    if exact is not None:
        return exact
    for fragment, rank in _CONTAINS:
        if fragment in label:
            return rank
    return 0


def select_best(qualities: Iterable[VideoQuality]) -> VideoQuality | None:
    """Return the highest-ranked quality; ties keep the first encountered."""
    best: VideoQuality | None = None
    best_rank = -1
    for quality in qualities:
        rank = quality_priority(quality.name)
        if rank > best_rank:
            best, best_rank = quality, rank
    return best
