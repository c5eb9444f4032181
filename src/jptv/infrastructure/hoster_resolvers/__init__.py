"""Hoster resolver implementations for extracting playable video URLs."""

from __future__ import annotations

from ._fetch import ChannelFetcher, FetchedPage
from .quality import quality_priority, select_best
from .registry import HosterResolverRegistry, default_resolvers, extract_hostname

__all__ = [
    "ChannelFetcher",
    "FetchedPage",
    "HosterResolverRegistry",
    "default_resolvers",
    "extract_hostname",
    "quality_priority",
    "select_best",
]
