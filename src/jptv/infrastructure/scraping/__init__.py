"""Listing scraper and embed discovery for the protected video site."""

from __future__ import annotations

from .embed_extractor import find_embed_candidate, is_valid_video_url, normalize_video_url
from .embed_strategies import (
    AjaxIframeStrategy,
    IframeEmbedStrategy,
    ScriptEmbedStrategy,
    first_embed,
)
from .listing_parser import parse_articles
from .ninetsu import NinetsuScraper

__all__ = [
    "AjaxIframeStrategy",
    "IframeEmbedStrategy",
    "NinetsuScraper",
    "ScriptEmbedStrategy",
    "find_embed_candidate",
    "first_embed",
    "is_valid_video_url",
    "normalize_video_url",
    "parse_articles",
]
