"""Common infrastructure utilities."""

from __future__ import annotations

from .cloudflare import CHALLENGE_MARKERS, is_challenge_page
from .extraction_rule import ExtractionRule

__all__ = [
    "CHALLENGE_MARKERS",
    "ExtractionRule",
    "is_challenge_page",
]
