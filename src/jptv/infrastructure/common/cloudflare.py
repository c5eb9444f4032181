"""Shared Cloudflare challenge / interstitial detection.

Centralises the markers so the scraper's session bring-up and the
FlareSolverr session's direct channel use the same heuristic.
"""

from __future__ import annotations

CHALLENGE_MARKERS: tuple[str, ...] = (
    "cf-browser-verification",
    "challenge-platform",
    "Just a moment",
    "Checking your browser",
    "cf-spinner",
)


def is_challenge_page(html: str) -> bool:
    """Return *True* when *html* is a Cloudflare interstitial instead of content.

    Status codes are not considered: the JS challenge is frequently served
    with 200 by intermediaries, so the body is the only reliable signal.
    """
    if not html:
        return False
    return any(marker in html for marker in CHALLENGE_MARKERS)
