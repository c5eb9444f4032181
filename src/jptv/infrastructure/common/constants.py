"""Shared HTTP constants."""

from __future__ import annotations

# Plain client for third-party video hosts.
DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

# Unauthenticated direct mode sends a slightly richer Accept, like a real browser.
BROWSER_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,image/apng,*/*;q=0.8"
)

DEFAULT_ACCEPT_LANGUAGE = "ja,en-US;q=0.9,en;q=0.8"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

AJAX_HEADERS = {"X-Requested-With": "XMLHttpRequest"}
