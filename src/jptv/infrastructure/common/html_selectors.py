"""CSS-selector-based HTML extraction with fallback chains.

Composable helpers over BeautifulSoup.  Every extraction function
accepts a primary selector and optional *fallback_selectors*; the first
selector that yields a match wins, which keeps the scraper resilient
against minor layout changes (extra wrapper ``<div>``, renamed class).
"""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string into a BeautifulSoup tree (``lxml`` parser)."""
    return BeautifulSoup(html, "lxml")


def select_items(
    root: BeautifulSoup | Tag,
    selector: str,
    *fallback_selectors: str,
) -> list[Tag]:
    """Select elements via CSS with a fallback chain.

    Returns results from the **first** selector that matches at least
    one element.
    """
    for sel in (selector, *fallback_selectors):
        items = root.select(sel)
        if items:
            return items
    return []


def extract_text(
    element: Tag,
    selector: str,
    *fallback_selectors: str,
    default: str = "",
    strip: bool = True,
) -> str:
    """Extract text from the first matching child element.

    Entities are decoded by the parser.  With ``selector=""`` the
    element's own text is returned.
    """
    if selector == "":
        text = element.get_text(strip=strip)
        return text if text else default

    for sel in (selector, *fallback_selectors):
        match = element.select_one(sel)
        if match:
            text = match.get_text(strip=strip)
            if text:
                return text
    return default


def extract_attr(
    element: Tag,
    selector: str,
    attr: str,
    *fallback_attrs: str,
    default: str = "",
) -> str:
    """Extract an attribute from the first element matching *selector*.

    The attributes are tried in order (``attr`` then *fallback_attrs*),
    e.g. a lazy-load ``data-src`` before the plain ``src``.  With
    ``selector=""`` the attributes are read from *element* itself.
    """
    match = element if selector == "" else element.select_one(selector)
    if match is None:
        return default
    for name in (attr, *fallback_attrs):
        val = match.get(name)
        if val:
            return str(val).strip()
    return default
