"""Parsing of the ``load_more`` listing fragment into VideoPost entries."""

from __future__ import annotations

from urllib.parse import urlparse

import structlog
from bs4 import Tag

from jptv.domain.entities.video import VideoPost
from jptv.infrastructure.common.html_selectors import (
    extract_attr,
    extract_text,
    parse_html,
    select_items,
)

log = structlog.get_logger(__name__)

ARTICLE_SELECTOR = "article.cactus-post-item"
THUMBNAIL_SELECTOR = "div.picture-content img"
TITLE_LINK_SELECTOR = "h3.cactus-post-title a"


def post_id_from_url(url: str) -> str | None:
    """Last non-empty path segment of *url* (the WordPress post slug)."""
    try:
        path = urlparse(url).path
    except ValueError:
        return None
    segments = [s for s in path.strip("/").split("/") if s]
    return segments[-1] if segments else None


def parse_article(article: Tag, index: int) -> VideoPost | None:
    """Build a post from one ``<article>``; None when title or link is empty."""
    thumbnail = extract_attr(article, THUMBNAIL_SELECTOR, "data-src", "src")
    title = extract_text(article, TITLE_LINK_SELECTOR)
    page_url = extract_attr(article, TITLE_LINK_SELECTOR, "href")
    if not title or not page_url:
        return None
    return VideoPost(
        id=post_id_from_url(page_url) or f"video_{index}",
        thumbnail_url=thumbnail,
        original_title=title,
        page_url=page_url,
    )


def parse_articles(html: str) -> list[VideoPost]:
    """Parse every article block; a broken article is logged and skipped."""
    if not html:
        return []
    posts: list[VideoPost] = []
    for index, article in enumerate(select_items(parse_html(html), ARTICLE_SELECTOR)):
        try:
            post = parse_article(article, index)
        except Exception:
            log.warning("listing_article_parse_failed", index=index, exc_info=True)
            continue
        if post is not None:
            posts.append(post)
    return posts
