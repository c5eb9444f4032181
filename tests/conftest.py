"""Shared test fixtures for the jptv test suite."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from jptv.infrastructure.config.schema import AppConfig

SITE_URL = "https://9tsu.cc"
SOLVER_URL = "http://solver.test:8191/v1"
SOLVER_UA = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 Chrome/124.0 Safari/537.36"


def _article(
    *,
    href: str = "https://9tsu.cc/douga/sample-post-1/",
    title: str = "サンプル動画 &amp; テスト",
    data_src: str | None = "https://9tsu.cc/wp-content/uploads/thumb-1.jpg",
    src: str = "https://9tsu.cc/wp-content/uploads/placeholder.gif",
) -> str:
    data_src_attr = f' data-src="{data_src}"' if data_src is not None else ""
    return (
        '<article class="cactus-post-item hentry">'
        '<div class="entry-content"><div class="picture-content">'
        f'<a href="{href}"><img src="{src}"{data_src_attr} alt=""></a>'
        "</div>"
        f'<h3 class="cactus-post-title entry-title h4"><a href="{href}">{title}</a></h3>'
        "</div></article>"
    )


# ---------------------------------------------------------------------------
# HTML builders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_article() -> Callable[..., str]:
    """Builder for one ``load_more`` listing article."""
    return _article


@pytest.fixture()
def listing_html() -> str:
    """A ``load_more`` fragment with two complete articles."""
    return "\n".join(
        [
            _article(),
            _article(
                href="https://9tsu.cc/douga/second-post/",
                title="二本目",
                data_src=None,
                src="https://9tsu.cc/wp-content/uploads/thumb-2.jpg",
            ),
        ]
    )


# ---------------------------------------------------------------------------
# FlareSolverr payloads
# ---------------------------------------------------------------------------


def _solver_payload(
    html: str = "<html><body>ok</body></html>",
    *,
    url: str = SITE_URL,
    cookies: list[dict[str, Any]] | None = None,
    user_agent: str = SOLVER_UA,
    status: str = "ok",
    message: str = "Challenge not detected!",
) -> dict[str, Any]:
    if cookies is None:
        cookies = [
            {
                "name": "cf_clearance",
                "value": "clearance-token",
                "domain": ".9tsu.cc",
                "path": "/",
                "expires": 1893456000,
                "httpOnly": True,
                "secure": True,
                "sameSite": "None",
            }
        ]
    return {
        "status": status,
        "message": message,
        "startTimestamp": 1700000000000,
        "endTimestamp": 1700000004000,
        "version": "3.3.21",
        "solution": {
            "url": url,
            "status": 200,
            "headers": {},
            "response": html,
            "cookies": cookies,
            "userAgent": user_agent,
        },
    }


@pytest.fixture()
def solver_payload() -> Callable[..., dict[str, Any]]:
    """Builder for a FlareSolverr ``/v1`` JSON response."""
    return _solver_payload


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture()
def app_config() -> AppConfig:
    """Default config pointed at a test solver."""
    return AppConfig(flaresolverr_url=SOLVER_URL, environment="test")
