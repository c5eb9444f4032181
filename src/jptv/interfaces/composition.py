"""Composition root: builds and tears down the scraping services."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator

import httpx
import structlog

from jptv.infrastructure.common.constants import DESKTOP_USER_AGENT
from jptv.infrastructure.config.load import load_config
from jptv.infrastructure.config.schema import AppConfig
from jptv.infrastructure.flaresolverr.session import FlareSolverrSession
from jptv.infrastructure.hoster_resolvers import (
    ChannelFetcher,
    HosterResolverRegistry,
    default_resolvers,
)
from jptv.infrastructure.logging.setup import configure_logging
from jptv.infrastructure.scraping.ninetsu import NinetsuScraper

log = structlog.get_logger(__name__)


@dataclass
class Services:
    """Everything the host application needs, wired from one AppConfig."""

    config: AppConfig
    session: FlareSolverrSession
    resolvers: HosterResolverRegistry
    scraper: NinetsuScraper


@asynccontextmanager
async def build_services(config: AppConfig) -> AsyncIterator[Services]:
    """Create the services for *config* and close every HTTP client on exit.

    Order matters:
        1. Bypass session (used by the resolver fetcher and the scraper)
        2. Plain resolver client + registry
        3. Scraper
    """
    # 1) FlareSolverr session
    session = FlareSolverrSession(
        config.flaresolverr_url,
        client_timeout=config.flaresolverr_client_timeout_seconds,
        direct_timeout=config.http_timeout_seconds,
        default_max_timeout_ms=config.flaresolverr_max_timeout_ms,
        accept_language=config.http_accept_language,
    )
    log.info("flaresolverr_session_initialized", url=config.flaresolverr_url)

    # 2) Hoster resolvers share one desktop-browser client
    resolver_http = httpx.AsyncClient(
        headers={"User-Agent": DESKTOP_USER_AGENT},
        timeout=httpx.Timeout(config.http_timeout_seconds),
        follow_redirects=True,
    )
    resolvers = HosterResolverRegistry(
        default_resolvers(ChannelFetcher(resolver_http, session=session))
    )
    log.info("hoster_resolvers_initialized", hosters=resolvers.supported_hosters)

    # 3) Scraper
    scraper = NinetsuScraper(
        session,
        resolvers,
        site_url=config.site_base_url,
        category=config.site_category,
        user_agent=config.http_user_agent,
        accept_language=config.http_accept_language,
        timeout=config.http_timeout_seconds,
        max_timeout_ms=config.flaresolverr_max_timeout_ms,
    )
    log.info("scraper_initialized", base_url=scraper.base_url)

    try:
        yield Services(
            config=config, session=session, resolvers=resolvers, scraper=scraper
        )
    finally:
        await scraper.aclose()
        await resolver_http.aclose()
        await session.aclose()
        log.info("services_closed")


@asynccontextmanager
async def bootstrap_services(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> AsyncIterator[Services]:
    """Process entry point for a host application.

    Loads configuration once (defaults < YAML < env < overrides), configures
    logging from it, then builds the services.
    """
    config = load_config(
        config_path=config_path, dotenv_path=dotenv_path, overrides=overrides
    )
    configure_logging(config)
    async with build_services(config) as services:
        yield services
