"""Request routing for resolver sub-calls.

Video hosts are normally fetched with a plain desktop-browser client.
When a host shares the protected site's cookie domain and the bypass
session holds a direct channel, the request goes through the session
so the Cloudflare cookies are sent along.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from jptv.domain.exceptions import ResolutionError
from jptv.infrastructure.flaresolverr.session import FlareSolverrSession

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FetchedPage:
    """Body of a successful (2xx) fetch."""

    url: str
    status_code: int
    text: str

    def json(self) -> Any:
        return json.loads(self.text)


class ChannelFetcher:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        session: FlareSolverrSession | None = None,
    ) -> None:
        self._http = http_client
        self._session = session

    async def get(
        self,
        url: str,
        *,
        timeout: float,
        headers: dict[str, str] | None = None,
    ) -> FetchedPage:
        """GET *url*; raises ``httpx.HTTPStatusError`` on a non-2xx status.

        Transport errors propagate as ``httpx.HTTPError`` and are turned
        into degraded results by the registry.
        """
        session = self._session
        if session is not None and session.shares_cookie_domain(url):
            resp = await session.get(url, max_timeout=int(timeout * 1000))
            if resp is None or resp.solution is None:
                raise ResolutionError(
                    session.last_error or f"session fetch failed: {url}"
                )
            log.debug("resolver_fetch_via_session", url=url)
            return FetchedPage(
                url=resp.solution.url or url,
                status_code=resp.solution.status,
                text=resp.solution.response,
            )

        resp = await self._http.get(url, timeout=timeout, headers=headers)
        resp.raise_for_status()
        return FetchedPage(url=str(resp.url), status_code=resp.status_code, text=resp.text)
