"""Cloudflare bypass session backed by FlareSolverr.

FlareSolverr runs a real browser to get past the challenge.  It is slow,
so the session uses it once to obtain ``cf_clearance`` cookies plus the
browser's user agent, then talks to the origin directly with a plain
httpx client carrying those cookies.  When the direct channel is missing
(or gets blocked again) requests are routed through the solver, and a
successful solver response re-arms the direct channel for the next call.

Docker: ``docker run -d -p 8191:8191 ghcr.io/flaresolverr/flaresolverr:latest``
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Mapping
from urllib.parse import urlencode, urlparse

import httpx
import structlog
from pydantic import ValidationError

from jptv.domain.entities.session import ChannelMode, SolverState
from jptv.infrastructure.common.cloudflare import is_challenge_page
from jptv.infrastructure.common.constants import (
    AJAX_HEADERS,
    DEFAULT_ACCEPT_LANGUAGE,
    FORM_CONTENT_TYPE,
    HTML_ACCEPT,
)

from .models import SolverRequest, SolverResponse, SolverSolution

log = structlog.get_logger(__name__)

DEFAULT_SOLVER_URL = "http://localhost:8191/v1"

# Marker the solver's root page must contain (compared case-insensitively).
_HEALTH_MARKER = "flaresolverr"

_SOLVER_CLIENT_TIMEOUT = 120.0
_DIRECT_CLIENT_TIMEOUT = 30.0
_DEFAULT_MAX_TIMEOUT_MS = 60_000


def encode_form(data: Mapping[str, str] | str) -> str:
    """Form-encode *data* (strings pass through unchanged)."""
    if isinstance(data, str):
        return data
    return urlencode(data)


def _origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


@dataclass(frozen=True)
class DirectChannel:
    """Cookie-carrying httpx client that bypasses the solver.

    Cannot be built without a user agent and at least one cookie, so a
    session that has a channel always has both.
    """

    client: httpx.AsyncClient
    user_agent: str
    host: str
    expires_at: float | None = None  # monotonic deadline (manual cookies only)

    def __post_init__(self) -> None:
        if not self.user_agent:
            raise ValueError("direct channel requires a user agent")
        if len(self.client.cookies) == 0:
            raise ValueError("direct channel requires at least one cookie")

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and time.monotonic() >= self.expires_at


class FlareSolverrSession:
    """Routes requests to a protected origin through FlareSolverr or directly.

    Usage::

        session = FlareSolverrSession("http://localhost:8191/v1")
        if await session.configure():
            await session.acquire_cookies("https://example.com")
        resp = await session.get("https://example.com/page")
        html = resp.html if resp else None
        await session.aclose()

    Failures never raise: they are recorded in :attr:`last_error` and
    surface as ``None``/``False``.  ``asyncio.CancelledError`` is recorded
    too, then re-raised.
    """

    def __init__(
        self,
        solver_url: str = DEFAULT_SOLVER_URL,
        *,
        http_client: httpx.AsyncClient | None = None,
        client_timeout: float = _SOLVER_CLIENT_TIMEOUT,
        direct_timeout: float = _DIRECT_CLIENT_TIMEOUT,
        default_max_timeout_ms: int = _DEFAULT_MAX_TIMEOUT_MS,
        accept_language: str = DEFAULT_ACCEPT_LANGUAGE,
    ) -> None:
        self._solver_url = solver_url
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=client_timeout)
        self._direct_timeout = direct_timeout
        self._default_max_timeout = default_max_timeout_ms
        self._accept_language = accept_language

        self._state = SolverState.UNCONFIGURED
        self._channel: DirectChannel | None = None
        self._generation = 0  # bumped on every channel install
        # Retired clients awaiting close: still serving a request, or retired outside a loop.
        self._retired: set[httpx.AsyncClient] = set()
        self._in_flight: dict[httpx.AsyncClient, int] = {}
        self._closing: set[asyncio.Task[None]] = set()
        self._last_error: str | None = None

        self._probe_lock = asyncio.Lock()
        self._acquire_lock = asyncio.Lock()

        self.on_configuration_required: Callable[[], None] | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def solver_url(self) -> str:
        return self._solver_url

    @solver_url.setter
    def solver_url(self, value: str) -> None:
        if value != self._solver_url:
            self._solver_url = value
            self._state = SolverState.UNCONFIGURED
            log.info("flaresolverr_url_changed", url=value)

    @property
    def state(self) -> SolverState:
        return self._state

    @property
    def configured(self) -> bool:
        return self._state is not SolverState.UNCONFIGURED

    @property
    def available(self) -> bool:
        return self._state is SolverState.AVAILABLE

    @property
    def channel_mode(self) -> ChannelMode:
        return ChannelMode.DIRECT if self._active_channel() else ChannelMode.SOLVER

    @property
    def has_direct_channel(self) -> bool:
        return self.channel_mode is ChannelMode.DIRECT

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def user_agent(self) -> str | None:
        channel = self._active_channel()
        return channel.user_agent if channel else None

    @property
    def cookies(self) -> httpx.Cookies:
        """Cookies of the current direct channel (empty without one)."""
        channel = self._active_channel()
        return channel.client.cookies if channel else httpx.Cookies()

    def shares_cookie_domain(self, url: str) -> bool:
        """True when *url* is served by the host the direct channel is scoped to."""
        channel = self._active_channel()
        if channel is None:
            return False
        hostname = (urlparse(url).hostname or "").lower()
        return hostname == channel.host or hostname.endswith("." + channel.host)

    # ------------------------------------------------------------------
    # Solver configuration
    # ------------------------------------------------------------------

    async def configure(self, solver_url: str | None = None, *, force: bool = False) -> bool:
        """Probe the solver and return whether it is available.

        Idempotent once configured unless *solver_url* changes or *force*
        is set.  Concurrent callers share a single in-flight probe.
        """
        if solver_url:
            self.solver_url = solver_url
        if self.configured and not force:
            return self.available

        async with self._probe_lock:
            if self.configured and not force:
                return self.available
            return await self._probe()

    async def _probe(self) -> bool:
        health_url = self._health_url()
        try:
            resp = await self._http.get(health_url)
        except asyncio.CancelledError:
            self._last_error = f"FlareSolverr probe cancelled: {health_url}"
            raise
        except httpx.TimeoutException:
            return self._mark_unavailable(
                f"FlareSolverr probe timed out: {health_url}"
            )
        except httpx.HTTPError as exc:
            return self._mark_unavailable(
                f"Cannot connect to FlareSolverr: {exc}"
            )

        if not resp.is_success:
            return self._mark_unavailable(
                f"FlareSolverr answered with status {resp.status_code}"
            )
        if _HEALTH_MARKER not in resp.text.lower():
            return self._mark_unavailable(
                f"{health_url} did not identify as FlareSolverr"
            )

        self._state = SolverState.AVAILABLE
        self._last_error = None
        log.info("flaresolverr_configured", url=self._solver_url)
        return True

    def _mark_unavailable(self, error: str) -> bool:
        self._state = SolverState.UNAVAILABLE
        self._last_error = error
        log.warning("flaresolverr_unavailable", url=self._solver_url, error=error)
        return False

    def _health_url(self) -> str:
        url = self._solver_url.rstrip("/")
        return url.removesuffix("/v1").rstrip("/") or url

    def request_configuration(self) -> None:
        """Ask the host application to prompt for a solver URL."""
        if self.on_configuration_required is not None:
            self.on_configuration_required()

    # ------------------------------------------------------------------
    # Cookies
    # ------------------------------------------------------------------

    async def acquire_cookies(self, target_url: str) -> bool:
        """Obtain Cloudflare cookies for *target_url* and arm the direct channel.

        On failure the previous channel (if any) is left untouched.
        """
        if not self.configured:
            await self.configure()
        if not self.available:
            self._last_error = "FlareSolverr is not available"
            return False

        generation = self._generation
        async with self._acquire_lock:
            if self._generation != generation and self.has_direct_channel:
                # Another caller armed the channel while we waited.
                return True

            log.info("flaresolverr_acquiring_cookies", url=target_url)
            response = await self._send_command(
                SolverRequest(
                    cmd="request.get",
                    url=target_url,
                    max_timeout=self._default_max_timeout,
                )
            )
            if response is None or response.solution is None:
                return False

            channel = self._build_channel(response.solution, target_url)
            if channel is None:
                return False
            self._install(channel)
            log.info(
                "flaresolverr_cookies_obtained",
                url=target_url,
                cookies=len(channel.client.cookies),
            )
            return True

    def set_manual_cookie(
        self,
        target_url: str,
        cf_clearance: str,
        user_agent: str,
        ttl_minutes: float = 15,
    ) -> None:
        """Arm the direct channel from a ``cf_clearance`` captured by a browser.

        The cookie is only honoured together with the user agent of the
        browser that solved the challenge, and expires after *ttl_minutes*.
        """
        host = urlparse(target_url).hostname or ""
        cookies = httpx.Cookies()
        cookies.set("cf_clearance", cf_clearance, domain=host, path="/")
        channel = DirectChannel(
            client=self._new_direct_client(cookies, user_agent),
            user_agent=user_agent,
            host=host,
            expires_at=time.monotonic() + ttl_minutes * 60,
        )
        self._install(channel)
        log.info("manual_cookie_set", host=host, ttl_minutes=ttl_minutes)

    def invalidate_cookies(self) -> None:
        """Drop the direct channel; the next request goes through the solver."""
        if self._channel is not None:
            self._retire(self._channel)
            log.info("cookies_invalidated")

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def get(self, url: str, max_timeout: int | None = None) -> SolverResponse | None:
        """GET *url* directly when cookies are armed, else via FlareSolverr."""
        channel = self._active_channel()
        if channel is not None:
            return await self._direct_request(channel, "GET", url)
        return await self._via_solver(
            SolverRequest(
                cmd="request.get",
                url=url,
                max_timeout=max_timeout or self._default_max_timeout,
            )
        )

    async def post(
        self,
        url: str,
        data: Mapping[str, str] | str,
        max_timeout: int | None = None,
    ) -> SolverResponse | None:
        """POST form *data* directly when cookies are armed, else via FlareSolverr."""
        body = encode_form(data)
        channel = self._active_channel()
        if channel is not None:
            return await self._direct_request(channel, "POST", url, body)
        return await self._via_solver(
            SolverRequest(
                cmd="request.post",
                url=url,
                max_timeout=max_timeout or self._default_max_timeout,
                post_data=body,
            )
        )

    async def _via_solver(self, request: SolverRequest) -> SolverResponse | None:
        if not self.configured:
            await self.configure()
        if not self.available:
            self._last_error = "FlareSolverr is not available"
            return None

        response = await self._send_command(request)
        if response is None or response.solution is None:
            return None

        # Upgrade: the next call goes direct with the cookies just obtained.
        channel = self._build_channel(response.solution, request.url)
        if channel is not None:
            self._install(channel)
        log.debug("flaresolverr_request_ok", cmd=request.cmd, url=request.url)
        return response

    async def _send_command(self, request: SolverRequest) -> SolverResponse | None:
        try:
            resp = await self._http.post(self._solver_url, json=request.to_payload())
        except asyncio.CancelledError:
            self._last_error = f"FlareSolverr {request.cmd} cancelled: {request.url}"
            raise
        except httpx.TimeoutException:
            return self._command_failed(
                request, "Timeout - FlareSolverr took too long to respond"
            )
        except httpx.HTTPError as exc:
            return self._command_failed(request, f"FlareSolverr request failed: {exc}")

        if not resp.is_success:
            return self._command_failed(request, f"HTTP {resp.status_code}")

        try:
            response = SolverResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            return self._command_failed(request, f"Invalid FlareSolverr response: {exc}")

        if not response.ok:
            return self._command_failed(request, response.message or "Unknown error")
        return response

    def _command_failed(self, request: SolverRequest, error: str) -> None:
        self._last_error = error
        log.warning(
            "flaresolverr_command_failed",
            cmd=request.cmd,
            url=request.url,
            error=error,
        )
        return None

    async def _direct_request(
        self,
        channel: DirectChannel,
        method: str,
        url: str,
        body: str | None = None,
    ) -> SolverResponse | None:
        client = channel.client
        self._in_flight[client] = self._in_flight.get(client, 0) + 1
        try:
            return await self._send_direct(channel, method, url, body)
        finally:
            self._release(client)

    async def _send_direct(
        self,
        channel: DirectChannel,
        method: str,
        url: str,
        body: str | None,
    ) -> SolverResponse | None:
        try:
            if method == "POST":
                resp = await channel.client.post(
                    url,
                    content=body or "",
                    headers={
                        "Content-Type": FORM_CONTENT_TYPE,
                        "Origin": _origin(url),
                        **AJAX_HEADERS,
                    },
                )
            else:
                resp = await channel.client.get(url)
        except asyncio.CancelledError:
            self._last_error = f"Direct {method} cancelled: {url}"
            raise
        except httpx.TimeoutException:
            return self._direct_failed(method, url, "timed out")
        except httpx.HTTPError as exc:
            return self._direct_failed(method, url, str(exc))

        text = resp.text
        if is_challenge_page(text):
            # Cookies no longer accepted; route the next request via the solver.
            log.warning("direct_channel_challenged", url=url, status=resp.status_code)
            self._retire(channel)

        if not resp.is_success:
            return self._direct_failed(method, url, f"HTTP {resp.status_code}")

        log.debug("direct_request_ok", method=method, url=url)
        return SolverResponse.direct(url, resp.status_code, text, channel.user_agent)

    def _direct_failed(self, method: str, url: str, error: str) -> None:
        self._last_error = f"Direct {method} failed: {error}"
        log.warning("direct_request_failed", method=method, url=url, error=error)
        return None

    # ------------------------------------------------------------------
    # Channel management
    # ------------------------------------------------------------------

    def _active_channel(self) -> DirectChannel | None:
        channel = self._channel
        if channel is not None and channel.is_expired:
            log.info("direct_channel_expired", host=channel.host)
            self._retire(channel)
            return None
        return channel

    def _build_channel(
        self, solution: SolverSolution, target_url: str
    ) -> DirectChannel | None:
        host = (urlparse(target_url).hostname or "").lower()
        cookies = httpx.Cookies()
        for cookie in solution.cookies:
            if not cookie.name:
                continue
            # Leading dot stripped: the cookie then matches host and subdomains.
            domain = cookie.domain.lstrip(".") or host
            cookies.set(cookie.name, cookie.value, domain=domain, path=cookie.path or "/")

        if not solution.user_agent or len(cookies) == 0:
            self._last_error = "FlareSolverr solution lacks cookies or user agent"
            log.warning(
                "direct_channel_unavailable",
                url=target_url,
                cookies=len(cookies),
                has_user_agent=bool(solution.user_agent),
            )
            return None

        return DirectChannel(
            client=self._new_direct_client(cookies, solution.user_agent),
            user_agent=solution.user_agent,
            host=host,
        )

    def _new_direct_client(
        self, cookies: httpx.Cookies, user_agent: str
    ) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            cookies=cookies,
            headers={
                "User-Agent": user_agent,
                "Accept": HTML_ACCEPT,
                "Accept-Language": self._accept_language,
            },
            timeout=self._direct_timeout,
            follow_redirects=True,
        )

    def _install(self, channel: DirectChannel) -> None:
        if self._channel is not None:
            self._retire(self._channel)
        self._channel = channel
        self._generation += 1

    def _retire(self, channel: DirectChannel) -> None:
        if self._channel is channel:
            self._channel = None
        client = channel.client
        if self._in_flight.get(client):
            self._retired.add(client)
        else:
            self._schedule_close(client)

    def _release(self, client: httpx.AsyncClient) -> None:
        remaining = self._in_flight.pop(client, 1) - 1
        if remaining > 0:
            self._in_flight[client] = remaining
        elif client in self._retired:
            self._retired.discard(client)
            self._schedule_close(client)

    def _schedule_close(self, client: httpx.AsyncClient) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (sync caller): left for aclose().
            self._retired.add(client)
            return
        task = loop.create_task(client.aclose())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    @property
    def open_retired_clients(self) -> int:
        """Replaced direct clients not closed yet."""
        return len(self._retired) + len(self._closing)

    async def aclose(self) -> None:
        """Close the solver client and every direct client. Idempotent."""
        if self._channel is not None:
            self._retired.add(self._channel.client)
            self._channel = None
        if self._closing:
            await asyncio.gather(*list(self._closing))
        while self._retired:
            await self._retired.pop().aclose()
        self._in_flight.clear()
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> FlareSolverrSession:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
