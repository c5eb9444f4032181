"""Registry that dispatches embed URL resolution to per-hoster resolvers."""

from __future__ import annotations

from urllib.parse import urlparse

import httpx
import structlog

from jptv.domain.entities.video import VideoStreamInfo
from jptv.domain.ports.hoster_resolver import HosterResolverPort

from ._fetch import ChannelFetcher
from .dailymotion import DailymotionResolver
from .doodstream import DoodStreamResolver
from .mixdrop import MixdropResolver
from .okru import OkRuResolver
from .streamtape import StreamtapeResolver
from .vimeo import VimeoResolver
from .youtube import YouTubeResolver

log = structlog.get_logger(__name__)


def extract_hostname(url: str) -> str:
    """Lower-cased hostname of *url*, ``""`` when it has none."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def default_resolvers(fetcher: ChannelFetcher) -> list[HosterResolverPort]:
    """The built-in resolvers, in dispatch order."""
    return [
        OkRuResolver(fetcher),
        DailymotionResolver(fetcher),
        YouTubeResolver(),
        VimeoResolver(fetcher),
        StreamtapeResolver(fetcher),
        DoodStreamResolver(fetcher),
        MixdropResolver(fetcher),
    ]


class HosterResolverRegistry:
    """Dispatches embed URLs to the first resolver whose host matcher accepts them.

    Resolution never raises: unknown hosts pass through unchanged and
    resolver failures become a passthrough carrying the error text.
    """

    def __init__(self, resolvers: list[HosterResolverPort] | None = None) -> None:
        self._resolvers: list[HosterResolverPort] = []
        for resolver in resolvers or []:
            self.register(resolver)

    def register(self, resolver: HosterResolverPort) -> None:
        """Append *resolver*; earlier registrations win on overlapping hosts."""
        self._resolvers.append(resolver)
        log.debug("hoster_resolver_registered", hoster=resolver.name)

    @property
    def supported_hosters(self) -> list[str]:
        return [r.name for r in self._resolvers]

    def resolver_for(self, hostname: str) -> HosterResolverPort | None:
        hostname = hostname.lower()
        for resolver in self._resolvers:
            if resolver.matches(hostname):
                return resolver
        return None

    async def resolve(self, iframe_url: str) -> VideoStreamInfo | None:
        """Resolve an embed URL to a playable stream, or None for empty input."""
        if not iframe_url:
            return None

        hostname = extract_hostname(iframe_url)
        if not hostname:
            log.warning("hoster_resolve_no_hostname", url=iframe_url)
            return VideoStreamInfo.passthrough(
                iframe_url, error=f"Invalid URL: {iframe_url}"
            )

        resolver = self.resolver_for(hostname)
        if resolver is None:
            log.info("hoster_resolve_unknown_host", hostname=hostname)
            return VideoStreamInfo.passthrough(iframe_url, host=hostname)

        return await self._try_resolver(resolver, iframe_url)

    async def _try_resolver(
        self, resolver: HosterResolverPort, url: str
    ) -> VideoStreamInfo:
        """Run *resolver*, converting any failure into a degraded passthrough."""
        hoster = resolver.name
        try:
            result = await resolver.resolve(url)
        except httpx.TimeoutException:
            log.warning("hoster_resolve_timeout", hoster=hoster, url=url)
            return VideoStreamInfo.passthrough(url, hoster, "timeout")
        except httpx.HTTPStatusError as exc:
            log.warning(
                "hoster_resolve_http_status",
                hoster=hoster,
                url=url,
                status=exc.response.status_code,
            )
            return VideoStreamInfo.passthrough(
                url, hoster, f"HTTP {exc.response.status_code}"
            )
        except httpx.HTTPError as exc:
            log.warning(
                "hoster_resolve_http_error", hoster=hoster, url=url, error=str(exc)
            )
            return VideoStreamInfo.passthrough(url, hoster, str(exc) or type(exc).__name__)
        except Exception as exc:
            log.exception("hoster_resolve_error", hoster=hoster, url=url)
            return VideoStreamInfo.passthrough(url, hoster, str(exc) or type(exc).__name__)

        if result.error is None:
            log.info("hoster_resolve_success", hoster=hoster, is_hls=result.is_hls)
        else:
            log.warning("hoster_resolve_degraded", hoster=hoster, error=result.error)
        return result
