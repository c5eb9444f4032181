"""Port for one step of the embed-discovery cascade."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbedStrategyPort(Protocol):
    """Finds a candidate player URL in a fetched post page.

    Strategies are tried in order; the first one returning a URL wins.
    ``None`` means "nothing found here", which is an expected outcome.
    """

    @property
    def name(self) -> str: ...

    async def attempt(self, html: str) -> str | None: ...
