"""Session state enums for the Cloudflare bypass layer."""

from __future__ import annotations

from enum import Enum


class SolverState(str, Enum):
    """Health of the FlareSolverr endpoint as of the last probe."""

    UNCONFIGURED = "unconfigured"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class ChannelMode(str, Enum):
    """How requests to the protected origin are currently sent."""

    SOLVER = "solver"  # every request is a browser-automation command
    DIRECT = "direct"  # plain HTTP carrying solver-obtained cookies


class SessionMode(str, Enum):
    """Outcome of the scraper's one-time session bring-up."""

    UNINITIALIZED = "uninitialized"
    SOLVER = "solver"
    DIRECT = "direct"
    DEGRADED = "degraded"  # origin blocked, no solver: listings stay empty
