"""FlareSolverr-backed Cloudflare bypass session."""

from __future__ import annotations

from .models import SolverCookie, SolverRequest, SolverResponse, SolverSolution
from .session import DEFAULT_SOLVER_URL, DirectChannel, FlareSolverrSession

__all__ = [
    "DEFAULT_SOLVER_URL",
    "DirectChannel",
    "FlareSolverrSession",
    "SolverCookie",
    "SolverRequest",
    "SolverResponse",
    "SolverSolution",
]
