"""FlareSolverr v1 API models.

Request: ``POST /v1`` with ``{"cmd", "url", "maxTimeout", "postData"?}``.
Response: ``{"status", "message", "solution": {...}}`` where the solution
carries the page body, the browser's cookies and its user agent.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SolverCommand = Literal["request.get", "request.post"]


class SolverRequest(BaseModel):
    """A browser-automation command sent to FlareSolverr."""

    model_config = ConfigDict(populate_by_name=True)

    cmd: SolverCommand = "request.get"
    url: str
    max_timeout: int = Field(default=60_000, alias="maxTimeout")
    post_data: Optional[str] = Field(default=None, alias="postData")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class SolverCookie(BaseModel):
    """A cookie as reported by the solver's browser."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    value: str = ""
    domain: str = ""
    path: str = "/"
    expires: float = 0
    http_only: bool = Field(default=False, alias="httpOnly")
    secure: bool = False
    same_site: Optional[str] = Field(default=None, alias="sameSite")


class SolverSolution(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: str = ""
    status: int = 0
    headers: Optional[dict[str, Any]] = None
    response: str = ""
    cookies: list[SolverCookie] = Field(default_factory=list)
    user_agent: str = Field(default="", alias="userAgent")

    @field_validator("response", "user_agent", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("cookies", mode="before")
    @classmethod
    def _null_cookies(cls, v: Any) -> Any:
        return [] if v is None else v


class SolverResponse(BaseModel):
    """Response envelope shared by solver-routed and direct requests."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: str = ""
    message: str = ""
    start_timestamp: int = Field(default=0, alias="startTimestamp")
    end_timestamp: int = Field(default=0, alias="endTimestamp")
    version: str = ""
    solution: Optional[SolverSolution] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok" and self.solution is not None

    @property
    def html(self) -> str | None:
        """Body of the fetched page, or None when there is no solution."""
        return self.solution.response if self.solution is not None else None

    @classmethod
    def direct(
        cls, url: str, status_code: int, body: str, user_agent: str
    ) -> SolverResponse:
        """Wrap a direct (cookie-carrying) response in the solver's shape."""
        return cls(
            status="ok",
            message="Direct request successful",
            solution=SolverSolution(
                url=url,
                status=status_code,
                response=body,
                user_agent=user_agent,
            ),
        )
