"""Domain exceptions."""

from __future__ import annotations


class JptvError(Exception):
    """Base class for all jptv errors."""


class ResolutionError(JptvError):
    """Raised inside a hoster resolver when a response has an unexpected shape.

    Never crosses the resolver registry: it is converted into a
    passthrough VideoStreamInfo carrying the message.
    """


class ConfigError(JptvError):
    """Raised when configuration files or values cannot be loaded."""
