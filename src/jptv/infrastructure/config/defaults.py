"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "environment": "dev",
    "site": {
        "base_url": "https://9tsu.cc",
        "category": "douga",
    },
    "flaresolverr": {
        "url": "http://localhost:8191/v1",
        "client_timeout_seconds": 120.0,
        "max_timeout_ms": 60_000,
    },
    "http": {
        "timeout_seconds": 30.0,
        "user_agent": (
            "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
        ),
        "accept_language": "ja,en-US;q=0.9,en;q=0.8",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
}
