from __future__ import annotations

import os
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator


class Settings(BaseModel):
    """Typed harness settings built from environment variables.

    ``base_url`` is only required when the harness drives an already running
    service; an in-process instance provides its own.
    """

    base_url: Optional[str] = None
    timeout: float = 10.0
    health_path: Optional[str] = None
    startup_timeout: float = 30.0

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v:
            raise ValueError("Base URL cannot be empty")
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"}:
            raise ValueError("Base URL must start with http:// or https://")
        if not parsed.netloc:
            raise ValueError("Base URL must include a host")
        return v.rstrip("/")

    @field_validator("timeout", "startup_timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeouts must be positive")
        return v

    @field_validator("health_path")
    @classmethod
    def validate_health_path(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.startswith("/"):
            raise ValueError("Health path must start with '/'")
        return v or None


def get_settings(
    base_url: Optional[str] = None, timeout: Optional[float] = None
) -> Settings:
    """Return settings from env vars; explicit arguments take precedence."""
    timeout_str = os.environ.get("APICHECK_TIMEOUT")
    startup_timeout_str = os.environ.get("APICHECK_STARTUP_TIMEOUT")
    if timeout is None:
        timeout = float(timeout_str) if timeout_str else 10.0
    return Settings(
        base_url=base_url or os.environ.get("APICHECK_BASE_URL") or None,
        timeout=timeout,
        health_path=os.environ.get("APICHECK_HEALTH_PATH"),
        startup_timeout=float(startup_timeout_str) if startup_timeout_str else 30.0,
    )
