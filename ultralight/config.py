"""
Configuration - Settings read from the environment.

    ULTRALIGHT_LMS_URL          media server base URL
    ULTRALIGHT_PLAYER_ID        player to control at startup
    ULTRALIGHT_WINDOW_SIZE      playlist items fetched per status request
    ULTRALIGHT_STATUS_INTERVAL  seconds between status polls
    ULTRALIGHT_NOTICE_SECONDS   how long operation errors stay visible
    ULTRALIGHT_REQUEST_TIMEOUT  HTTP timeout for server requests
    ALLOWED_ORIGINS             comma-separated CORS origins
    ULTRALIGHT_LOG_LEVEL        logging level name
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Mapping
import os


def _origins(value: str) -> tuple[str, ...]:
    return tuple(origin.strip() for origin in value.split(",") if origin.strip())


@dataclass(frozen=True)
class Settings:
    lms_url: str = "http://localhost:9000"
    player_id: str | None = None
    window_size: int = 100
    status_interval: float = 30.0
    notice_seconds: float = 10.0
    request_timeout: float = 10.0
    allowed_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        defaults = cls()
        try:
            return cls(
                lms_url=env.get("ULTRALIGHT_LMS_URL", defaults.lms_url),
                player_id=env.get("ULTRALIGHT_PLAYER_ID") or None,
                window_size=int(env.get("ULTRALIGHT_WINDOW_SIZE", defaults.window_size)),
                status_interval=float(env.get("ULTRALIGHT_STATUS_INTERVAL", defaults.status_interval)),
                notice_seconds=float(env.get("ULTRALIGHT_NOTICE_SECONDS", defaults.notice_seconds)),
                request_timeout=float(env.get("ULTRALIGHT_REQUEST_TIMEOUT", defaults.request_timeout)),
                allowed_origins=_origins(env.get("ALLOWED_ORIGINS", "*")),
                log_level=env.get("ULTRALIGHT_LOG_LEVEL", defaults.log_level).upper(),
            )
        except ValueError as e:
            raise ValueError(f"Invalid ultralight setting: {e}") from e

    def override(self, **values: Any) -> Settings:
        """Return a copy with the given non-None values replaced (CLI flags)."""
        return replace(self, **{k: v for k, v in values.items() if v is not None})
