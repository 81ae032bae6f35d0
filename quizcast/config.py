"""Process configuration, read once from the environment at startup."""
from __future__ import annotations

import os
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import AUDIENCE_ALL, AUDIENCES


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Runtime settings for the broadcast server."""

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    log_file: Optional[str] = None
    # "all" fans out to hosts and players, "hosts" to hosts only.
    broadcast_audience: str = AUDIENCE_ALL
    # Legacy behaviour: a counts-request also subscribes the caller as a host.
    counts_request_subscribes: bool = False
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator("broadcast_audience")
    @classmethod
    def _check_audience(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in AUDIENCES:
            raise ValueError(f"broadcast_audience must be one of {sorted(AUDIENCES)}")
        return value

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("QUIZCAST_CORS_ORIGINS", "*")
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8080")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            broadcast_audience=os.getenv("QUIZCAST_BROADCAST_AUDIENCE", AUDIENCE_ALL),
            counts_request_subscribes=_env_flag("QUIZCAST_COUNTS_REQUEST_SUBSCRIBES"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


__all__ = ["Settings"]
