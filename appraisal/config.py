"""Environment-driven configuration for the appraisal engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

LOG_LEVEL = os.environ.get("APPRAISAL_LOG_LEVEL", "INFO")


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    return int(value)


@dataclass(frozen=True)
class EngineSettings:
    """Runtime settings shared by the dispatcher, cache and simulation engine."""

    request_timeout: float = 30.0
    shutdown_timeout: float = 5.0
    start_method: str = "spawn"
    cache_size: int = 50
    cache_ttl: float = 300.0
    random_seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive.")
        if self.shutdown_timeout <= 0:
            raise ValueError("shutdown_timeout must be positive.")
        if self.cache_size < 0:
            raise ValueError("cache_size cannot be negative.")
        if self.cache_ttl <= 0:
            raise ValueError("cache_ttl must be positive.")

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from ``APPRAISAL_*`` environment variables."""
        return cls(
            request_timeout=float(os.environ.get("APPRAISAL_REQUEST_TIMEOUT", "30")),
            shutdown_timeout=float(os.environ.get("APPRAISAL_SHUTDOWN_TIMEOUT", "5")),
            start_method=os.environ.get("APPRAISAL_START_METHOD", "spawn"),
            cache_size=int(os.environ.get("APPRAISAL_CACHE_SIZE", "50")),
            cache_ttl=float(os.environ.get("APPRAISAL_CACHE_TTL", "300")),
            random_seed=_optional_int(os.environ.get("APPRAISAL_RANDOM_SEED")),
        )


__all__ = ["EngineSettings", "LOG_LEVEL"]
