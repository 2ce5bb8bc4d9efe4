from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


DEFAULT_MAX_SAMPLES_PER_DEVICE = 10_000

_MAX_SAMPLES_ENV = "TIMESERIES_MAX_SAMPLES_PER_DEVICE"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    max_samples_per_device: Optional[int]
    log_level: str


def _read_max_samples(default: int) -> Optional[int]:
    value = os.getenv(_MAX_SAMPLES_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    if parsed == 0:
        # Zero turns the per-device bound off.
        return None
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        max_samples_per_device=_read_max_samples(DEFAULT_MAX_SAMPLES_PER_DEVICE),
        log_level=_read_log_level("INFO"),
    )
