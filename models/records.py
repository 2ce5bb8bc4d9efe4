"""Domain models shared across the store and services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as a timezone-aware UTC datetime.

    Naive datetimes are assumed to already be expressed in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True, slots=True)
class Sample:
    """One timestamped temperature reading."""

    timestamp: datetime
    value: float


@dataclass(slots=True)
class DeviceRecord:
    """Per-device type tag plus its timestamp-ordered samples."""

    device_type: str
    samples: List[Sample] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class QueryResult:
    device_id: str
    device_type: str
    samples: Tuple[Sample, ...] = ()

    def __len__(self) -> int:
        return len(self.samples)


@dataclass(frozen=True, slots=True)
class DeviceSummary:
    device_id: str
    device_type: str
    sample_count: int
    first_timestamp: Optional[datetime]
    last_timestamp: Optional[datetime]
