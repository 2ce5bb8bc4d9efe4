"""In-memory per-device temperature time series."""

from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right, insort
from datetime import datetime
from functools import lru_cache
from operator import attrgetter
from typing import Dict, List, Optional, Union

from datastore.rwlock import ReadWriteLock
from models.records import DeviceRecord, DeviceSummary, QueryResult, Sample, ensure_utc
from settings import DEFAULT_MAX_SAMPLES_PER_DEVICE, get_settings

logger = logging.getLogger(__name__)

MAX_SAMPLES_PER_DEVICE = DEFAULT_MAX_SAMPLES_PER_DEVICE

_timestamp_of = attrgetter("timestamp")


class StoreError(Exception):
    """Base class for failures reported by :class:`TimeSeriesStore`."""


class InvalidInputError(StoreError, ValueError):
    """Raised for empty device identifiers or device types."""


class InvalidRangeError(StoreError, ValueError):
    """Raised when a query's end precedes its start."""


class DeviceNotFoundError(StoreError, KeyError):
    """Raised when querying a device that has never been recorded."""

    def __init__(self, device_id: str) -> None:
        super().__init__(device_id)
        self.device_id = device_id

    def __str__(self) -> str:
        return f"No data recorded for device {self.device_id!r}."


class TimeSeriesStore:
    """Thread-safe ingest and range queries over per-device samples.

    Samples are kept sorted by timestamp on every write so that range queries
    reduce to two binary searches. A single readers-writer lock guards the
    whole mapping: ``record`` takes the write side, reads take the shared side.
    """

    def __init__(
        self, max_samples_per_device: Optional[int] = MAX_SAMPLES_PER_DEVICE
    ) -> None:
        if max_samples_per_device is not None and max_samples_per_device <= 0:
            raise ValueError("max_samples_per_device must be positive or None.")
        self.max_samples_per_device = max_samples_per_device
        self._lock = ReadWriteLock()
        self._devices: Dict[str, DeviceRecord] = {}
        self.initialize()

    def initialize(self) -> None:
        """Reset the store to an empty mapping."""
        with self._lock.write_locked():
            self._devices = {}

    def record(
        self,
        device_id: str,
        device_type: str,
        timestamp: datetime,
        value: float,
    ) -> None:
        """Insert a sample for ``device_id`` keeping the series timestamp-ordered."""
        if not device_id:
            raise InvalidInputError("device ID cannot be empty")
        if not device_type:
            raise InvalidInputError("device type cannot be empty")

        try:
            sample_time = ensure_utc(timestamp)
        except OverflowError as exc:
            raise InvalidInputError("timestamp is outside the supported range") from exc
        sample = Sample(timestamp=sample_time, value=float(value))

        with self._lock.write_locked():
            device = self._devices.get(device_id)
            if device is None:
                device = DeviceRecord(device_type=device_type)
                self._devices[device_id] = device
            elif device.device_type != device_type:
                logger.warning(
                    "Device type changed; keeping latest",
                    extra={
                        "device_id": device_id,
                        "device_type": device_type,
                        "previous_type": device.device_type,
                    },
                )
                device.device_type = device_type

            # insort places equal timestamps after existing ones.
            insort(device.samples, sample, key=_timestamp_of)
            evicted = self._enforce_capacity(device)
            sample_count = len(device.samples)

        logger.debug(
            "Recorded sample",
            extra={
                "device_id": device_id,
                "device_type": device_type,
                "sample_count": sample_count,
            },
        )
        if evicted:
            logger.info(
                "Evicted oldest samples over capacity",
                extra={"device_id": device_id, "evicted_count": evicted},
            )

    def query(self, device_id: str, start: datetime, end: datetime) -> QueryResult:
        """Return the samples of ``device_id`` with ``start <= timestamp <= end``.

        The returned samples are an owned tuple; later writes never show
        through it.
        """
        if not device_id:
            raise InvalidInputError("device ID cannot be empty")
        if device_id not in self._devices:
            raise DeviceNotFoundError(device_id)

        try:
            start = ensure_utc(start)
            end = ensure_utc(end)
        except OverflowError as exc:
            raise InvalidRangeError("time range is outside the supported range") from exc
        if end < start:
            raise InvalidRangeError("end time cannot be before start time")

        with self._lock.read_locked():
            device = self._devices.get(device_id)
            if device is None:
                # The store was re-initialized after the existence check.
                raise DeviceNotFoundError(device_id)

            samples = device.samples
            empty = QueryResult(device_id=device_id, device_type=device.device_type)
            if not samples:
                return empty
            if start > samples[-1].timestamp or end < samples[0].timestamp:
                return empty

            lower = bisect_left(samples, start, key=_timestamp_of)
            upper = bisect_right(samples, end, key=_timestamp_of)
            return QueryResult(
                device_id=device_id,
                device_type=device.device_type,
                samples=tuple(samples[lower:upper]),
            )

    def device_count(self) -> int:
        with self._lock.read_locked():
            return len(self._devices)

    def list_devices(self) -> List[DeviceSummary]:
        """Describe every known device, ordered by identifier."""
        with self._lock.read_locked():
            return [
                DeviceSummary(
                    device_id=device_id,
                    device_type=device.device_type,
                    sample_count=len(device.samples),
                    first_timestamp=device.samples[0].timestamp if device.samples else None,
                    last_timestamp=device.samples[-1].timestamp if device.samples else None,
                )
                for device_id, device in sorted(self._devices.items())
            ]

    def __contains__(self, device_id: object) -> bool:
        with self._lock.read_locked():
            return device_id in self._devices

    def _enforce_capacity(self, device: DeviceRecord) -> int:
        limit = self.max_samples_per_device
        if limit is None:
            return 0
        excess = len(device.samples) - limit
        if excess <= 0:
            return 0
        del device.samples[:excess]
        return excess


class _FromSettings:
    def __repr__(self) -> str:
        return "FROM_SETTINGS"


FROM_SETTINGS = _FromSettings()


@lru_cache
def build_default_store(
    max_samples_per_device: Union[int, None, _FromSettings] = FROM_SETTINGS,
) -> TimeSeriesStore:
    """Factory for the process-wide store used by the HTTP layer.

    ``max_samples_per_device`` defaults to the configured bound; ``None`` means
    unbounded, as it does for :class:`TimeSeriesStore`.
    """
    if isinstance(max_samples_per_device, _FromSettings):
        limit = get_settings().max_samples_per_device
    else:
        limit = max_samples_per_device
    return TimeSeriesStore(max_samples_per_device=limit)
