"""Bulk ingestion of CSV temperature readings into the store."""

from __future__ import annotations

import csv
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, TextIO

from datastore.timeseries import InvalidInputError, TimeSeriesStore

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("device_id", "device_type", "timestamp", "temperature")


@dataclass(frozen=True)
class RowError:
    row_number: int
    reason: str


@dataclass
class IngestReport:
    """Outcome of ingesting one CSV document."""

    recorded_count: int = 0
    devices: List[str] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 / ISO 8601 timestamp into an aware UTC datetime."""
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError("Invalid timestamp format") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError as exc:
        raise ValueError("Invalid timestamp format") from exc


class IngestService:
    """Validates CSV rows and records the good ones, skipping the rest."""

    def __init__(self, store: TimeSeriesStore) -> None:
        self.store = store

    def ingest_csv(self, stream: TextIO, source: Optional[str] = None) -> IngestReport:
        reader = csv.DictReader(stream)
        if not reader.fieldnames:
            raise ValueError("CSV file is missing a header row.")

        normalized = {name.lower().strip(): name for name in reader.fieldnames if name}
        missing = [column for column in REQUIRED_COLUMNS if column not in normalized]
        if missing:
            raise ValueError(f"CSV missing required columns: {', '.join(missing)}")

        report = IngestReport()
        devices: set[str] = set()

        for row_number, row in enumerate(reader, start=2):
            device_id = (row.get(normalized["device_id"]) or "").strip()
            device_type = (row.get(normalized["device_type"]) or "").strip()
            timestamp_raw = (row.get(normalized["timestamp"]) or "").strip()
            temperature_raw = (row.get(normalized["temperature"]) or "").strip()

            reason: Optional[str] = None
            if not device_id:
                reason = "missing device_id"
            elif not device_type:
                reason = "missing device_type"
            elif not timestamp_raw:
                reason = "missing timestamp"
            elif not temperature_raw:
                reason = "missing temperature"

            if reason is None:
                try:
                    timestamp = parse_timestamp(timestamp_raw)
                except ValueError:
                    reason = "invalid timestamp"

            if reason is None:
                try:
                    temperature = float(temperature_raw)
                except ValueError:
                    reason = "invalid numeric value"
                else:
                    if not math.isfinite(temperature):
                        reason = "invalid numeric value"

            if reason is None:
                try:
                    self.store.record(device_id, device_type, timestamp, temperature)
                except InvalidInputError as exc:
                    reason = str(exc)

            if reason is not None:
                self._skip_row(report, row_number, reason, source)
                continue

            report.recorded_count += 1
            devices.add(device_id)

        report.devices = sorted(devices)
        logger.info(
            "Ingested CSV readings",
            extra={
                "source": source,
                "recorded_count": report.recorded_count,
                "error_count": len(report.errors),
            },
        )
        return report

    @staticmethod
    def _skip_row(report: IngestReport, row_number: int, reason: str, source: Optional[str]) -> None:
        report.errors.append(RowError(row_number=row_number, reason=reason))
        logger.warning(
            "Skipping row %s: %s",
            row_number,
            reason,
            extra={"source": source, "row_number": row_number, "reason": reason},
        )
