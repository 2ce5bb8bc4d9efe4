"""Summary statistics over temperature samples."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from models.records import Sample


@dataclass
class AggregationSummary:
    """Computed statistics for a run of samples."""

    sample_count: int = 0
    min_value: float | None = None
    max_value: float | None = None
    mean_value: float | None = None
    first_timestamp: datetime | None = None
    last_timestamp: datetime | None = None


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(self, samples: Iterable[Sample]) -> AggregationSummary:
        summary = AggregationSummary()
        total = 0.0

        for sample in samples:
            summary.sample_count += 1
            value = sample.value
            total += value

            if summary.min_value is None or value < summary.min_value:
                summary.min_value = value
            if summary.max_value is None or value > summary.max_value:
                summary.max_value = value

            if summary.first_timestamp is None or sample.timestamp < summary.first_timestamp:
                summary.first_timestamp = sample.timestamp
            if summary.last_timestamp is None or sample.timestamp > summary.last_timestamp:
                summary.last_timestamp = sample.timestamp

        if summary.sample_count:
            summary.mean_value = total / summary.sample_count

        return summary
