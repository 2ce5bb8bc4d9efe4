"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import DeviceSummary, QueryResult, Sample
from services.aggregator import AggregationSummary
from services.ingest import IngestReport


class TemperatureReading(BaseModel):
    """A single reading submitted for ingestion."""

    device_id: str = Field(..., description="Identifier of the reporting device.")
    device_type: str = Field(..., description="Type tag of the reporting device.")
    timestamp: datetime = Field(..., description="RFC 3339 sample time.")
    temperature: float = Field(..., allow_inf_nan=False)


class DataPoint(BaseModel):
    timestamp: datetime
    temperature: float

    @classmethod
    def from_sample(cls, sample: Sample) -> "DataPoint":
        return cls(timestamp=sample.timestamp, temperature=sample.value)


class DeviceTemperatures(BaseModel):
    """Samples of one device within the requested time range."""

    device_id: str
    device_type: str
    data_points: List[DataPoint] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: QueryResult) -> "DeviceTemperatures":
        return cls(
            device_id=result.device_id,
            device_type=result.device_type,
            data_points=[DataPoint.from_sample(sample) for sample in result.samples],
        )


class TemperatureSummary(BaseModel):
    """Aggregate statistics over a device's samples in a time range."""

    device_id: str
    device_type: str
    sample_count: int = Field(..., ge=0)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    mean_value: Optional[float] = None
    first_timestamp: Optional[datetime] = None
    last_timestamp: Optional[datetime] = None

    @classmethod
    def from_summary(
        cls, result: QueryResult, summary: AggregationSummary
    ) -> "TemperatureSummary":
        return cls(
            device_id=result.device_id,
            device_type=result.device_type,
            sample_count=summary.sample_count,
            min_value=summary.min_value,
            max_value=summary.max_value,
            mean_value=summary.mean_value,
            first_timestamp=summary.first_timestamp,
            last_timestamp=summary.last_timestamp,
        )


class DeviceInfo(BaseModel):
    device_id: str
    device_type: str
    sample_count: int = Field(..., ge=0)
    first_timestamp: Optional[datetime] = None
    last_timestamp: Optional[datetime] = None

    @classmethod
    def from_summary(cls, summary: DeviceSummary) -> "DeviceInfo":
        return cls(
            device_id=summary.device_id,
            device_type=summary.device_type,
            sample_count=summary.sample_count,
            first_timestamp=summary.first_timestamp,
            last_timestamp=summary.last_timestamp,
        )


class SkippedRow(BaseModel):
    """Details about a CSV row that was skipped."""

    row_number: int = Field(..., ge=1)
    reason: str


class ImportResponse(BaseModel):
    recorded_count: int = Field(..., ge=0)
    devices: List[str] = Field(default_factory=list)
    errors: List[SkippedRow] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: IngestReport) -> "ImportResponse":
        return cls(
            recorded_count=report.recorded_count,
            devices=list(report.devices),
            errors=[
                SkippedRow(row_number=error.row_number, reason=error.reason)
                for error in report.errors
            ],
        )
