"""HTTP route definitions for the service."""

from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from app.schemas import (
    DeviceInfo,
    DeviceTemperatures,
    ImportResponse,
    TemperatureReading,
    TemperatureSummary,
)
from datastore.timeseries import (
    DeviceNotFoundError,
    InvalidInputError,
    InvalidRangeError,
    TimeSeriesStore,
    build_default_store,
)
from models.records import QueryResult
from services.aggregator import Aggregator
from services.ingest import IngestService

router = APIRouter()

_OPEN_START = datetime.min.replace(tzinfo=timezone.utc)
_OPEN_END = datetime.max.replace(tzinfo=timezone.utc)


def get_store() -> TimeSeriesStore:
    return build_default_store()


def _run_query(
    store: TimeSeriesStore,
    device_id: str,
    start: Optional[datetime],
    end: Optional[datetime],
) -> QueryResult:
    try:
        return store.query(
            device_id,
            start if start is not None else _OPEN_START,
            end if end is not None else _OPEN_END,
        )
    except DeviceNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except (InvalidInputError, InvalidRangeError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.post(
    "/temperatures",
    status_code=status.HTTP_201_CREATED,
    response_model=TemperatureReading,
    summary="Record a temperature reading for a device.",
)
def record_temperature(
    reading: TemperatureReading,
    store: TimeSeriesStore = Depends(get_store),
) -> TemperatureReading:
    try:
        store.record(
            reading.device_id,
            reading.device_type,
            reading.timestamp,
            reading.temperature,
        )
    except InvalidInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return reading


@router.post(
    "/temperatures/import",
    response_model=ImportResponse,
    summary="Record every valid reading of a CSV file.",
)
def import_temperatures(
    file: UploadFile = File(
        ...,
        description="CSV with device_id, device_type, timestamp and temperature columns.",
    ),
    store: TimeSeriesStore = Depends(get_store),
) -> ImportResponse:
    try:
        file.file.seek(0)
        contents = file.file.read()
    finally:
        file.file.close()
    if not contents:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty.",
        )
    try:
        text = contents.decode("utf-8-sig")
        report = IngestService(store).ingest_csv(io.StringIO(text), source=file.filename)
    except ValueError as exc:
        # UnicodeDecodeError is a ValueError too.
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return ImportResponse.from_report(report)


@router.get(
    "/devices",
    response_model=List[DeviceInfo],
    summary="List known devices with their sample counts.",
)
def list_devices(
    store: TimeSeriesStore = Depends(get_store),
) -> List[DeviceInfo]:
    return [DeviceInfo.from_summary(summary) for summary in store.list_devices()]


@router.get(
    "/devices/{device_id}/temperatures",
    response_model=DeviceTemperatures,
    summary="Fetch a device's readings within a time range.",
)
def get_temperatures(
    device_id: str,
    start: Optional[datetime] = Query(None, description="Inclusive range start (RFC 3339)."),
    end: Optional[datetime] = Query(None, description="Inclusive range end (RFC 3339)."),
    store: TimeSeriesStore = Depends(get_store),
) -> DeviceTemperatures:
    result = _run_query(store, device_id, start, end)
    return DeviceTemperatures.from_result(result)


@router.get(
    "/devices/{device_id}/temperatures/summary",
    response_model=TemperatureSummary,
    summary="Aggregate a device's readings within a time range.",
)
def get_temperature_summary(
    device_id: str,
    start: Optional[datetime] = Query(None, description="Inclusive range start (RFC 3339)."),
    end: Optional[datetime] = Query(None, description="Inclusive range end (RFC 3339)."),
    store: TimeSeriesStore = Depends(get_store),
) -> TemperatureSummary:
    result = _run_query(store, device_id, start, end)
    summary = Aggregator().aggregate(result.samples)
    return TemperatureSummary.from_summary(result, summary)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
