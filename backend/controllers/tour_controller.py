"""HTTP controller layer for tour-date matching and hut availability."""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from backend.controllers.dependencies import get_hut_repository, get_matching_service
from backend.domain.constraints import clamp_group_size, parse_hut_ids
from backend.domain.models import AvailabilityRecord, Hut, TourOption
from backend.repository.hut_repository import (
    HutApiError,
    HutAvailabilityRepository,
    parse_availability_payload,
)
from backend.services.matching_service import (
    TourMatchingService,
    TourValidationError,
    effective_beds,
)
from backend.utils.config import get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(tags=["tours"])


class HutRequest(BaseModel):
    hut_id: int
    hut_name: str = Field(default="", max_length=200)


class TourDatesRequest(BaseModel):
    """Ordered hut selection plus optional pre-fetched raw availability."""

    huts: list[HutRequest] = Field(default_factory=list)
    group_size: int = Field(
        default=settings.default_group_size,
        ge=settings.min_group_size,
        le=settings.max_group_size,
    )
    availability: Optional[dict[int, list[dict[str, Any]]]] = None


class AvailabilityRecordResponse(BaseModel):
    date: str
    date_formatted: Optional[str] = None
    hut_status: str
    percentage: str
    free_beds: Optional[int] = None
    free_beds_per_category: dict[str, int] = Field(default_factory=dict)
    total_sleeping_places: Optional[int] = None


class TourLegResponse(BaseModel):
    hut_id: int
    hut_name: str
    date: dt.date
    availability: Optional[AvailabilityRecordResponse] = None
    effective_beds: int = Field(ge=0)


class TourOptionResponse(BaseModel):
    start_date: dt.date
    end_date: dt.date
    min_available_beds: int = Field(ge=0)
    status: str
    legs: list[TourLegResponse]


class TourDatesResponse(BaseModel):
    group_size: int = Field(gt=0)
    horizon_start: Optional[dt.date] = None
    horizon_end: Optional[dt.date] = None
    tour_found_count: int = Field(ge=0)
    options: list[TourOptionResponse]


class TourCalendarRow(BaseModel):
    start_date: dt.date
    end_date: dt.date
    min_available_beds: int = Field(ge=0)
    status: str


class TourCalendarResponse(BaseModel):
    group_size: int = Field(gt=0)
    rows: list[TourCalendarRow]


class HealthResponse(BaseModel):
    status: str
    version: str


def _record_response(record: Optional[AvailabilityRecord]) -> Optional[AvailabilityRecordResponse]:
    if record is None:
        return None
    return AvailabilityRecordResponse(
        date=record.date,
        date_formatted=record.date_formatted,
        hut_status=record.hut_status.value,
        percentage=record.percentage.value,
        free_beds=record.free_beds,
        free_beds_per_category=dict(record.free_beds_per_category),
        total_sleeping_places=record.total_sleeping_places,
    )


def _option_response(option: TourOption, option_status: str) -> TourOptionResponse:
    return TourOptionResponse(
        start_date=option.start_date,
        end_date=option.end_date,
        min_available_beds=option.min_available_beds,
        status=option_status,
        legs=[
            TourLegResponse(
                hut_id=leg.hut.hut_id,
                hut_name=leg.hut.hut_name,
                date=leg.date,
                availability=_record_response(leg.availability),
                effective_beds=effective_beds(leg.availability),
            )
            for leg in option.legs
        ],
    )


def _tour_dates_response(
    service: TourMatchingService,
    huts: list[Hut],
    availability_map: dict[int, list[AvailabilityRecord]],
    group_size: int,
) -> TourDatesResponse:
    options = service.find_tour_dates(huts, availability_map, group_size=group_size)
    statuses = [service.status_for(option, group_size).value for option in options]
    return TourDatesResponse(
        group_size=group_size,
        horizon_start=options[0].start_date if options else None,
        horizon_end=options[-1].start_date if options else None,
        tour_found_count=sum(
            1 for option in options if option.min_available_beds >= group_size
        ),
        options=[
            _option_response(option, option_status)
            for option, option_status in zip(options, statuses)
        ],
    )


def _query_selection(huts: Optional[str], size: Optional[str]) -> tuple[list[Hut], int]:
    """Read ``?huts=1,2&size=3`` leniently; bad ids are dropped, bad sizes clamped."""
    selection = [Hut(hut_id=hut_id, hut_name="") for hut_id in parse_hut_ids(huts)]
    group_size = clamp_group_size(
        size,
        settings.default_group_size,
        settings.min_group_size,
        settings.max_group_size,
    )
    return selection, group_size


def _matching_failure(exc: Exception) -> HTTPException:
    if isinstance(exc, TourValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    logger.exception("Unexpected tour matching failure")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to compute tour dates",
    )


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", version=settings.app_version)


@router.post(
    "/tour_dates",
    response_model=TourDatesResponse,
    status_code=status.HTTP_200_OK,
)
async def tour_dates(
    payload: TourDatesRequest,
    service: TourMatchingService = Depends(get_matching_service),
    repository: HutAvailabilityRepository = Depends(get_hut_repository),
) -> TourDatesResponse:
    """Match start dates for the selected huts, fetching availability when not supplied."""
    huts = [Hut(hut_id=item.hut_id, hut_name=item.hut_name) for item in payload.huts]
    try:
        if payload.availability is None:
            availability_map = await repository.fetch_availability_map(
                hut.hut_id for hut in huts
            )
        else:
            availability_map = {
                hut_id: parse_availability_payload(entries, hut_id=hut_id)
                for hut_id, entries in payload.availability.items()
            }
        return _tour_dates_response(service, huts, availability_map, payload.group_size)
    except Exception as exc:
        raise _matching_failure(exc) from exc


@router.get(
    "/tour_dates",
    response_model=TourDatesResponse,
    status_code=status.HTTP_200_OK,
)
async def tour_dates_from_query(
    huts: Optional[str] = Query(default=None),
    size: Optional[str] = Query(default=None),
    service: TourMatchingService = Depends(get_matching_service),
    repository: HutAvailabilityRepository = Depends(get_hut_repository),
) -> TourDatesResponse:
    """Shareable-link form of the matcher: ``GET /tour_dates?huts=1,2&size=3``."""
    selection, group_size = _query_selection(huts, size)
    try:
        availability_map = await repository.fetch_availability_map(
            hut.hut_id for hut in selection
        )
        return _tour_dates_response(service, selection, availability_map, group_size)
    except Exception as exc:
        raise _matching_failure(exc) from exc


@router.get(
    "/tour_calendar",
    response_model=TourCalendarResponse,
    status_code=status.HTTP_200_OK,
)
async def tour_calendar(
    huts: Optional[str] = Query(default=None),
    size: Optional[str] = Query(default=None),
    service: TourMatchingService = Depends(get_matching_service),
    repository: HutAvailabilityRepository = Depends(get_hut_repository),
) -> TourCalendarResponse:
    """One row per start date with its bottleneck beds and traffic-light status."""
    selection, group_size = _query_selection(huts, size)
    try:
        availability_map = await repository.fetch_availability_map(
            hut.hut_id for hut in selection
        )
        options = service.find_tour_dates(selection, availability_map, group_size=group_size)
        frame = service.summarize(options, group_size)
        rows = [
            TourCalendarRow(
                start_date=row.start_date,
                end_date=row.end_date,
                min_available_beds=int(row.min_available_beds),
                status=row.status,
            )
            for row in frame.itertuples(index=False)
        ]
        return TourCalendarResponse(group_size=group_size, rows=rows)
    except Exception as exc:
        raise _matching_failure(exc) from exc


@router.get(
    "/huts/{hut_id}/availability",
    response_model=list[AvailabilityRecordResponse],
    status_code=status.HTTP_200_OK,
)
async def hut_availability(
    hut_id: int,
    repository: HutAvailabilityRepository = Depends(get_hut_repository),
) -> list[AvailabilityRecordResponse]:
    """Relay one hut's parsed availability; placeholder huts have none."""
    if hut_id < 0:
        return []
    try:
        records = await repository.fetch_hut_availability(hut_id)
    except HutApiError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc
    return [_record_response(record) for record in records]
