"""Repository layer responsible for fetching hut availability upstream."""

from __future__ import annotations

import asyncio
import time
from threading import RLock
from typing import Any, Callable, Iterable, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from backend.domain.models import AvailabilityRecord, HutStatus, PercentageBand
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class HutApiError(Exception):
    """Raised when a hut's availability cannot be fetched or decoded."""


class AvailabilityPayload(BaseModel):
    """One upstream availability entry as published by the reservation API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: str = Field(min_length=1)
    date_formatted: Optional[str] = Field(default=None, alias="dateFormatted")
    hut_status: str = Field(default="UNKNOWN", alias="hutStatus")
    percentage: str = Field(default="UNKNOWN")
    free_beds: Optional[int] = Field(default=None, alias="freeBeds")
    free_beds_per_category: dict[str, Optional[int]] = Field(
        default_factory=dict,
        alias="freeBedsPerCategory",
    )
    total_sleeping_places: Optional[int] = Field(default=None, alias="totalSleepingPlaces")

    @field_validator("hut_status", "percentage", mode="before")
    @classmethod
    def coerce_missing_enum(cls, value: Any) -> Any:
        return "UNKNOWN" if value is None else value

    @field_validator("free_beds_per_category", mode="before")
    @classmethod
    def coerce_missing_categories(cls, value: Any) -> Any:
        return {} if value is None else value

    def to_record(self) -> AvailabilityRecord:
        return AvailabilityRecord(
            date=self.date,
            hut_status=HutStatus.parse(self.hut_status),
            percentage=PercentageBand.parse(self.percentage),
            free_beds=self.free_beds,
            free_beds_per_category={
                category: beds
                for category, beds in self.free_beds_per_category.items()
                if beds is not None
            },
            total_sleeping_places=self.total_sleeping_places,
            date_formatted=self.date_formatted,
        )


def parse_availability_payload(payload: Any, hut_id: Optional[int] = None) -> list[AvailabilityRecord]:
    """Decode an upstream list, dropping entries that fail validation."""
    if not isinstance(payload, list):
        logger.warning(
            "Availability payload is not a list | hut_id=%s | type=%s",
            hut_id,
            type(payload).__name__,
        )
        return []

    records: list[AvailabilityRecord] = []
    skipped = 0
    for entry in payload:
        try:
            records.append(AvailabilityPayload.model_validate(entry).to_record())
        except ValidationError:
            skipped += 1
    if skipped:
        logger.warning(
            "Skipped malformed availability entries | hut_id=%s | skipped=%s | kept=%s",
            hut_id,
            skipped,
            len(records),
        )
    return records


class HutAvailabilityRepository:
    """Fetches and briefly caches per-hut availability from the reservation API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport
        self._clock = clock
        self._cache: dict[int, tuple[float, list[AvailabilityRecord]]] = {}
        self._lock = RLock()

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._settings.hut_api_base_url,
            timeout=self._settings.hut_api_timeout_seconds,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    def _retry_delay(self, attempt: int) -> float:
        return min(
            self._settings.hut_api_retry_base_delay_seconds * (2**attempt),
            self._settings.hut_api_retry_max_delay_seconds,
        )

    def _cached(self, hut_id: int) -> Optional[list[AvailabilityRecord]]:
        with self._lock:
            entry = self._cache.get(hut_id)
            if entry is None:
                return None
            stored_at, records = entry
            if self._clock() - stored_at > self._settings.availability_cache_ttl_seconds:
                del self._cache[hut_id]
                return None
            return list(records)

    def _store(self, hut_id: int, records: list[AvailabilityRecord]) -> None:
        with self._lock:
            now = self._clock()
            ttl = self._settings.availability_cache_ttl_seconds
            expired = [key for key, (stored_at, _) in self._cache.items() if now - stored_at > ttl]
            for key in expired:
                del self._cache[key]
            self._cache[hut_id] = (now, list(records))

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    async def _request_availability(self, client: httpx.AsyncClient, hut_id: int) -> Any:
        max_retries = max(0, self._settings.hut_api_max_retries)
        last_error: Optional[Exception] = None
        for attempt in range(max_retries + 1):
            try:
                response = await client.get(
                    self._settings.hut_api_availability_path,
                    params={"hutId": hut_id},
                )
                response.raise_for_status()
                return response.json()
            except (httpx.HTTPError, ValueError) as exc:
                last_error = exc
                if attempt >= max_retries:
                    break
                delay = self._retry_delay(attempt)
                logger.warning(
                    "Availability fetch failed, retrying | hut_id=%s | attempt=%s | delay=%.2f | error=%s",
                    hut_id,
                    attempt + 1,
                    delay,
                    exc,
                )
                await asyncio.sleep(delay)
        raise HutApiError(
            f"Failed to fetch availability for hut {hut_id}: {last_error}"
        ) from last_error

    async def fetch_hut_availability(
        self,
        hut_id: int,
        client: Optional[httpx.AsyncClient] = None,
    ) -> list[AvailabilityRecord]:
        cached = self._cached(hut_id)
        if cached is not None:
            return cached

        if client is None:
            async with self._new_client() as own_client:
                payload = await self._request_availability(own_client, hut_id)
        else:
            payload = await self._request_availability(client, hut_id)

        records = parse_availability_payload(payload, hut_id=hut_id)
        self._store(hut_id, records)
        logger.debug("Availability fetched | hut_id=%s | records=%s", hut_id, len(records))
        return records

    async def _fetch_or_empty(
        self,
        client: httpx.AsyncClient,
        hut_id: int,
    ) -> list[AvailabilityRecord]:
        try:
            return await self.fetch_hut_availability(hut_id, client=client)
        except HutApiError as exc:
            logger.warning("Availability unavailable, treating as empty | hut_id=%s | error=%s", hut_id, exc)
            return []

    async def fetch_availability_map(
        self,
        hut_ids: Iterable[int],
    ) -> dict[int, list[AvailabilityRecord]]:
        """Fetch every distinct hut concurrently; failures and placeholders map to []."""
        distinct_ids = list(dict.fromkeys(hut_ids))
        availability: dict[int, list[AvailabilityRecord]] = {
            hut_id: [] for hut_id in distinct_ids if hut_id < 0
        }
        remote_ids = [hut_id for hut_id in distinct_ids if hut_id >= 0]
        if not remote_ids:
            return availability

        async with self._new_client() as client:
            results = await asyncio.gather(
                *(self._fetch_or_empty(client, hut_id) for hut_id in remote_ids)
            )
        availability.update(zip(remote_ids, results))
        logger.info(
            "Availability map fetched | huts=%s | empty=%s",
            len(remote_ids),
            sum(1 for records in results if not records),
        )
        return availability
