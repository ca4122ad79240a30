"""Per-hut calendar-day lookup over sparse availability records."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from backend.domain.models import AvailabilityRecord, Hut
from backend.utils.dates import calendar_key
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class AvailabilityIndex:
    """Maps a calendar day to the first record published for it."""

    def __init__(self, records: Iterable[AvailabilityRecord] = ()) -> None:
        self._by_day: dict[str, AvailabilityRecord] = {}
        self._skipped = 0
        self._duplicates = 0
        for record in records:
            key = calendar_key(getattr(record, "date", None))
            if key is None:
                self._skipped += 1
                continue
            if key in self._by_day:
                self._duplicates += 1
                continue
            self._by_day[key] = record

    @property
    def skipped_records(self) -> int:
        return self._skipped

    @property
    def duplicate_records(self) -> int:
        return self._duplicates

    def get(self, day: date) -> Optional[AvailabilityRecord]:
        key = calendar_key(day)
        if key is None:
            return None
        return self._by_day.get(key)

    def __len__(self) -> int:
        return len(self._by_day)


def build_indices(
    huts: Sequence[Hut],
    availability_map: Mapping[int, Sequence[AvailabilityRecord]],
) -> dict[int, AvailabilityIndex]:
    """Build one index per distinct hut id; absent ids get an empty index."""
    indices: dict[int, AvailabilityIndex] = {}
    for hut in huts:
        if hut.hut_id in indices:
            continue
        index = AvailabilityIndex(availability_map.get(hut.hut_id) or ())
        if index.skipped_records or index.duplicate_records:
            logger.debug(
                "Availability index built | hut_id=%s | days=%s | skipped=%s | duplicates=%s",
                hut.hut_id,
                len(index),
                index.skipped_records,
                index.duplicate_records,
            )
        indices[hut.hut_id] = index
    return indices
