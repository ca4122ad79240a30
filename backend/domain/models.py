"""Domain models for hut availability and multi-day tour matching."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class HutStatus(str, Enum):
    SERVICED = "SERVICED"
    NOT_SERVICED = "NOT_SERVICED"
    CLOSED = "CLOSED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: object) -> "HutStatus":
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.UNKNOWN


class PercentageBand(str, Enum):
    AVAILABLE = "AVAILABLE"
    LIMITED = "LIMITED"
    NEARLY_FULL = "NEARLY_FULL"
    FULL = "FULL"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: object) -> "PercentageBand":
        normalized = str(value).strip().upper().replace(" ", "_")
        try:
            return cls(normalized)
        except ValueError:
            return cls.UNKNOWN


class AvailabilityStatus(str, Enum):
    """How well a tour's binding bed count covers a group."""

    GOOD = "good"
    LIMITED = "limited"
    NONE = "none"


@dataclass(frozen=True)
class Hut:
    hut_id: int
    hut_name: str

    @property
    def is_placeholder(self) -> bool:
        """Negative ids mark user-inserted legs without real data."""
        return self.hut_id < 0


@dataclass(frozen=True)
class AvailabilityRecord:
    """One hut's published status for one calendar day.

    ``date`` keeps the upstream string untouched; calendar-day identity is
    derived from it by ``backend.utils.dates.calendar_key``.
    """

    date: str
    hut_status: HutStatus
    percentage: PercentageBand
    free_beds: Optional[int] = None
    free_beds_per_category: dict[str, int] = field(default_factory=dict)
    total_sleeping_places: Optional[int] = None
    date_formatted: Optional[str] = None


@dataclass(frozen=True)
class TourLeg:
    hut: Hut
    date: date
    availability: Optional[AvailabilityRecord]


@dataclass(frozen=True)
class TourOption:
    start_date: date
    legs: tuple[TourLeg, ...]
    min_available_beds: int

    @property
    def end_date(self) -> date:
        return self.legs[-1].date if self.legs else self.start_date
