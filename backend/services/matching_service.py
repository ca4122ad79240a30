"""Tour-date matching over per-hut availability calendars."""

from __future__ import annotations

from datetime import date
from typing import Callable, Mapping, Optional, Sequence

import pandas as pd

from backend.domain.constraints import (
    PlaceholderPolicy,
    TourSearchConfig,
    parse_placeholder_policy,
    validate_group_size,
    validate_tour_search_config,
)
from backend.domain.models import (
    AvailabilityRecord,
    AvailabilityStatus,
    Hut,
    HutStatus,
    PercentageBand,
    TourLeg,
    TourOption,
)
from backend.services.availability_index import AvailabilityIndex, build_indices
from backend.utils.config import Settings, get_settings
from backend.utils.dates import add_days, horizon_days
from backend.utils.logger import get_logger


logger = get_logger(__name__)

SUMMARY_COLUMNS = ["start_date", "end_date", "min_available_beds", "status"]


class TourValidationError(Exception):
    """Raised when tour search inputs are invalid."""


def effective_beds(record: Optional[AvailabilityRecord]) -> int:
    """Collapse a day's record into the bed count a group can rely on."""
    if record is None:
        return 0
    if record.hut_status != HutStatus.SERVICED:
        return 0
    # Some feeds keep a stale non-zero bed count on days marked full.
    if record.percentage == PercentageBand.FULL:
        return 0
    if record.free_beds is None or record.free_beds < 0:
        return 0
    return int(record.free_beds)


def build_tour_option(
    *,
    huts: Sequence[Hut],
    indices: Mapping[int, AvailabilityIndex],
    start_date: date,
    placeholder_policy: PlaceholderPolicy = PlaceholderPolicy.EXEMPT,
) -> TourOption:
    legs: list[TourLeg] = []
    minimum: Optional[int] = None

    for offset, hut in enumerate(huts):
        leg_date = add_days(start_date, offset)
        index = indices.get(hut.hut_id)
        record = index.get(leg_date) if index is not None else None
        legs.append(TourLeg(hut=hut, date=leg_date, availability=record))

        if hut.is_placeholder and placeholder_policy is PlaceholderPolicy.EXEMPT:
            continue
        beds = effective_beds(record)
        minimum = beds if minimum is None else min(minimum, beds)

    return TourOption(
        start_date=start_date,
        legs=tuple(legs),
        min_available_beds=minimum if minimum is not None else 0,
    )


def find_tour_dates(
    huts: Sequence[Hut],
    availability_map: Mapping[int, Sequence[AvailabilityRecord]],
    *,
    today: date,
    config: Optional[TourSearchConfig] = None,
) -> list[TourOption]:
    """Produce one option per start date from ``today`` through the horizon end."""
    if not huts:
        return []

    config = config or TourSearchConfig()
    validate_tour_search_config(config)

    indices = build_indices(huts, availability_map)
    return [
        build_tour_option(
            huts=huts,
            indices=indices,
            start_date=start_date,
            placeholder_policy=config.placeholder_policy,
        )
        for start_date in horizon_days(today, len(huts), config.horizon_months)
    ]


def availability_status(
    min_available_beds: Optional[int],
    group_size: int,
    margin: int = 5,
) -> AvailabilityStatus:
    if min_available_beds is None or min_available_beds < group_size:
        return AvailabilityStatus.NONE
    if min_available_beds - group_size >= margin:
        return AvailabilityStatus.GOOD
    return AvailabilityStatus.LIMITED


def find_tour_option_for_day(
    options: Sequence[TourOption],
    day: Optional[date],
) -> Optional[TourOption]:
    if day is None:
        return None
    for option in options:
        if option.start_date == day:
            return option
    return None


def summarize_tour_options(
    options: Sequence[TourOption],
    group_size: int,
    margin: int = 5,
) -> pd.DataFrame:
    """Tabulate options for calendar-style consumers."""
    rows = [
        {
            "start_date": option.start_date,
            "end_date": option.end_date,
            "min_available_beds": option.min_available_beds,
            "status": availability_status(option.min_available_beds, group_size, margin).value,
        }
        for option in options
    ]
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


class TourMatchingService:
    """Finds start dates for which every leg of a hut tour has beds."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], date]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or date.today
        self._config = TourSearchConfig(
            horizon_months=self._settings.tour_horizon_months,
            good_availability_margin=self._settings.good_availability_margin,
            placeholder_policy=parse_placeholder_policy(self._settings.placeholder_policy),
        )
        validate_tour_search_config(self._config)

    @property
    def config(self) -> TourSearchConfig:
        return self._config

    def today(self) -> date:
        return self._clock()

    def validate_group_size(self, group_size: int) -> None:
        try:
            validate_group_size(
                group_size,
                minimum=self._settings.min_group_size,
                maximum=self._settings.max_group_size,
            )
        except ValueError as exc:
            raise TourValidationError(str(exc)) from exc

    def status_for(self, option: TourOption, group_size: int) -> AvailabilityStatus:
        return availability_status(
            option.min_available_beds,
            group_size,
            self._config.good_availability_margin,
        )

    def find_tour_dates(
        self,
        huts: Sequence[Hut],
        availability_map: Mapping[int, Sequence[AvailabilityRecord]],
        *,
        group_size: Optional[int] = None,
        today: Optional[date] = None,
    ) -> list[TourOption]:
        if group_size is not None:
            self.validate_group_size(group_size)

        start = today or self.today()
        options = find_tour_dates(
            huts,
            availability_map,
            today=start,
            config=self._config,
        )

        if group_size is not None:
            matching = sum(
                1 for option in options if option.min_available_beds >= group_size
            )
        else:
            matching = sum(1 for option in options if option.min_available_beds > 0)
        logger.info(
            "Tour dates computed | huts=%s | horizon_start=%s | options=%s | group_size=%s | matching=%s",
            [hut.hut_id for hut in huts],
            start.isoformat(),
            len(options),
            group_size,
            matching,
        )
        return options

    def summarize(self, options: Sequence[TourOption], group_size: int) -> pd.DataFrame:
        self.validate_group_size(group_size)
        return summarize_tour_options(
            options,
            group_size,
            self._config.good_availability_margin,
        )
