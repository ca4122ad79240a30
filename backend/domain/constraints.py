"""Domain-level validation rules for tour matching."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PlaceholderPolicy(str, Enum):
    """How legs on placeholder huts take part in the itinerary minimum.

    EXEMPT: placeholder legs are informational and never cap the minimum.
    STRICT: placeholder legs classify like any hut, so missing data yields 0.
    """

    EXEMPT = "exempt"
    STRICT = "strict"


@dataclass(frozen=True)
class TourSearchConfig:
    horizon_months: int = 4
    good_availability_margin: int = 5
    placeholder_policy: PlaceholderPolicy = PlaceholderPolicy.EXEMPT


def validate_tour_search_config(config: TourSearchConfig) -> None:
    if config.horizon_months <= 0:
        raise ValueError("horizon_months must be > 0")
    if config.good_availability_margin < 0:
        raise ValueError("good_availability_margin must be >= 0")
    if not isinstance(config.placeholder_policy, PlaceholderPolicy):
        raise ValueError("placeholder_policy must be a PlaceholderPolicy")


def parse_placeholder_policy(value: str) -> PlaceholderPolicy:
    try:
        return PlaceholderPolicy(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(policy.value for policy in PlaceholderPolicy)
        raise ValueError(f"placeholder_policy must be one of: {allowed}") from exc


def validate_group_size(group_size: int, minimum: int = 1, maximum: int = 50) -> None:
    if isinstance(group_size, bool) or not isinstance(group_size, int):
        raise ValueError("group_size must be an integer")
    if not minimum <= group_size <= maximum:
        raise ValueError(f"group_size must be between {minimum} and {maximum}")


def clamp_group_size(
    raw_value: Optional[str],
    default: int = 2,
    minimum: int = 1,
    maximum: int = 50,
) -> int:
    """Read a loosely-typed group size (query string, form field) into range."""
    try:
        value = int(str(raw_value).strip()) if raw_value is not None else default
    except ValueError:
        value = default
    return max(minimum, min(maximum, value))


def parse_hut_ids(raw_value: Optional[str]) -> list[int]:
    """Read a comma-separated hut id list, dropping entries that are not integers."""
    if not raw_value:
        return []
    hut_ids: list[int] = []
    for part in raw_value.split(","):
        try:
            hut_ids.append(int(part.strip()))
        except ValueError:
            continue
    return hut_ids
