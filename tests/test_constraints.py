"""Tests for tour search configuration and group size rules."""

from __future__ import annotations

import pytest

from backend.domain.constraints import (
    PlaceholderPolicy,
    TourSearchConfig,
    clamp_group_size,
    parse_hut_ids,
    parse_placeholder_policy,
    validate_group_size,
    validate_tour_search_config,
)


def valid_config(**overrides) -> TourSearchConfig:
    """Return a valid baseline TourSearchConfig, optionally overriding fields."""
    defaults = {
        "horizon_months": 4,
        "good_availability_margin": 5,
        "placeholder_policy": PlaceholderPolicy.EXEMPT,
    }
    defaults.update(overrides)
    return TourSearchConfig(**defaults)


# --- Baseline pass ---

def test_valid_config_passes() -> None:
    """A fully valid config must not raise."""
    validate_tour_search_config(valid_config())


def test_default_config_is_valid() -> None:
    validate_tour_search_config(TourSearchConfig())


# --- horizon_months ---

def test_horizon_months_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_tour_search_config(valid_config(horizon_months=0))


def test_horizon_months_negative_raises() -> None:
    with pytest.raises(ValueError):
        validate_tour_search_config(valid_config(horizon_months=-2))


# --- good_availability_margin ---

def test_margin_negative_raises() -> None:
    with pytest.raises(ValueError):
        validate_tour_search_config(valid_config(good_availability_margin=-1))


def test_margin_zero_passes() -> None:
    """Exact lower boundary must pass."""
    validate_tour_search_config(valid_config(good_availability_margin=0))


# --- placeholder_policy ---

def test_placeholder_policy_plain_string_raises() -> None:
    with pytest.raises(ValueError):
        validate_tour_search_config(valid_config(placeholder_policy="exempt"))


def test_parse_placeholder_policy_accepts_mixed_case() -> None:
    assert parse_placeholder_policy(" Strict ") is PlaceholderPolicy.STRICT
    assert parse_placeholder_policy("exempt") is PlaceholderPolicy.EXEMPT


def test_parse_placeholder_policy_unknown_raises() -> None:
    with pytest.raises(ValueError, match="placeholder_policy"):
        parse_placeholder_policy("ignore")


# --- group size ---

@pytest.mark.parametrize("group_size", [1, 2, 50])
def test_group_size_within_bounds_passes(group_size: int) -> None:
    validate_group_size(group_size)


@pytest.mark.parametrize("group_size", [0, -3, 51])
def test_group_size_out_of_bounds_raises(group_size: int) -> None:
    with pytest.raises(ValueError):
        validate_group_size(group_size)


def test_group_size_bool_raises() -> None:
    with pytest.raises(ValueError):
        validate_group_size(True)


def test_clamp_group_size_defaults_when_missing_or_garbage() -> None:
    assert clamp_group_size(None) == 2
    assert clamp_group_size("many") == 2


def test_clamp_group_size_clamps_into_range() -> None:
    assert clamp_group_size("0") == 1
    assert clamp_group_size("120") == 50
    assert clamp_group_size(" 7 ") == 7


# --- hut id lists ---

def test_parse_hut_ids_keeps_order_and_repeats() -> None:
    assert parse_hut_ids("3, 1,3") == [3, 1, 3]


def test_parse_hut_ids_drops_non_integers() -> None:
    assert parse_hut_ids("1,abc,,-2") == [1, -2]
    assert parse_hut_ids("") == []
    assert parse_hut_ids(None) == []
