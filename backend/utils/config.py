"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_ENV_PREFIX = "HUT_PLANNER_"


def _env_str(name: str, default: str) -> str:
    return os.getenv(f"{_ENV_PREFIX}{name}", default)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(f"{_ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(f"{_ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    app_name: str = "Hut Tour Planner"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    # Matching
    tour_horizon_months: int = 4
    good_availability_margin: int = 5
    placeholder_policy: str = "exempt"

    # Group size bounds
    min_group_size: int = 1
    max_group_size: int = 50
    default_group_size: int = 2

    # Hut reservation API
    hut_api_base_url: str = "https://www.hut-reservation.org"
    hut_api_availability_path: str = "/api/v1/reservation/getHutAvailability"
    hut_api_timeout_seconds: float = 10.0
    hut_api_max_retries: int = 2
    hut_api_retry_base_delay_seconds: float = 1.0
    hut_api_retry_max_delay_seconds: float = 30.0
    availability_cache_ttl_seconds: float = 300.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process; call ``get_settings.cache_clear()`` to reload."""
    defaults = Settings()
    return Settings(
        app_name=_env_str("APP_NAME", defaults.app_name),
        app_version=_env_str("APP_VERSION", defaults.app_version),
        log_level=_env_str("LOG_LEVEL", defaults.log_level),
        tour_horizon_months=_env_int("TOUR_HORIZON_MONTHS", defaults.tour_horizon_months),
        good_availability_margin=_env_int(
            "GOOD_AVAILABILITY_MARGIN",
            defaults.good_availability_margin,
        ),
        placeholder_policy=_env_str("PLACEHOLDER_POLICY", defaults.placeholder_policy).lower(),
        min_group_size=_env_int("MIN_GROUP_SIZE", defaults.min_group_size),
        max_group_size=_env_int("MAX_GROUP_SIZE", defaults.max_group_size),
        default_group_size=_env_int("DEFAULT_GROUP_SIZE", defaults.default_group_size),
        hut_api_base_url=_env_str("HUT_API_BASE_URL", defaults.hut_api_base_url).rstrip("/"),
        hut_api_availability_path=_env_str(
            "HUT_API_AVAILABILITY_PATH",
            defaults.hut_api_availability_path,
        ),
        hut_api_timeout_seconds=_env_float(
            "HUT_API_TIMEOUT_SECONDS",
            defaults.hut_api_timeout_seconds,
        ),
        hut_api_max_retries=_env_int("HUT_API_MAX_RETRIES", defaults.hut_api_max_retries),
        hut_api_retry_base_delay_seconds=_env_float(
            "HUT_API_RETRY_BASE_DELAY_SECONDS",
            defaults.hut_api_retry_base_delay_seconds,
        ),
        hut_api_retry_max_delay_seconds=_env_float(
            "HUT_API_RETRY_MAX_DELAY_SECONDS",
            defaults.hut_api_retry_max_delay_seconds,
        ),
        availability_cache_ttl_seconds=_env_float(
            "AVAILABILITY_CACHE_TTL_SECONDS",
            defaults.availability_cache_ttl_seconds,
        ),
    )
