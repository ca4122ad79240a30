#!/usr/bin/env python3
"""Validate local hut tour planner environment readiness."""

from __future__ import annotations

import importlib
import sys
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.domain.models import AvailabilityRecord, Hut, HutStatus, PercentageBand
from backend.repository.hut_repository import parse_availability_payload
from backend.services.matching_service import TourMatchingService
from backend.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True

    # CHECK 1 - Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2 - Required packages importable
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("pandas", "pandas"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    from importlib.metadata import PackageNotFoundError, version

    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    settings = get_settings()

    # CHECK 3 - Payload decoding
    try:
        decoded = parse_availability_payload(
            [
                {
                    "date": "2026-07-01T00:00:00Z",
                    "hutStatus": "SERVICED",
                    "percentage": "AVAILABLE",
                    "freeBeds": 12,
                },
                {"hutStatus": "SERVICED"},
            ],
            hut_id=1,
        )
        if len(decoded) != 1:
            raise RuntimeError(f"expected 1 decoded record, got {len(decoded)}")
        ok, line = _print_result("Availability payload decoding", True)
    except Exception as exc:
        ok, line = _print_result("Availability payload decoding", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 4 - Tour matching smoke run
    try:
        today = date(2026, 6, 30)
        service = TourMatchingService(settings=settings, clock=lambda: today)
        huts = [Hut(hut_id=1, hut_name="First"), Hut(hut_id=2, hut_name="Second")]
        availability = {
            1: [AvailabilityRecord("2026-07-01", HutStatus.SERVICED, PercentageBand.AVAILABLE, 10)],
            2: [AvailabilityRecord("2026-07-02", HutStatus.SERVICED, PercentageBand.AVAILABLE, 8)],
        }
        options = service.find_tour_dates(huts, availability)
        best = max(option.min_available_beds for option in options)
        if best != 8:
            raise RuntimeError(f"expected best minimum of 8 beds, got {best}")
        ok, line = _print_result(
            "Tour matching",
            True,
            f": {len(options)} start dates",
        )
    except Exception as exc:
        ok, line = _print_result("Tour matching", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    print(SEPARATOR_LINE)
    print(" Hut Tour Planner Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
