from __future__ import annotations

from dataclasses import replace
from datetime import date

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from backend.controllers.tour_controller import router
from backend.repository.hut_repository import HutAvailabilityRepository
from backend.services.matching_service import TourMatchingService
from backend.utils.config import get_settings


TODAY = date(2026, 1, 10)


def _build_test_settings():
    base = get_settings()
    return replace(
        base,
        hut_api_base_url="https://huts.test",
        hut_api_max_retries=0,
        hut_api_retry_base_delay_seconds=0.0,
        hut_api_retry_max_delay_seconds=0.0,
    )


def _entry(raw_date: str, free_beds: int, **overrides) -> dict:
    entry = {
        "date": raw_date,
        "hutStatus": "SERVICED",
        "percentage": "AVAILABLE",
        "freeBeds": free_beds,
    }
    entry.update(overrides)
    return entry


def _upstream(request: httpx.Request) -> httpx.Response:
    hut_id = request.url.params["hutId"]
    if hut_id == "1":
        return httpx.Response(200, json=[_entry("2026-01-11T00:00:00Z", 10)])
    if hut_id == "2":
        return httpx.Response(200, json=[_entry("2026-01-12T00:00:00Z", 8)])
    return httpx.Response(500)


def _build_test_app(handler=_upstream) -> FastAPI:
    settings = _build_test_settings()
    app = FastAPI()
    app.include_router(router)
    app.state.matching_service = TourMatchingService(settings=settings, clock=lambda: TODAY)
    app.state.hut_repository = HutAvailabilityRepository(
        settings=settings,
        transport=httpx.MockTransport(handler),
    )
    return app


def _option(body: dict, start_date: str) -> dict:
    return next(option for option in body["options"] if option["start_date"] == start_date)


def test_tour_dates_with_inline_availability():
    client = TestClient(_build_test_app())
    response = client.post(
        "/tour_dates",
        json={
            "huts": [
                {"hut_id": 1, "hut_name": "Alpha"},
                {"hut_id": 2, "hut_name": "Beta"},
            ],
            "group_size": 2,
            "availability": {
                "1": [_entry("2026-01-11T00:00:00Z", 10)],
                "2": [_entry("2026-01-12T00:00:00Z", 8)],
            },
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["group_size"] == 2
    assert body["horizon_start"] == "2026-01-10"
    assert body["horizon_end"] == "2026-05-12"
    assert len(body["options"]) == 123
    assert body["tour_found_count"] == 1

    chained = _option(body, "2026-01-11")
    assert chained["min_available_beds"] == 8
    assert chained["status"] == "good"
    assert chained["end_date"] == "2026-01-12"
    assert [leg["hut_name"] for leg in chained["legs"]] == ["Alpha", "Beta"]
    assert chained["legs"][0]["availability"]["free_beds"] == 10
    assert chained["legs"][0]["effective_beds"] == 10
    assert chained["legs"][1]["date"] == "2026-01-12"

    first = _option(body, "2026-01-10")
    assert first["min_available_beds"] == 0
    assert first["status"] == "none"
    assert first["legs"][1]["availability"] is None


def test_tour_dates_fetches_availability_when_not_supplied():
    client = TestClient(_build_test_app())
    response = client.post(
        "/tour_dates",
        json={
            "huts": [
                {"hut_id": 1, "hut_name": "Alpha"},
                {"hut_id": 2, "hut_name": "Beta"},
            ],
            "group_size": 4,
        },
    )

    assert response.status_code == 200
    body = response.json()
    chained = _option(body, "2026-01-11")
    assert chained["min_available_beds"] == 8
    assert chained["status"] == "limited"
    assert body["tour_found_count"] == 1


def test_tour_dates_upstream_failure_is_treated_as_no_data():
    client = TestClient(_build_test_app())
    response = client.post(
        "/tour_dates",
        json={"huts": [{"hut_id": 1, "hut_name": "Alpha"}, {"hut_id": 99, "hut_name": "Down"}]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["group_size"] == 2
    assert body["tour_found_count"] == 0
    assert all(option["min_available_beds"] == 0 for option in body["options"])


def test_tour_dates_empty_selection():
    client = TestClient(_build_test_app())
    response = client.post("/tour_dates", json={"huts": [], "group_size": 3})

    assert response.status_code == 200
    body = response.json()
    assert body["options"] == []
    assert body["tour_found_count"] == 0
    assert body["horizon_start"] is None


def test_tour_dates_rejects_out_of_range_group_size():
    client = TestClient(_build_test_app())

    too_small = client.post("/tour_dates", json={"huts": [], "group_size": 0})
    too_large = client.post("/tour_dates", json={"huts": [], "group_size": 51})

    assert too_small.status_code == 422
    assert too_large.status_code == 422


def test_hut_availability_endpoint():
    client = TestClient(_build_test_app())

    ok = client.get("/huts/1/availability")
    failing = client.get("/huts/99/availability")
    placeholder = client.get("/huts/-4/availability")

    assert ok.status_code == 200
    assert ok.json()[0]["hut_status"] == "SERVICED"
    assert ok.json()[0]["free_beds"] == 10
    assert failing.status_code == 502
    assert placeholder.status_code == 200
    assert placeholder.json() == []


def test_create_app_wires_services():
    from app import create_app

    app = create_app(_build_test_settings())

    with TestClient(app) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert isinstance(app.state.matching_service, TourMatchingService)
    assert isinstance(app.state.hut_repository, HutAvailabilityRepository)


def test_tour_dates_query_form_matches_post_form():
    client = TestClient(_build_test_app())

    response = client.get("/tour_dates", params={"huts": "1,2", "size": "4"})

    assert response.status_code == 200
    body = response.json()
    assert body["group_size"] == 4
    chained = _option(body, "2026-01-11")
    assert chained["min_available_beds"] == 8
    assert chained["status"] == "limited"
    assert [leg["hut_id"] for leg in chained["legs"]] == [1, 2]
    assert body["tour_found_count"] == 1


@pytest.mark.parametrize(
    "size, expected_size, expected_status",
    [("0", 1, "good"), ("abc", 2, "good"), ("120", 50, "none"), (None, 2, "good")],
)
def test_tour_dates_query_clamps_group_size(size, expected_size, expected_status):
    client = TestClient(_build_test_app())
    params = {"huts": "1,2"}
    if size is not None:
        params["size"] = size

    response = client.get("/tour_dates", params=params)

    assert response.status_code == 200
    body = response.json()
    assert body["group_size"] == expected_size
    assert _option(body, "2026-01-11")["status"] == expected_status


def test_tour_dates_query_drops_malformed_hut_ids():
    client = TestClient(_build_test_app())

    response = client.get("/tour_dates", params={"huts": "1,x,,2"})

    assert response.status_code == 200
    legs = _option(response.json(), "2026-01-11")["legs"]
    assert [leg["hut_id"] for leg in legs] == [1, 2]


def test_tour_dates_query_without_huts_is_empty():
    client = TestClient(_build_test_app())

    response = client.get("/tour_dates")

    assert response.status_code == 200
    assert response.json()["options"] == []


def test_tour_calendar_lists_one_row_per_start_date():
    client = TestClient(_build_test_app())

    response = client.get("/tour_calendar", params={"huts": "1,2", "size": "4"})

    assert response.status_code == 200
    body = response.json()
    assert body["group_size"] == 4
    rows = {row["start_date"]: row for row in body["rows"]}
    assert rows["2026-01-11"] == {
        "start_date": "2026-01-11",
        "end_date": "2026-01-12",
        "min_available_beds": 8,
        "status": "limited",
    }
    assert rows["2026-01-10"]["status"] == "none"
    assert body["rows"][0]["start_date"] == "2026-01-10"


def test_tour_calendar_clamps_size_and_handles_empty_selection():
    client = TestClient(_build_test_app())

    response = client.get("/tour_calendar", params={"size": "999"})

    assert response.status_code == 200
    assert response.json() == {"group_size": 50, "rows": []}
