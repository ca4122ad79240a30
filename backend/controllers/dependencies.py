"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import Request

from backend.repository.hut_repository import HutAvailabilityRepository
from backend.services.matching_service import TourMatchingService
from backend.utils.config import get_settings


def get_matching_service(request: Request) -> TourMatchingService:
    service = getattr(request.app.state, "matching_service", None)
    if service is None:
        service = TourMatchingService(settings=get_settings())
        request.app.state.matching_service = service
    return service


def get_hut_repository(request: Request) -> HutAvailabilityRepository:
    repository = getattr(request.app.state, "hut_repository", None)
    if repository is None:
        repository = HutAvailabilityRepository(settings=get_settings())
        request.app.state.hut_repository = repository
    return repository
