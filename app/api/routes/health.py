from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.services import ServiceContainer, get_services

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(services: ServiceContainer = Depends(get_services)) -> dict:
    """Health check endpoint.

    Reports whether the API is up and which external services are configured.
    Used by load balancers and monitoring systems.

    Returns:
        dict: ``status`` plus ``sheets``/``geocoding`` set to "configured"
            or "disabled".
    """

    def state(service: object) -> str:
        return "configured" if service is not None else "disabled"

    return {
        "status": "ok",
        "sheets": state(services.gateway),
        "geocoding": state(services.geocoder),
    }
