"""Routes reachable without gateway credentials."""

from fastapi import APIRouter, Request

from zapcrm.api.credentials import get_evolution_config

router = APIRouter()


@router.get("/health")
def health(request: Request) -> dict:
    """Liveness plus whether Evolution API credentials are set."""
    return {
        "status": "ok",
        "evolution_configured": get_evolution_config(request) is not None,
    }
