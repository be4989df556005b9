"""Login/logout against an Evolution API instance."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field, field_validator

from zapcrm.api.credentials import set_evolution_config
from zapcrm.config import DEFAULT_DISPLAY_TZ, EvolutionConfig, load_timezone
from zapcrm.observability.logging import get_logger
from zapcrm.observability.redaction import safe_log_context
from zapcrm.whatsapp import evolution_client

router = APIRouter(prefix="/auth", tags=["auth"])

logger = get_logger(__name__)


class SetupAuthRequest(BaseModel):
    """Request body for POST /auth/setup."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(..., min_length=1)
    api_key: str = Field(..., min_length=1)
    instance_name: str = Field(..., min_length=1)
    display_timezone: str = DEFAULT_DISPLAY_TZ

    @field_validator("display_timezone")
    @classmethod
    def timezone_exists(cls, v: str) -> str:
        """Reject unknown IANA zone names."""
        load_timezone(v)
        return v


@router.post("/setup")
def setup_auth(body: SetupAuthRequest, request: Request) -> dict:
    """Verify credentials with the gateway and keep them for this app.

    Returns 502 with the gateway message when verification fails.
    """
    config = EvolutionConfig(
        base_url=body.base_url,
        api_key=body.api_key,
        instance_name=body.instance_name,
        display_timezone=body.display_timezone,
    )

    try:
        evolution_client.setup_auth(config)
    except evolution_client.EvolutionAPIError as e:
        raise HTTPException(status_code=502, detail=e.message) from e

    set_evolution_config(request, config)
    logger.info(
        "evolution credentials configured",
        extra={"extra_fields": safe_log_context(instance=config.instance_name)},
    )
    return {"status": "ok", "instance_name": config.instance_name}


@router.post("/logout")
def logout(request: Request) -> dict:
    """Forget the stored credentials."""
    set_evolution_config(request, None)
    return {"status": "ok"}
