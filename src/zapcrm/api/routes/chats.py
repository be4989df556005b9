"""Chat list, thread history and sending for the CRM dashboard."""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel, Field

from zapcrm.api.credentials import require_evolution_config
from zapcrm.config import EvolutionConfig
from zapcrm.whatsapp import evolution_client

router = APIRouter(tags=["chats"])


class SendMessageRequest(BaseModel):
    """Request body for POST /messages."""

    number: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    delay: int | None = Field(default=None, ge=0)
    link_preview: bool = True


def _bad_gateway(e: evolution_client.EvolutionAPIError) -> HTTPException:
    return HTTPException(status_code=502, detail=e.message)


@router.get("/chats")
def list_chats(config: EvolutionConfig = Depends(require_evolution_config)) -> dict:
    """Unified contacts, most recently active first."""
    contacts = evolution_client.fetch_chats(config)
    return {"contacts": [c.as_dict() for c in contacts]}


@router.get("/chats/{chat_id}/messages")
def list_messages(
    chat_id: str = Path(..., description="Canonical JID or phone number"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    config: EvolutionConfig = Depends(require_evolution_config),
) -> dict:
    """One page of a thread, oldest first."""
    try:
        messages = evolution_client.fetch_messages(config, chat_id, page, limit)
    except evolution_client.EvolutionAPIError as e:
        raise _bad_gateway(e) from e
    return {"messages": [m.as_dict() for m in messages]}


@router.get("/chats/{chat_id}/avatar")
def get_avatar(
    chat_id: str = Path(..., description="Canonical JID or phone number"),
    config: EvolutionConfig = Depends(require_evolution_config),
) -> dict:
    """Fresh profile picture URL (null when unavailable)."""
    return {"avatar_url": evolution_client.fetch_profile_picture_url(config, chat_id)}


@router.post("/messages")
def send_message(
    body: SendMessageRequest,
    config: EvolutionConfig = Depends(require_evolution_config),
) -> dict:
    """Send a text message and return the gateway response."""
    try:
        result = evolution_client.send_text(
            config,
            body.number,
            body.text,
            delay=body.delay,
            link_preview=body.link_preview,
        )
    except evolution_client.EvolutionAPIError as e:
        raise _bad_gateway(e) from e
    return {"status": "sent", "result": result}


@router.post("/instance/connect")
def connect_instance(config: EvolutionConfig = Depends(require_evolution_config)) -> dict:
    """Connection state or pairing QR code for the instance."""
    try:
        result = evolution_client.connect_instance(config)
    except evolution_client.EvolutionAPIError as e:
        raise _bad_gateway(e) from e
    return {"result": result}
