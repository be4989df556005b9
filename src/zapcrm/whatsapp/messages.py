"""Evolution API message normalization.

Turns raw /chat/findMessages records into Message entities. Nothing here
raises on malformed input: every field has a fallback (placeholder text,
"now" timestamp, direction-based status).
"""

import uuid
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from zapcrm.infra.time import from_epoch_ms, utc_now

from .models import Message, MessageStatus, Sender
from ._payload_helpers import as_mapping, coerce_number, is_present

UNSUPPORTED_TEXT = "Mensagem não suportada"

# Anything below this is epoch seconds (10^10 ms is April 1970)
MS_EPOCH_THRESHOLD = 10_000_000_000

_MEDIA_PLACEHOLDERS: tuple[tuple[str, str], ...] = (
    ("imageMessage", "📷 [Foto]"),
    ("audioMessage", "🎤 [Áudio]"),
    ("videoMessage", "🎥 [Vídeo]"),
    ("stickerMessage", "👾 [Sticker]"),
)

DOCUMENT_PLACEHOLDER = "📄 [Arquivo]"


def derive_text(content: dict[str, Any]) -> str:
    """Display text for a message body, by content-shape precedence."""
    text = (
        content.get("conversation")
        or as_mapping(content.get("extendedTextMessage")).get("text")
        or as_mapping(content.get("imageMessage")).get("caption")
    )
    if text:
        return str(text)

    for key, placeholder in _MEDIA_PLACEHOLDERS:
        if is_present(content.get(key)):
            return placeholder

    document = content.get("documentMessage")
    if is_present(document):
        title = as_mapping(document).get("title") or ""
        return f"{DOCUMENT_PLACEHOLDER} {title}".rstrip()

    button_reply = content.get("templateButtonReplyMessage")
    if is_present(button_reply):
        selected = as_mapping(button_reply).get("selectedDisplayText")
        if selected:
            return str(selected)

    return UNSUPPORTED_TEXT


def normalize_timestamp(raw: Any, now: datetime | None = None) -> datetime:
    """Absolute instant for a gateway messageTimestamp.

    Accepts seconds or milliseconds, as a number, numeric string, or a
    protobuf Long wrapper ({"low": ..., "high": ...}). Unusable values
    fall back to `now` so the message still sorts among its peers.
    """
    if isinstance(raw, dict):
        raw = raw.get("low")

    value = coerce_number(raw)
    if value:
        if value < MS_EPOCH_THRESHOLD:
            value *= 1000
        try:
            return from_epoch_ms(value)
        except (OverflowError, OSError, ValueError):
            pass

    return now if now is not None else utc_now()


def _status_source(msg: dict[str, Any]) -> Any:
    status = msg.get("status")
    if status:
        return status
    updates = msg.get("MessageUpdate")
    if isinstance(updates, list) and updates:
        return as_mapping(updates[-1]).get("status")
    return None


def derive_status(msg: dict[str, Any], sender: Sender) -> MessageStatus:
    """Delivery status from the gateway status string or update history.

    Inbound messages default to read (visible means seen); outbound to sent.
    """
    default: MessageStatus = "sent" if sender == "me" else "read"

    status = _status_source(msg)
    if not isinstance(status, str) or not status:
        return default

    lower = status.lower()
    if lower == "error":
        return "error"
    if "read" in lower or lower == "played":
        return "read"
    if "ack" in lower or "delivery" in lower:
        return "sent"
    if lower == "pending":
        return "sending"
    return default


def normalize_message(msg: dict[str, Any], now: datetime | None = None) -> Message:
    """Normalize one raw message record."""
    content = as_mapping(msg.get("message"))
    key = as_mapping(msg.get("key"))

    sender: Sender = "me" if key.get("fromMe") is True else "them"
    message_id = key.get("id")

    return Message(
        id=str(message_id) if message_id else uuid.uuid4().hex,
        text=derive_text(content),
        sender=sender,
        timestamp=normalize_timestamp(msg.get("messageTimestamp"), now),
        status=derive_status(msg, sender),
        from_uid=key.get("remoteJid"),
    )


def normalize(raw_messages: Iterable[Any], now: datetime | None = None) -> list[Message]:
    """Normalize raw messages and order them oldest first.

    Gateway pagination order is not chronological, so the sort always runs.
    Non-dict entries are skipped.

    Args:
        raw_messages: Records from /chat/findMessages.
        now: Fallback instant for records without a usable timestamp.
             Defaults to the current time, read once per call.
    """
    fallback = now if now is not None else utc_now()
    messages = [
        normalize_message(msg, fallback)
        for msg in raw_messages
        if isinstance(msg, dict)
    ]
    messages.sort(key=lambda m: m.timestamp)
    return messages
