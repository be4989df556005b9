"""Evolution API gateway client.

Every call takes an explicit EvolutionConfig. Raw responses are handed to
the pure unify/normalize layer; this module owns transport, retries and
error mapping.

Security: NEVER log numbers, JIDs or message text. Only hashes and lengths.
"""

import time
from datetime import tzinfo
from typing import Any

import requests

from zapcrm.config import EvolutionConfig
from zapcrm.observability.correlation import with_correlation_header
from zapcrm.observability.logging import get_logger
from zapcrm.observability.redaction import hash_identifier, safe_log_context

from .contacts import unify
from .identity import canonical_remote_jid, strip_jid_suffix
from .messages import normalize
from .models import Contact, Message

logger = get_logger(__name__)

# Timeout for HTTP requests (seconds)
HTTP_TIMEOUT = 10

# Retry config
MAX_RETRIES = 1
RETRY_DELAY = 0.2

DEFAULT_SEND_DELAY_MS = 1200


class EvolutionAPIError(Exception):
    """Raised when the gateway call fails after retries."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _do_request(
    method: str,
    url: str,
    headers: dict[str, str],
    body: dict[str, Any] | None = None,
) -> requests.Response:
    """Execute one HTTP request. Raises requests.RequestException on transport errors."""
    return requests.request(method, url, json=body, headers=headers, timeout=HTTP_TIMEOUT)


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, list):
            message = "; ".join(str(m) for m in message)
        if message:
            return str(message)
    return f"Evolution API returned HTTP {response.status_code}"


def _endpoint_label(path: str, instance_name: str) -> str:
    """Path for logs, with the trailing instance segment templated out."""
    suffix = f"/{instance_name}"
    if instance_name and path.endswith(suffix):
        return f"{path[: -len(suffix)]}/{{instance}}"
    return path


def _call(
    config: EvolutionConfig,
    method: str,
    path: str,
    body: dict[str, Any] | None = None,
    *,
    hashed: dict[str, str] | None = None,
    **log_fields: Any,
) -> Any:
    """Call the gateway, retrying once on network errors and 5xx.

    Args:
        hashed: hash_identifier outputs to log as-is. Hex digests may hold
                digit runs the phone pattern would redact.
        log_fields: Extra log fields, redacted before logging.

    Returns:
        Decoded JSON body (None for an empty body).

    Raises:
        EvolutionAPIError: On HTTP error status or persistent network failure.
    """
    url = f"{config.base_url}{path}"
    headers = with_correlation_header(config.headers())
    log_ctx = {
        **safe_log_context(endpoint=_endpoint_label(path, config.instance_name), **log_fields),
        **(hashed or {}),
    }

    def fields(**extra: Any) -> dict[str, str]:
        return {**log_ctx, **safe_log_context(**extra)}

    for attempt in range(MAX_RETRIES + 1):
        can_retry = attempt < MAX_RETRIES
        try:
            response = _do_request(method, url, headers, body)
        except requests.RequestException as e:
            if can_retry:
                logger.warning(
                    "evolution request failed, retrying",
                    extra={"extra_fields": fields(attempt=attempt, error_type=type(e).__name__)},
                )
                time.sleep(RETRY_DELAY)
                continue
            logger.error(
                "evolution request failed",
                extra={"extra_fields": fields(attempt=attempt, error_type=type(e).__name__)},
            )
            raise EvolutionAPIError("Failed to connect to Evolution API") from e

        if response.status_code >= 500 and can_retry:
            logger.warning(
                "evolution request failed, retrying",
                extra={"extra_fields": fields(attempt=attempt, status=response.status_code)},
            )
            time.sleep(RETRY_DELAY)
            continue

        if response.status_code >= 400:
            logger.error(
                "evolution request rejected",
                extra={"extra_fields": fields(attempt=attempt, status=response.status_code)},
            )
            raise EvolutionAPIError(_error_message(response), response.status_code)

        logger.info(
            "evolution request ok",
            extra={"extra_fields": fields(attempt=attempt, status=response.status_code)},
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise EvolutionAPIError("Invalid response from Evolution API", response.status_code) from e

    # Loop always returns or raises
    raise EvolutionAPIError("Failed to connect to Evolution API")


def setup_auth(config: EvolutionConfig) -> bool:
    """Check credentials against /instance/fetchInstances.

    Raises:
        EvolutionAPIError: If the gateway rejects the key or is unreachable.
    """
    _call(config, "GET", "/instance/fetchInstances")
    return True


def send_text(
    config: EvolutionConfig,
    number: str,
    text: str,
    delay: int | None = None,
    link_preview: bool = True,
) -> Any:
    """Send a text message.

    Args:
        number: Phone or JID of the recipient. NEVER logged.
        text: Message text. NEVER logged.
        delay: Typing delay in ms before delivery (default 1200).
        link_preview: Let the gateway render URL previews.

    Raises:
        EvolutionAPIError: On gateway failure.
    """
    body = {
        "number": strip_jid_suffix(number),
        "text": text,
        "delay": delay or DEFAULT_SEND_DELAY_MS,
        "linkPreview": link_preview,
    }
    return _call(
        config,
        "POST",
        f"/message/sendText/{config.instance_name}",
        body,
        hashed={"to_hash": hash_identifier(body["number"])},
        text_len=len(text),
    )


def connect_instance(config: EvolutionConfig) -> Any:
    """Request a connection (QR code / pairing state) for the instance."""
    return _call(config, "GET", f"/instance/connect/{config.instance_name}")


def fetch_raw_chats(config: EvolutionConfig) -> list[Any]:
    """Raw chat records from /chat/findChats (bare list or {"data": [...]})."""
    data = _call(config, "POST", f"/chat/findChats/{config.instance_name}", {"where": {}})
    if isinstance(data, dict):
        data = data.get("data")
    return data if isinstance(data, list) else []


def fetch_chats(config: EvolutionConfig, tz: tzinfo | None = None) -> list[Contact]:
    """Fetch and unify the chat list.

    Gateway failures degrade to an empty list; the chat list is a
    best-effort view and the failure is logged.
    """
    try:
        raw_chats = fetch_raw_chats(config)
    except EvolutionAPIError as e:
        logger.error(
            "fetch chats failed",
            extra={"extra_fields": safe_log_context(status=e.status_code)},
        )
        return []

    contacts = unify(raw_chats, tz if tz is not None else config.tz)
    logger.info(
        "chats unified",
        extra={
            "extra_fields": safe_log_context(
                raw_count=len(raw_chats),
                contact_count=len(contacts),
            )
        },
    )
    return contacts


def _message_records(data: Any) -> list[Any]:
    """Locate the record list in the shapes findMessages is known to return."""
    if isinstance(data, list):
        return data
    if not isinstance(data, dict):
        return []
    messages = data.get("messages")
    if isinstance(messages, dict) and isinstance(messages.get("records"), list):
        return messages["records"]
    if isinstance(messages, list):
        return messages
    if isinstance(data.get("data"), list):
        return data["data"]
    return []


def fetch_raw_messages(
    config: EvolutionConfig,
    contact_id: str,
    page: int = 1,
    limit: int = 10,
) -> list[Any]:
    """Raw message records for one thread.

    The contact id is canonicalized first, so history is always requested
    by phone JID even if the caller holds a formatted number or a LID.
    """
    remote_jid = canonical_remote_jid(contact_id)
    body = {
        "where": {"key": {"remoteJid": remote_jid}},
        "page": page,
        "offset": limit,
    }
    data = _call(
        config,
        "POST",
        f"/chat/findMessages/{config.instance_name}",
        body,
        hashed={"jid_hash": hash_identifier(remote_jid)},
        page=page,
        limit=limit,
    )
    return _message_records(data)


def fetch_messages(
    config: EvolutionConfig,
    contact_id: str,
    page: int = 1,
    limit: int = 10,
) -> list[Message]:
    """Fetch one page of a thread, normalized and oldest first.

    Raises:
        EvolutionAPIError: On gateway failure.
    """
    return normalize(fetch_raw_messages(config, contact_id, page, limit))


def fetch_profile_picture_url(config: EvolutionConfig, number_or_jid: str) -> str | None:
    """Profile picture URL, or None when unavailable for any reason."""
    try:
        data = _call(
            config,
            "POST",
            f"/chat/fetchProfilePictureUrl/{config.instance_name}",
            {"number": number_or_jid},
            hashed={"jid_hash": hash_identifier(number_or_jid)},
        )
    except EvolutionAPIError:
        return None
    if isinstance(data, dict):
        url = data.get("profilePictureUrl")
        if isinstance(url, str) and url:
            return url
    return None
