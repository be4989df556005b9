"""Correlation ID propagation.

The ID arrives (or is minted) at the API edge, tags every log line emitted
while serving the request and travels on to the Evolution API gateway, so
one dashboard action can be followed through both services' logs.
"""

import uuid
from contextvars import ContextVar, Token

correlation_id_var: ContextVar[str] = ContextVar("zapcrm_correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    """Correlation ID of the current request, or "" outside one."""
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    correlation_id_var.reset(token)


def with_correlation_header(headers: dict[str, str]) -> dict[str, str]:
    """Copy of `headers` carrying the active correlation ID, if any.

    Outside a request (scripts, background jobs) the headers come back
    unchanged rather than with a freshly minted ID.
    """
    cid = get_correlation_id()
    if not cid:
        return dict(headers)
    return {**headers, CORRELATION_ID_HEADER: cid}
