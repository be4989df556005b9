"""Optimistic status overlay for messages sent from this client.

A message typed by the user is shown immediately with status "sending",
keyed by a temporary client id. The overlay then tracks the send result
and drops the entry once a fetched history contains the real message.
Normalized messages are never mutated; the overlay only adds entries.
"""

import uuid
from dataclasses import replace
from datetime import datetime, timedelta

from zapcrm.infra.time import utc_now

from .models import Message, MessageStatus

TEMP_ID_PREFIX = "tmp-"

# Gateway and client clocks are not in sync
RECONCILE_SKEW = timedelta(seconds=60)


class PendingOverlay:
    """Pending outbound messages for one chat view. Not thread-safe."""

    def __init__(self) -> None:
        self._pending: dict[str, Message] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, temp_id: object) -> bool:
        return temp_id in self._pending

    def add(self, text: str, now: datetime | None = None) -> Message:
        """Register a locally sent message with status "sending"."""
        message = Message(
            id=f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}",
            text=text,
            sender="me",
            timestamp=now if now is not None else utc_now(),
            status="sending",
        )
        self._pending[message.id] = message
        return message

    def get(self, temp_id: str) -> Message:
        return self._pending[temp_id]

    def mark_sent(self, temp_id: str) -> Message:
        return self._set_status(temp_id, "sent")

    def mark_failed(self, temp_id: str) -> Message:
        return self._set_status(temp_id, "error")

    def _set_status(self, temp_id: str, status: MessageStatus) -> Message:
        updated = replace(self._pending[temp_id], status=status)
        self._pending[temp_id] = updated
        return updated

    def _confirming_message(
        self, pending: Message, messages: list[Message], used: set[str]
    ) -> Message | None:
        # Failed sends stay visible until the user retries or discards them
        if pending.status == "error":
            return None
        earliest = pending.timestamp - RECONCILE_SKEW
        for m in messages:
            if m.id in used or m.sender != "me":
                continue
            if m.text == pending.text and m.timestamp >= earliest:
                return m
        return None

    def discard(self, temp_id: str) -> None:
        self._pending.pop(temp_id, None)

    def apply(self, messages: list[Message]) -> list[Message]:
        """Merge fetched history with still-pending local messages.

        Pending entries confirmed by the fetched history are discarded;
        each fetched message confirms at most one entry, oldest first.

        Returns:
            Fetched and pending messages, oldest first.
        """
        used: set[str] = set()
        for pending in sorted(self._pending.values(), key=lambda m: m.timestamp):
            confirmed = self._confirming_message(pending, messages, used)
            if confirmed is not None:
                used.add(confirmed.id)
                del self._pending[pending.id]

        merged = list(messages) + list(self._pending.values())
        merged.sort(key=lambda m: m.timestamp)
        return merged
