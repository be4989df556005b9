"""WhatsApp CRM entities: unified contacts and normalized messages."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Literal

Sender = Literal["me", "them"]

MessageStatus = Literal["sending", "sent", "error", "read"]


@dataclass(frozen=True)
class Contact:
    """One real-world contact, folded from every raw chat that resolves to it.

    `id` is the canonical JID (phone JID or group JID, never a LID).
    `merged_ids` is an audit trail of the ids folded into this entity.
    """

    id: str
    name: str
    number: str
    avatar_url: str | None = None
    last_message: str = "..."
    last_message_time: str = ""
    unread_count: int = 0
    timestamp_raw: float = 0
    is_group: bool = False
    merged_ids: tuple[str, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["merged_ids"] = list(self.merged_ids)
        return data


@dataclass(frozen=True)
class Message:
    """Normalized chat message.

    `from_uid` keeps the raw remoteJid of the thread (may be a LID). It is
    diagnostic only and never used as an identity key.
    """

    id: str
    text: str
    sender: Sender
    timestamp: datetime
    status: MessageStatus
    from_uid: str | None = None

    @property
    def timestamp_ms(self) -> int:
        return int(self.timestamp.timestamp() * 1000)

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "sender": self.sender,
            "timestamp": self.timestamp.isoformat(),
            "timestamp_ms": self.timestamp_ms,
            "status": self.status,
            "from_uid": self.from_uid,
        }
