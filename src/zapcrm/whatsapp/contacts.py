"""Contact unification over Evolution API chat records.

One person can show up as several raw chats (phone JID, LID, alternate
remote JID). Every record is resolved to a canonical JID and records
sharing a JID are folded into one Contact.

Merge precedence is asymmetric on purpose:
- conversation state (preview, timestamps) follows the newest record;
- unread count keeps the maximum seen;
- avatar is first-wins;
- name is only replaced while it is still a placeholder (empty or the number).
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any

from .identity import GROUP_SUFFIX, extract_phone_from_jid, only_digits, resolve
from .models import Contact
from ._payload_helpers import as_mapping, is_present, number_or_zero

PREVIEW_FALLBACK = "..."

# Order matters: first media block present wins
_PREVIEW_MEDIA_PLACEHOLDERS: tuple[tuple[str, str], ...] = (
    ("imageMessage", "📷 Foto"),
    ("audioMessage", "🎤 Áudio"),
    ("videoMessage", "🎥 Vídeo"),
    ("stickerMessage", "👾 Figurinha"),
    ("documentMessage", "📄 Arquivo"),
)


def identifier_candidates(chat: dict[str, Any]) -> list[Any]:
    """Raw id fields of a chat record, in resolution precedence."""
    return [chat.get("remoteJidAlt"), chat.get("remoteJid"), chat.get("id")]


def extract_preview_text(last_message: Any) -> str:
    """Derive the chat-list preview from a record's lastMessage field."""
    if isinstance(last_message, str):
        return last_message

    wrapper = as_mapping(last_message)
    content = wrapper.get("message") or last_message
    if not isinstance(content, dict) or not content:
        return PREVIEW_FALLBACK

    text = content.get("conversation") or as_mapping(content.get("extendedTextMessage")).get("text")
    if text:
        return str(text)

    for key, placeholder in _PREVIEW_MEDIA_PLACEHOLDERS:
        if is_present(content.get(key)):
            return placeholder

    return PREVIEW_FALLBACK


def format_display_time(timestamp_raw: float, tz: tzinfo = timezone.utc) -> str:
    """HH:MM for an epoch-seconds timestamp; empty string when unknown."""
    if not timestamp_raw:
        return ""
    try:
        return datetime.fromtimestamp(timestamp_raw, tz).strftime("%H:%M")
    except (OverflowError, OSError, ValueError):
        return ""


@dataclass
class _ContactDraft:
    """Mutable accumulator for one canonical id during a unify pass."""

    id: str
    name: str
    number: str
    avatar_url: str | None
    last_message: str
    last_message_time: str
    unread_count: int
    timestamp_raw: float
    is_group: bool
    merged_ids: list[str] = field(default_factory=list)

    def record_ids(self, ids: Iterable[Any]) -> None:
        for raw_id in ids:
            if isinstance(raw_id, str) and raw_id and raw_id not in self.merged_ids:
                self.merged_ids.append(raw_id)

    def freeze(self) -> Contact:
        return Contact(
            id=self.id,
            name=self.name,
            number=self.number,
            avatar_url=self.avatar_url,
            last_message=self.last_message,
            last_message_time=self.last_message_time,
            unread_count=self.unread_count,
            timestamp_raw=self.timestamp_raw,
            is_group=self.is_group,
            merged_ids=tuple(self.merged_ids),
        )


def _new_draft(canonical_jid: str, chat: dict[str, Any], preview: str, ts: float, unread: int, tz: tzinfo) -> _ContactDraft:
    number = extract_phone_from_jid(canonical_jid)
    name = chat.get("pushName") or chat.get("name") or chat.get("verifiedName") or number
    return _ContactDraft(
        id=canonical_jid,
        name=str(name),
        number=number,
        avatar_url=chat.get("profilePictureUrl") or None,
        last_message=preview,
        last_message_time=format_display_time(ts, tz),
        unread_count=unread,
        timestamp_raw=ts,
        is_group=GROUP_SUFFIX in canonical_jid,
        merged_ids=[canonical_jid],
    )


def _merge_into(draft: _ContactDraft, chat: dict[str, Any], preview: str, ts: float, unread: int, tz: tzinfo) -> None:
    draft.unread_count = max(draft.unread_count, unread)

    if ts > draft.timestamp_raw:
        draft.last_message = preview
        draft.timestamp_raw = ts
        draft.last_message_time = format_display_time(ts, tz) or draft.last_message_time

    avatar = chat.get("profilePictureUrl")
    if not draft.avatar_url and avatar:
        draft.avatar_url = avatar

    push_name = chat.get("pushName")
    if (not draft.name or draft.name == draft.number) and push_name:
        draft.name = str(push_name)


def unify(raw_chats: Iterable[Any], tz: tzinfo = timezone.utc) -> list[Contact]:
    """Fold raw chat records into Contacts keyed by canonical JID.

    Records that do not resolve (LID-only, malformed) are dropped silently.
    Pure: the result is rebuilt from scratch on every call.

    Args:
        raw_chats: Records as returned by /chat/findChats.
        tz: Zone used for the HH:MM display time.

    Returns:
        Contacts, most recently active first (no timestamp sorts last).
    """
    drafts: dict[str, _ContactDraft] = {}

    for chat in raw_chats:
        if not isinstance(chat, dict):
            continue

        candidates = identifier_candidates(chat)
        canonical_jid = resolve(candidates)
        if canonical_jid is None:
            continue

        preview = extract_preview_text(chat.get("lastMessage"))
        # Negative epochs read as unknown so they sort with the undated chats
        ts = max(number_or_zero(chat.get("conversationTimestamp") or chat.get("lastMessageTimestamp")), 0)
        unread = int(number_or_zero(chat.get("unreadCount")))

        draft = drafts.get(canonical_jid)
        if draft is None:
            draft = _new_draft(canonical_jid, chat, preview, ts, unread, tz)
            drafts[canonical_jid] = draft
        else:
            _merge_into(draft, chat, preview, ts, unread, tz)
        draft.record_ids(candidates)

    contacts = [draft.freeze() for draft in drafts.values()]
    contacts.sort(key=lambda c: c.timestamp_raw or 0, reverse=True)
    return contacts


def new_contacts(
    contacts: Iterable[Contact],
    known_ids: Iterable[str] = (),
    known_phones: Iterable[str] = (),
) -> list[Contact]:
    """Contacts not yet known by id nor by phone digits.

    Snapshot-merge for callers that keep their own entity list (e.g. leads
    created from chats): unify is not incremental, so its output is diffed
    against what the caller already holds before appending.
    """
    ids = set(known_ids)
    phones = {only_digits(p) for p in known_phones if p}
    phones.discard("")
    return [
        c for c in contacts
        if c.id not in ids and only_digits(c.number) not in phones
    ]
