"""Identity resolution for Evolution API chat identifiers.

The gateway may report one person under a phone JID, a LID (opaque id),
or an alternate remote JID. Only phone JIDs and group JIDs are usable as
contact keys; LIDs are never turned into a key.
"""

import re
from collections.abc import Iterable

USER_SUFFIX = "@s.whatsapp.net"
GROUP_SUFFIX = "@g.us"
LID_MARKER = "@lid"
NEWSLETTER_MARKER = "@newsletter"

# BR numbers with area code start at 10 digits; E.164 caps at 15
MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15

_NON_DIGITS = re.compile(r"\D")


def _usable(candidate: object) -> bool:
    return isinstance(candidate, str) and bool(candidate)


def only_digits(value: str) -> str:
    """Drop every non-digit character."""
    return _NON_DIGITS.sub("", value)


def strip_jid_suffix(value: str) -> str:
    """Drop everything from the first '@' onward ("55..@s.whatsapp.net" -> "55..")."""
    return value.split("@", 1)[0]


def extract_phone_from_jid(remote_jid: str) -> str:
    """Extract the number portion of a JID.

    Args:
        remote_jid: WhatsApp JID (e.g., "5511999999999@s.whatsapp.net")

    Returns:
        Portion before the suffix (e.g., "5511999999999")
    """
    return strip_jid_suffix(remote_jid)


def resolve(candidates: Iterable[str | None]) -> str | None:
    """Resolve identifier candidates to one canonical JID.

    Candidates are tried in the order given (for chat records:
    remoteJidAlt, remoteJid, id).

    Pass 1 returns the first candidate already shaped as a user JID,
    verbatim. Pass 2 returns the first group JID verbatim, skips LIDs,
    and rebuilds a user JID from any other candidate holding 10-15 digits.

    Returns:
        Canonical JID, or None when no candidate is usable.
    """
    items = [c for c in candidates if _usable(c)]

    for candidate in items:
        if candidate.endswith(USER_SUFFIX):
            return candidate

    for candidate in items:
        if candidate.endswith(GROUP_SUFFIX):
            return candidate
        if LID_MARKER in candidate:
            continue
        digits = only_digits(strip_jid_suffix(candidate))
        if MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
            return f"{digits}{USER_SUFFIX}"

    return None


def canonical_remote_jid(contact_id: str) -> str:
    """Canonicalize an id before requesting its chat history.

    Groups and newsletters pass through. Anything else holding at least
    10 digits is forced to the user JID form, so a history request never
    goes out with a formatted phone or a stray suffix.
    """
    if not contact_id or GROUP_SUFFIX in contact_id or NEWSLETTER_MARKER in contact_id:
        return contact_id

    digits = only_digits(contact_id)
    if len(digits) >= MIN_PHONE_DIGITS:
        return f"{digits}{USER_SUFFIX}"
    return contact_id
