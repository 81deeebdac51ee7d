"""
Inbound Message Models

Typed records for an inbound email and the content extracted from it.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

NO_SUBJECT = "(no subject)"

# Case variants of the charset label (UTF-8, Utf-8) are normalised before parsing
_UTF8_LABEL = re.compile(r"utf-8", re.IGNORECASE)

RawSource = bytes | str | Callable[[], bytes]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class InboundMessage:
    """
    A single inbound email as handed over by the mail transport.

    `raw` may be the full MIME message as bytes or text, or a zero-argument
    callable returning the bytes (used when the message body lives in S3 and
    should only be fetched inside the delivery flow).
    """

    sender: str
    recipient: str
    raw: RawSource
    subject: str = NO_SUBJECT
    received_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not (self.subject or "").strip():
            object.__setattr__(self, "subject", NO_SUBJECT)
        if self.received_at.tzinfo is None:
            object.__setattr__(
                self, "received_at", self.received_at.replace(tzinfo=timezone.utc)
            )

    def read_raw(self) -> str:
        """Return the raw message as text with charset labels normalised."""
        raw = self.raw() if callable(self.raw) else self.raw
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        return _UTF8_LABEL.sub("utf-8", raw)


@dataclass(frozen=True)
class ExtractedContent:
    """Displayable bodies recovered from a raw message."""

    text: str | None = None
    html: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.html
