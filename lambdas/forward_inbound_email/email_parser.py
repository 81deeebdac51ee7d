"""
Email Parser Module

Turns a raw MIME message into its displayable bodies.

The delivery flow takes the parser as an argument, so any callable matching
EmailParser can stand in for the stdlib-based default below.
"""

import email
from email.message import EmailMessage
from email.policy import default as default_policy
from typing import Protocol

import structlog

from relay.exceptions import ParseFailure
from relay.models.message import ExtractedContent

log = structlog.get_logger()


class EmailParser(Protocol):
    """Callable converting raw message text into extracted bodies."""

    def __call__(self, raw_email: str) -> ExtractedContent: ...


def _decode_part(part: EmailMessage) -> str:
    """Decode a text part, falling back to UTF-8 for unknown charsets."""
    try:
        return part.get_content()
    except (LookupError, UnicodeDecodeError):
        payload = part.get_payload(decode=True) or b""
        return payload.decode("utf-8", errors="replace")


def _find_body(msg: EmailMessage, subtype: str) -> str | None:
    part = msg.get_body(preferencelist=(subtype,))
    if part is None:
        return None
    body = _decode_part(part).strip()
    return body or None


def parse_raw_email(raw_email: str) -> ExtractedContent:
    """
    Parse raw email content (MIME format) into plain-text and HTML bodies.

    Attachments are never considered as bodies.

    Args:
        raw_email: Raw email content as text

    Returns:
        ExtractedContent with whichever bodies were found

    Raises:
        ParseFailure: If the message cannot be decoded
    """
    try:
        msg = email.message_from_string(raw_email, policy=default_policy)
        html = _find_body(msg, "html")
        text = _find_body(msg, "plain")
    except Exception as e:
        log.error("email_parse_failed", error=str(e))
        raise ParseFailure(str(e)) from e

    log.debug(
        "email_parsed",
        has_html=html is not None,
        has_text=text is not None,
        is_multipart=msg.is_multipart(),
    )

    return ExtractedContent(text=text, html=html)
