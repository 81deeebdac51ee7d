"""
Notification Builder Module

Shapes an inbound email into Discord embeds: one primary embed carrying the
metadata and the first body chunk, then one continuation embed per extra
chunk. Also builds the diagnostic embed posted when delivery fails.
"""

import traceback
from datetime import datetime, timezone

from relay.config import EMBED_DESCRIPTION_MAX_LENGTH
from relay.models.embeds import (
    EMBED_FIELD_VALUE_MAX_LENGTH,
    EMBED_TITLE_MAX_LENGTH,
    ERROR_COLOR,
    INFO_COLOR,
    EmbedField,
    EmbedFooter,
    NotificationPayload,
)
from relay.models.message import NO_SUBJECT, InboundMessage
from lambdas.forward_inbound_email.splitter import split_text

EMPTY_BODY = "(empty body)"
DIAGNOSTIC_TITLE = "Error while processing email"
DEFAULT_FOOTER = "Email Worker"
RECEIVED_FORMAT = "%Y-%m-%d %H:%M:%S"

_ELLIPSIS = "…"
_CODE_FENCE_OPEN = "```\n"
_CODE_FENCE_CLOSE = "\n```"


def _shorten(value: str, limit: int) -> str:
    if len(value) <= limit:
        return value
    return value[: limit - len(_ELLIPSIS)] + _ELLIPSIS


def format_received(moment: datetime) -> str:
    """Render a timestamp as 'YYYY-MM-DD HH:MM:SS' in UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(RECEIVED_FORMAT)


def _metadata_fields(message: InboundMessage, is_rich: bool) -> list[EmbedField]:
    fields = [
        EmbedField(name="From", value=_shorten(message.sender, EMBED_FIELD_VALUE_MAX_LENGTH)),
        EmbedField(name="To", value=_shorten(message.recipient, EMBED_FIELD_VALUE_MAX_LENGTH)),
        EmbedField(name="Received", value=format_received(message.received_at)),
    ]
    if is_rich:
        fields.append(EmbedField(name="Content Type", value="HTML"))
    return fields


def _primary_from_chunk(
    message: InboundMessage,
    chunk: str,
    is_rich: bool,
    footer_text: str,
) -> NotificationPayload:
    return NotificationPayload(
        title=_shorten(message.subject or NO_SUBJECT, EMBED_TITLE_MAX_LENGTH),
        color=INFO_COLOR,
        description=chunk or EMPTY_BODY,
        fields=_metadata_fields(message, is_rich),
        footer=EmbedFooter(text=footer_text),
        timestamp=message.received_at,
    )


def build_primary(
    message: InboundMessage,
    content: str,
    is_rich: bool,
    *,
    max_length: int = EMBED_DESCRIPTION_MAX_LENGTH,
    footer_text: str = DEFAULT_FOOTER,
) -> NotificationPayload:
    """
    Build the embed that opens a forwarded email.

    Args:
        message: The inbound message (sender, recipient, subject, receipt time)
        content: Selected body text
        is_rich: Whether `content` is the HTML body
        max_length: Description limit used to cut the first chunk
        footer_text: Footer label

    Returns:
        Primary embed with From/To/Received fields and the first body chunk
    """
    first_chunk = split_text(content, max_length)[0]
    return _primary_from_chunk(message, first_chunk, is_rich, footer_text)


def build_continuation(subject: str, chunk: str, index: int) -> NotificationPayload:
    """Build the embed for the `index`-th (1-based) extra chunk."""
    suffix = f" (continue {index})"
    base = _shorten(subject or NO_SUBJECT, EMBED_TITLE_MAX_LENGTH - len(suffix))
    return NotificationPayload(
        title=f"{base}{suffix}",
        color=INFO_COLOR,
        description=chunk,
    )


def build_notifications(
    message: InboundMessage,
    content: str,
    is_rich: bool,
    *,
    max_length: int = EMBED_DESCRIPTION_MAX_LENGTH,
    footer_text: str = DEFAULT_FOOTER,
) -> list[NotificationPayload]:
    """Primary embed followed by continuations, one per chunk."""
    first, *rest = split_text(content, max_length)
    payloads = [_primary_from_chunk(message, first, is_rich, footer_text)]
    payloads.extend(
        build_continuation(message.subject, chunk, index)
        for index, chunk in enumerate(rest, start=1)
    )
    return payloads


def _keep_tail(value: str, limit: int) -> str:
    if len(value) <= limit:
        return value
    if limit <= len(_ELLIPSIS):
        return value[len(value) - limit:]
    return _ELLIPSIS + value[len(value) - limit + len(_ELLIPSIS):]


def _describe_error(error: BaseException) -> str:
    lines = traceback.format_exception(type(error), error, error.__traceback__)
    return "".join(lines).strip() or repr(error)


def build_diagnostic(
    error: BaseException,
    *,
    max_length: int = EMBED_DESCRIPTION_MAX_LENGTH,
) -> NotificationPayload:
    """
    Build the embed reporting a failed delivery.

    The traceback is wrapped in a code block. When it is too long the oldest
    frames are dropped so the exception line at the end is always kept.
    Limits too small for the code block get the bare tail of the text.
    """
    detail = _describe_error(error)
    room = max_length - len(_CODE_FENCE_OPEN) - len(_CODE_FENCE_CLOSE)
    if room > len(_ELLIPSIS):
        description = f"{_CODE_FENCE_OPEN}{_keep_tail(detail, room)}{_CODE_FENCE_CLOSE}"
    else:
        description = _keep_tail(detail, max_length)

    return NotificationPayload(
        title=DIAGNOSTIC_TITLE,
        color=ERROR_COLOR,
        description=description,
        timestamp=datetime.now(timezone.utc),
    )
