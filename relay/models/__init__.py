# Shared Models
"""
Typed records for inbound email and outbound Discord embeds.
"""

from relay.models.embeds import (
    ERROR_COLOR,
    INFO_COLOR,
    EmbedField,
    EmbedFooter,
    NotificationPayload,
)
from relay.models.message import NO_SUBJECT, ExtractedContent, InboundMessage

__all__ = [
    # Inbound
    "NO_SUBJECT",
    "InboundMessage",
    "ExtractedContent",
    # Embeds
    "INFO_COLOR",
    "ERROR_COLOR",
    "EmbedField",
    "EmbedFooter",
    "NotificationPayload",
]
