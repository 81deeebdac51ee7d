"""
Embed Models

Pydantic models for the Discord embeds posted by the relay.
Each webhook request carries exactly one embed.
"""

from datetime import datetime
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field

from relay.config import EMBED_DESCRIPTION_MAX_LENGTH

EMBED_TITLE_MAX_LENGTH: Final[int] = 256
EMBED_FIELD_VALUE_MAX_LENGTH: Final[int] = 1024

# Embed colors
INFO_COLOR: Final[int] = 0x2E86DE
ERROR_COLOR: Final[int] = 0xE74C3C


class EmbedField(BaseModel):
    """A name/value pair rendered in the embed body."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=256)
    value: str = Field(..., max_length=EMBED_FIELD_VALUE_MAX_LENGTH)
    inline: bool = Field(default=True, description="Render side by side")


class EmbedFooter(BaseModel):
    """Small text shown under the embed."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., max_length=2048)


class NotificationPayload(BaseModel):
    """One Discord embed, constructed per post and sent immediately."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., max_length=EMBED_TITLE_MAX_LENGTH)
    color: int = Field(default=INFO_COLOR, ge=0, le=0xFFFFFF)
    description: str = Field(..., max_length=EMBED_DESCRIPTION_MAX_LENGTH)
    fields: list[EmbedField] | None = None
    footer: EmbedFooter | None = None
    timestamp: datetime | None = None

    def to_webhook_body(self) -> dict[str, Any]:
        """JSON body for a webhook POST carrying this embed."""
        return {"embeds": [self.model_dump(mode="json", exclude_none=True)]}
