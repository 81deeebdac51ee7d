"""Body selection: HTML wins over plain text when present."""

from relay.models.message import ExtractedContent


def select_content(extracted: ExtractedContent) -> tuple[str, bool]:
    """Return (content, is_rich) for the body to forward."""
    if extracted.html:
        return extracted.html, True
    return extracted.text or "", False
