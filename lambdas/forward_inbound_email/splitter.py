"""
Text Splitter Module

Splits long bodies into bounded chunks for embed descriptions.
"""

import re

_WHITESPACE = re.compile(r"\s+")


def split_text(text: str, max_length: int) -> list[str]:
    """
    Split text into chunks of at most `max_length` characters.

    Chunks end at the last whitespace that keeps them within the limit; the
    whitespace run at each break is dropped. A word longer than the limit is
    cut at exactly `max_length` characters. Text that already fits (including
    the empty string) comes back as a single chunk, unchanged.
    No chunk consists of whitespace only; a longer all-whitespace text gives
    a single empty chunk.

    Args:
        text: Text to split
        max_length: Maximum characters per chunk

    Returns:
        Ordered list of chunks

    Raises:
        ValueError: If max_length is less than 1
    """
    if max_length < 1:
        raise ValueError(f"max_length must be positive, got {max_length}")

    if len(text) <= max_length:
        return [text]

    chunks: list[str] = []
    remaining = text

    while len(remaining) > max_length:
        window = remaining[: max_length + 1]
        # Only whitespace after the first character can end a non-empty chunk
        breaks = [m.start() for m in _WHITESPACE.finditer(window) if m.start() > 0]

        if breaks:
            cut = breaks[-1]
            chunks.append(remaining[:cut])
            remaining = remaining[cut:].lstrip()
        elif window[0].isspace():
            # Leading whitespace run longer than a chunk
            remaining = remaining.lstrip()
        else:
            chunks.append(remaining[:max_length])
            remaining = remaining[max_length:]

    if remaining:
        chunks.append(remaining)

    return chunks or [""]
