"""
Message preview text shown in mailbox listings
"""

import re

PREVIEW_LENGTH = 120

TAG_PATTERN = re.compile(r"<[^>]+>")
SPACE_RUN_PATTERN = re.compile(r"\s+")


def generate_preview(text: str, html: str, length: int = PREVIEW_LENGTH) -> str:
    """
    Build a one-line preview from the plain-text body, or the HTML body if empty

    Tags become spaces, whitespace runs collapse, and anything past *length*
    characters is cut and marked with "...".
    """
    content = text or html or ""
    content = TAG_PATTERN.sub(" ", content)
    content = SPACE_RUN_PATTERN.sub(" ", content).strip()
    if len(content) > length:
        return content[:length] + "..."
    return content
