"""
Security Validators Module
Centralizes resource limits and validation helpers for raw message decoding

SECURITY STORY: These limits protect the decoder against hostile input:
- MAX_MIME_DEPTH: Prevents unbounded recursion on deeply nested multiparts
- MAX_MIME_PARTS: Prevents MIME bomb attacks (thousands of sibling parts)
- MAX_TOTAL_ATTACHMENT_BYTES: Prevents memory exhaustion from decoded attachments
- DEFAULT_MAX_EMAIL_SIZE: Lets ingestion reject oversize messages up front
"""

import re
import logging
from typing import Union

# Security limits to prevent various attacks
MAX_MIME_DEPTH = 20  # CWE-674: Uncontrolled Recursion
MAX_MIME_PARTS = 100  # Limits MIME bomb attacks
MAX_TOTAL_ATTACHMENT_BYTES = 25 * 1024 * 1024

# Raw messages above this size are rejected before decoding
DEFAULT_MAX_EMAIL_SIZE = 25 * 1024 * 1024

# Filename sanitization patterns to prevent path traversal (CWE-22)
# SECURITY STORY: Whitelist approach - only allow safe characters
FILENAME_SANITIZE_PATTERN = re.compile(r"[^\w\s\-_\.]")
FILENAME_COLLAPSE_DOTS_PATTERN = re.compile(r"\.{2,}")

# Windows reserved filenames that cannot be used regardless of extension
WINDOWS_RESERVED_NAMES = {
    "CON", "PRN", "AUX", "NUL",
    "COM1", "COM2", "COM3", "COM4", "COM5", "COM6", "COM7", "COM8", "COM9",
    "LPT1", "LPT2", "LPT3", "LPT4", "LPT5", "LPT6", "LPT7", "LPT8", "LPT9"
}

logger = logging.getLogger(__name__)


def sanitize_filename(filename: str) -> str:
    """
    Sanitize an attachment filename before it touches the filesystem (CWE-22)

    Attachment filenames come straight out of a Content-Disposition header,
    so a message can name its attachment "../../etc/passwd". Parsed records
    keep the decoded name as-is; anything that writes bytes to disk goes
    through this function first.

    Args:
        filename: Decoded attachment filename

    Returns:
        Filename safe for filesystem operations

    Example:
        >>> sanitize_filename("../../etc/passwd")
        'passwd'
        >>> sanitize_filename("invoice 2024.pdf")
        'invoice 2024.pdf'
    """
    if not filename:
        return "attachment"

    # Drop any path components first
    filename = filename.split("/")[-1].split("\\")[-1]

    sanitized = FILENAME_SANITIZE_PATTERN.sub("", filename)
    sanitized = FILENAME_COLLAPSE_DOTS_PATTERN.sub(".", sanitized)
    sanitized = sanitized.strip(". ")

    if not sanitized:
        return "attachment"

    # CON.txt is as reserved as CON
    base_name = sanitized.split('.')[0].strip().upper()
    if base_name in WINDOWS_RESERVED_NAMES:
        sanitized = "_" + sanitized

    return sanitized[:255]


def check_message_size(raw: Union[str, bytes], limit: int = DEFAULT_MAX_EMAIL_SIZE) -> bool:
    """
    Check whether a raw message is small enough to decode

    The decoder itself never rejects on size; ingestion calls this before
    handing a message over. String input is measured in UTF-8 octets.

    Args:
        raw: Raw message as received
        limit: Maximum size in bytes (0 or negative disables the check)

    Returns:
        True if the message is within the limit
    """
    if limit <= 0:
        return True
    size = len(raw) if isinstance(raw, (bytes, bytearray)) else len(raw.encode("utf-8", errors="replace"))
    if size > limit:
        logger.warning(f"Message of {size} bytes exceeds limit of {limit} bytes")
        return False
    return True


def validate_mime_depth(depth: int, limit: int = MAX_MIME_DEPTH) -> bool:
    """
    Check if a multipart nesting depth is within safe limits

    SECURITY STORY: Every nested multipart adds a recursion level. Without a
    ceiling, a message built from a few thousand nested containers is enough
    to exhaust the interpreter stack.
    """
    if depth > limit:
        logger.warning(f"Multipart nesting depth {depth} exceeds limit of {limit}")
        return False
    return True


def validate_mime_parts_count(count: int, limit: int = MAX_MIME_PARTS) -> bool:
    """
    Check if MIME parts count is within safe limits

    Args:
        count: Number of MIME parts visited so far

    Returns:
        True if count is safe, False if it exceeds limits
    """
    if count > limit:
        logger.warning(f"Message has more than {limit} MIME parts; skipping the rest")
        return False
    return True
