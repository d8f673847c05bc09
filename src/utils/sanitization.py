"""
Sanitization Utility Module
Makes untrusted message values (subjects, addresses, filenames) safe to log.
"""

import re
import unicodedata

# ANSI escape sequences (terminal colors/cursor movement)
ANSI_ESCAPE_PATTERN = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')


def sanitize_for_logging(text: str, max_length: int = 255) -> str:
    """
    Sanitize text for safe logging to prevent Log Injection (CRLF) and terminal manipulation.

    Header values are attacker-controlled: a folded Subject can carry CR/LF
    pairs or ANSI codes meant to forge log lines.

    Args:
        text: The input string to sanitize.
        max_length: Maximum allowed length for the log entry (truncates if longer).

    Returns:
        Sanitized string safe for logging.
    """
    if not text:
        return ""

    text = unicodedata.normalize('NFKC', text)
    text = text.replace('\n', '\\n').replace('\r', '\\r')
    text = ANSI_ESCAPE_PATTERN.sub('', text)

    # Remaining control characters (ASCII 0-31 except tab)
    text = "".join(ch for ch in text if ch == '\t' or ord(ch) >= 32)

    if len(text) > max_length:
        text = text[:max_length] + "..."

    return text


def mask_code(code: str) -> str:
    """
    Mask a verification code for display in logs.

    Keeps the length visible and the last digit, e.g. ``123456`` -> ``*****6``.
    """
    if not code:
        return ""
    if len(code) == 1:
        return "*"
    return "*" * (len(code) - 1) + code[-1]
