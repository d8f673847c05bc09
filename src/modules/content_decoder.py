"""
Content Decoder Module
Undoes Content-Transfer-Encoding and charset encoding for one body segment

PATTERN RECOGNITION: Every decode step returns a DecodeResult instead of
raising. A failed step hands back the original segment text with ok=False,
so one broken part never stops its siblings from decoding.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "utf-8"

CHARSET_PATTERN = re.compile(r"""charset=["']?([^"';\s]+)["']?""", re.IGNORECASE)
BOUNDARY_PATTERN = re.compile(r"""boundary=(?:"([^"]+)"|'([^']+)'|([^"';\s]+))""", re.IGNORECASE)
WHITESPACE_PATTERN = re.compile(r"\s")
SOFT_LINE_BREAK_PATTERN = re.compile(r"=\r?\n")
HEX_ESCAPE_PATTERN = re.compile(rb"=([0-9A-Fa-f]{2})")


@dataclass(frozen=True)
class DecodeResult:
    """Best-effort decode outcome: text or raw bytes, and whether decoding succeeded"""
    value: Union[str, bytes]
    ok: bool = True

    @property
    def is_binary(self) -> bool:
        return isinstance(self.value, bytes)


def get_charset(content_type: str) -> str:
    """Return the lowercased charset parameter of a content type, or utf-8"""
    match = CHARSET_PATTERN.search(content_type or "")
    return match.group(1).lower() if match else DEFAULT_CHARSET


def get_boundary(content_type: str) -> Optional[str]:
    """Return the boundary parameter of a multipart content type, if any"""
    match = BOUNDARY_PATTERN.search(content_type or "")
    if not match:
        return None
    return next(group for group in match.groups() if group is not None)


def media_type(content_type: str) -> str:
    """Strip parameters: 'text/html; charset=utf-8' -> 'text/html'"""
    return content_type.split(";", 1)[0].strip()


def decode_base64(body: str) -> bytes:
    """
    Decode a base64 body, ignoring line breaks and other whitespace

    Missing trailing padding is tolerated.

    Raises:
        binascii.Error: On characters outside the base64 alphabet
    """
    compact = WHITESPACE_PATTERN.sub("", body)
    compact += "=" * (-len(compact) % 4)
    return base64.b64decode(compact, validate=True)


def decode_quoted_printable(body: str) -> bytes:
    """
    Decode a quoted-printable body to bytes

    Soft line breaks (``=`` at end of line) are removed, every ``=XX`` escape
    becomes its byte, and all other characters keep their UTF-8 bytes. An
    ``=`` that is not followed by two hex digits is kept literally.
    """
    joined = SOFT_LINE_BREAK_PATTERN.sub("", body)
    return HEX_ESCAPE_PATTERN.sub(
        lambda m: bytes([int(m.group(1), 16)]),
        joined.encode("utf-8", errors="replace"),
    )


def decode_bytes(data: bytes, charset: str, fallback: str) -> DecodeResult:
    """
    Decode bytes under a charset

    Invalid byte sequences are replaced rather than raised on. An unknown
    charset name returns *fallback* (the undecoded segment) with ok=False.
    """
    try:
        return DecodeResult(data.decode(charset or DEFAULT_CHARSET, errors="replace"))
    except LookupError:
        logger.warning(f"Unknown charset {charset!r}; keeping undecoded text")
        return DecodeResult(fallback, ok=False)


def decode_content(
    body: str,
    transfer_encoding: str,
    content_type: str,
    charset: Optional[str] = None,
    as_text: bool = False
) -> DecodeResult:
    """
    Turn a body segment into text or bytes

    Rules, in order:
    1. base64: decode to bytes; text/* content (or ``as_text``) is then
       decoded under *charset*.
    2. quoted-printable: same, via decode_quoted_printable.
    3. anything else (7bit, 8bit, binary, missing, unknown): the segment is
       returned unchanged as text.

    Args:
        body: Raw body segment
        transfer_encoding: Content-Transfer-Encoding value
        content_type: Content-Type value (used for the text/* check)
        charset: Charset name (default: parsed from content_type)
        as_text: Treat the content as text regardless of its type

    Returns:
        DecodeResult; ok=False means the original segment was kept
    """
    encoding = (transfer_encoding or "").strip().lower()
    if charset is None:
        charset = get_charset(content_type)
    is_text = as_text or (content_type or "").strip().lower().startswith("text/")

    if encoding == "base64":
        try:
            data = decode_base64(body)
        except binascii.Error as e:
            logger.warning(f"Invalid base64 body; keeping undecoded text: {e}")
            return DecodeResult(body, ok=False)
    elif encoding == "quoted-printable":
        data = decode_quoted_printable(body)
    else:
        return DecodeResult(body)

    if is_text:
        return decode_bytes(data, charset, body)
    return DecodeResult(data)
