"""
Header Parser Module
Decodes RFC 2047 encoded words and splits raw header blocks into fields

SECURITY STORY: Header values are attacker-controlled text. Every encoded
word is decoded on its own and any failure (unknown charset, broken base64,
bytes that are invalid in the declared charset) leaves that word exactly as
it was. Nothing here raises for the caller.
"""

import base64
import binascii
import logging
import re
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

# =?charset?B|Q?payload?=
ENCODED_WORD_PATTERN = re.compile(r"=\?([^?]+)\?([BQ])\?([^?]*)\?=", re.IGNORECASE)
LINE_SPLIT_PATTERN = re.compile(r"\r?\n")


class HeaderMap(dict):
    """
    Header fields keyed by lowercased name

    A repeated header overwrites the earlier value: the last occurrence wins.
    Every write path (constructor, ``update``, ``setdefault``) lowercases
    the name.
    """

    def __init__(self, *args, **kwargs):
        super().__init__()
        self.update(*args, **kwargs)

    def update(self, *args, **kwargs) -> None:
        for key, value in dict(*args, **kwargs).items():
            self[key] = value

    def setdefault(self, key: str, default: Optional[str] = None) -> Optional[str]:
        if key not in self:
            self[key] = default
        return self[key]

    def pop(self, key: str, *default):
        return super().pop(key.lower(), *default)

    def __delitem__(self, key: str) -> None:
        super().__delitem__(key.lower())

    def __setitem__(self, key: str, value: str) -> None:
        super().__setitem__(key.lower(), value)

    def __getitem__(self, key: str) -> str:
        return super().__getitem__(key.lower())

    def __contains__(self, key) -> bool:
        return isinstance(key, str) and super().__contains__(key.lower())

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return super().get(key.lower(), default)


def _pad_base64(payload: str) -> str:
    return payload + "=" * (-len(payload) % 4)


def _decode_encoded_word(match: "re.Match") -> str:
    token = match.group(0)
    charset, encoding, payload = match.groups()
    # RFC 2231 language suffix, e.g. UTF-8*en
    charset = charset.split("*", 1)[0]
    try:
        if encoding.upper() == "B":
            raw = base64.b64decode(_pad_base64(payload), validate=True)
        else:
            raw = binascii.a2b_qp(payload.encode("ascii"), header=True)
        return raw.decode(charset)
    except (binascii.Error, LookupError, ValueError) as e:
        logger.debug(f"Leaving encoded word as-is ({type(e).__name__}): {e}")
        return token


def decode_header_value(value: str) -> str:
    """
    Decode every RFC 2047 encoded word embedded in a header value

    Text between encoded words (including whitespace) is kept verbatim.
    Q-encoded words treat ``_`` as a space.

    Args:
        value: Raw (unfolded) header value

    Returns:
        Decoded string; never raises

    Example:
        >>> decode_header_value("=?UTF-8?B?SGVsbG8=?= world")
        'Hello world'
    """
    if not value:
        return ""
    return ENCODED_WORD_PATTERN.sub(_decode_encoded_word, value)


def parse_headers(header_block: str) -> HeaderMap:
    """
    Parse a raw header block into a HeaderMap

    Lines starting with whitespace continue the previous field and are
    joined with a single space. Lines without a colon (or starting with one)
    are ignored.

    Args:
        header_block: Header section of a message or MIME part

    Returns:
        HeaderMap of decoded values
    """
    headers = HeaderMap()
    current_key: Optional[str] = None
    current_value = ""

    for line in LINE_SPLIT_PATTERN.split(header_block):
        if line[:1].isspace():
            if current_key is not None:
                current_value += " " + line.strip()
            continue

        if current_key is not None:
            headers[current_key] = decode_header_value(current_value)
            current_key = None
            current_value = ""

        colon_index = line.find(":")
        if colon_index > 0:
            current_key = line[:colon_index].strip()
            current_value = line[colon_index + 1:].strip()

    if current_key is not None:
        headers[current_key] = decode_header_value(current_value)

    return headers


def split_header_body(raw: str) -> Optional[Tuple[str, str]]:
    """
    Split text into header block and body at the first blank line

    CRLFCRLF is preferred whenever it occurs anywhere in the text; LFLF is
    used otherwise.

    Returns:
        (header_block, body), or None when there is no divider
    """
    divider = "\r\n\r\n" if "\r\n\r\n" in raw else "\n\n"
    index = raw.find(divider)
    if index == -1:
        return None
    return raw[:index], raw[index + len(divider):]
