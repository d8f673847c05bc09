"""
Email Parser Module
Decodes raw RFC 5322 messages into structured ParsedEmail records

PATTERN RECOGNITION: This follows the Parser pattern - it takes unstructured
data (raw message text) and transforms it into a structured object
(ParsedEmail). It does no I/O: storage and delivery happen elsewhere.

SECURITY STORY: Raw messages are untrusted and frequently malformed. The
parser is total: it never raises, and anything it cannot decode is left at
its default (empty text, empty attachment list, "(No Subject)"). Resource
limits for nested multiparts are enforced by MimeWalker.
"""

import logging
import re
from typing import List, Optional, Union

from .content_decoder import decode_content, get_boundary, get_charset
from .email_data import DEFAULT_SUBJECT, ParsedEmail, PartSink
from .header_parser import HeaderMap, parse_headers, split_header_body
from .mime_walker import MimeWalker
from ..utils.config import ParserConfig
from ..utils.sanitization import sanitize_for_logging

ANGLE_ADDRESS_PATTERN = re.compile(r"<([^>]+)>")
BARE_ADDRESS_PATTERN = re.compile(r"([^\s<>]+@[^\s<>]+)")


def extract_address(value: str) -> str:
    """
    Pull the mailbox address out of one address header entry

    Prefers the ``<...>`` form, then the first bare ``user@host`` token, and
    falls back to the value itself.

    Example:
        >>> extract_address('"Jane Doe" <jane@example.com>')
        'jane@example.com'
    """
    value = value or ""
    match = ANGLE_ADDRESS_PATTERN.search(value) or BARE_ADDRESS_PATTERN.search(value)
    return match.group(1) if match else value


def split_address_list(value: str) -> List[str]:
    """
    Split an address header on commas that are not inside double quotes

    ``"Doe, Jane" <jane@example.com>, bob@example.com`` yields two entries.
    Empty entries are dropped.
    """
    entries = []
    current = []
    in_quotes = False
    escaped = False

    for ch in value or "":
        if escaped:
            escaped = False
        elif ch == "\\" and in_quotes:
            escaped = True
        elif ch == '"':
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            entries.append("".join(current))
            current = []
            continue
        current.append(ch)
    entries.append("".join(current))

    return [entry.strip() for entry in entries if entry.strip()]


class EmailParser:
    """
    Parses raw messages into ParsedEmail objects

    MAINTENANCE WISDOM: Keep parsing logic separate from I/O. The same
    parser serves inbound delivery and re-parsing of stored raw messages,
    so it must give the same answer for the same bytes every time.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        """
        Initialize email parser

        Args:
            config: Resource limits (default: module defaults)
        """
        self.config = config or ParserConfig()
        self.walker = MimeWalker(self.config)
        self.logger = logging.getLogger("EmailParser")

    def parse_email(self, raw: Union[str, bytes]) -> ParsedEmail:
        """
        Parse a raw message into a ParsedEmail

        Bytes input is decoded as UTF-8 with replacement characters. The
        header block ends at the first blank line (CRLFCRLF preferred, LFLF
        otherwise); a message without one is all headers.

        Args:
            raw: Raw RFC 5322 message

        Returns:
            ParsedEmail, populated as far as the input allows; never raises
        """
        result = ParsedEmail()
        size = len(raw) if raw else 0

        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = bytes(raw).decode("utf-8", errors="replace")
            raw = raw or ""

            split = split_header_body(raw)
            header_block, body = split if split is not None else (raw, "")
            headers = parse_headers(header_block)

            result.sender = extract_address(headers.get("from") or "")
            result.to = [extract_address(entry) for entry in split_address_list(headers.get("to") or "")]
            result.subject = headers.get("subject") or DEFAULT_SUBJECT

            self._extract_content(headers, body, result)

        except Exception as e:
            self.logger.error(
                f"Error parsing message of {size} characters: {e}", exc_info=True
            )

        self.logger.debug(
            f"Parsed message '{sanitize_for_logging(result.subject, 80)}': "
            f"text={len(result.text)} html={len(result.html)} "
            f"attachments={len(result.attachments)}"
        )
        return result

    def _extract_content(self, headers: HeaderMap, body: str, result: ParsedEmail) -> None:
        """Fill text, html and attachments from the message body"""
        content_type = headers.get("content-type") or "text/plain"
        transfer_encoding = headers.get("content-transfer-encoding") or ""

        if "multipart/" in content_type.lower():
            boundary = get_boundary(content_type)
            if not boundary:
                self.logger.warning("Multipart message without boundary; body skipped")
                return
            sink = PartSink()
            # Results land in the record even if the walk is cut short
            result.attachments = sink.attachments
            self.walker.walk(body, boundary, sink)
            result.text = sink.text
            result.html = sink.html
            if sink.limit_reached:
                self.logger.warning(
                    f"Resource limit reached after {sink.parts_seen} MIME parts; "
                    f"message partially decoded"
                )
            return

        self._extract_singlepart_content(body, content_type, transfer_encoding, result)

    def _extract_singlepart_content(
        self,
        body: str,
        content_type: str,
        transfer_encoding: str,
        result: ParsedEmail
    ) -> None:
        """Decode a non-multipart body as text, whatever its declared type"""
        decoded = decode_content(
            body, transfer_encoding, content_type, get_charset(content_type), as_text=True
        )
        text = decoded.value
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")

        if "text/html" in content_type.lower():
            result.html = text
        else:
            result.text = text


_default_parser = EmailParser()


def parse_email(raw: Union[str, bytes]) -> ParsedEmail:
    """Parse a raw message with default resource limits"""
    return _default_parser.parse_email(raw)
