"""
MIME Walker Module
Recursively splits multipart bodies and routes each part to text, html or attachments

SECURITY STORY: Multipart nesting is attacker-controlled. The walker enforces
three ceilings from ParserConfig:
- nesting depth (each nested multipart is one recursion level)
- total parts visited per message (MIME bombs with thousands of siblings)
- total decoded attachment bytes (attachments are dropped, never truncated,
  so every stored attachment stays byte-exact)
Hitting a ceiling logs a warning and skips the offending parts; everything
decoded before that point is kept.
"""

import logging
import re
from typing import Iterator, Optional, Union
from urllib.parse import unquote

from .content_decoder import decode_content, get_boundary, get_charset, media_type
from .email_data import DEFAULT_ATTACHMENT_NAME, Attachment, PartSink
from .header_parser import decode_header_value, parse_headers, split_header_body
from ..utils.config import ParserConfig
from ..utils.sanitization import sanitize_for_logging
from ..utils.security_validators import validate_mime_depth, validate_mime_parts_count

# Part kinds returned by classify_part
PART_ATTACHMENT = "attachment"
PART_HTML = "html"
PART_TEXT = "text"

FILENAME_PATTERN = re.compile(
    r"""filename=(?:"([^"]*)"|'([^']*)'|([^"';\r\n]+))""", re.IGNORECASE
)
FILENAME_EXT_PATTERN = re.compile(r'''filename\*="?([^";\r\n]+)''', re.IGNORECASE)


def get_filename(disposition: str) -> str:
    """
    Return the attachment filename declared in a Content-Disposition value

    ``filename=`` wins over the RFC 2231 ``filename*=`` form. Encoded words
    in the name are decoded. Defaults to "attachment".
    """
    match = FILENAME_PATTERN.search(disposition or "")
    if match:
        raw = next(group for group in match.groups() if group is not None).strip()
        if raw:
            return decode_header_value(raw)

    match = FILENAME_EXT_PATTERN.search(disposition or "")
    if match:
        name = _decode_rfc2231(match.group(1).strip())
        if name:
            return name

    return DEFAULT_ATTACHMENT_NAME


def _decode_rfc2231(value: str) -> str:
    # charset'language'percent-encoded-text
    parts = value.split("'", 2)
    if len(parts) != 3:
        return unquote(value, errors="replace")
    charset = parts[0] or "utf-8"
    try:
        return unquote(parts[2], encoding=charset, errors="replace")
    except LookupError:
        return unquote(parts[2], errors="replace")


def classify_part(value: Union[str, bytes], content_type: str, disposition: str) -> Optional[str]:
    """
    Decide what a decoded, non-multipart part is

    Decision order:
    1. disposition mentions "attachment", or declares a filename on a
       non-text part -> attachment
    2. non-text part that decoded to bytes -> attachment
    3. text/html -> html
    4. text/plain -> text
    5. anything else -> None (discarded)
    """
    content_type = (content_type or "").lower()
    disposition = (disposition or "").lower()
    is_text = content_type.startswith("text/")

    if "attachment" in disposition or ("filename" in disposition and not is_text):
        return PART_ATTACHMENT
    if not is_text and isinstance(value, bytes):
        return PART_ATTACHMENT
    if "text/html" in content_type:
        return PART_HTML
    if "text/plain" in content_type:
        return PART_TEXT
    return None


def iter_segments(body: str, boundary: str) -> Iterator[str]:
    """
    Yield the trimmed segments between ``--boundary`` markers

    Empty segments and the bare closing segment (exactly ``--``) are
    skipped. Segments after a closing delimiter are still yielded; epilogue
    text without a header/body divider is dropped later by ``parse_part``.
    """
    marker = f"--{boundary}"
    start = 0
    while start <= len(body):
        end = body.find(marker, start)
        segment = body[start:] if end == -1 else body[start:end]
        trimmed = segment.strip()
        if trimmed and trimmed != "--":
            yield trimmed
        if end == -1:
            return
        start = end + len(marker)


class MimeWalker:
    """
    Walks multipart bodies into a PartSink

    MAINTENANCE WISDOM: The walker is stateless between messages; all
    per-message state lives in the PartSink, so one walker can be shared.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self.logger = logging.getLogger("MimeWalker")

    def walk(self, body: str, boundary: str, sink: PartSink, depth: int = 1) -> PartSink:
        """
        Split a multipart body on its boundary and route each part

        Args:
            body: Multipart body (everything after the container's headers)
            boundary: Boundary token from the container's Content-Type
            sink: Accumulator for text, html and attachments
            depth: Nesting level of this container (top-level body is 1)

        Returns:
            The same sink, for chaining
        """
        if not validate_mime_depth(depth, self.config.max_mime_depth):
            sink.limit_reached = True
            return sink

        for segment in iter_segments(body, boundary):
            sink.parts_seen += 1
            if not validate_mime_parts_count(sink.parts_seen, self.config.max_mime_parts):
                sink.limit_reached = True
                break
            self.parse_part(segment, sink, depth)

        return sink

    def parse_part(self, segment: str, sink: PartSink, depth: int) -> None:
        """Decode one part; recurse when it is itself a multipart container"""
        split = split_header_body(segment)
        if split is None:
            self.logger.debug("Skipping MIME segment without header/body divider")
            return

        header_block, part_body = split
        headers = parse_headers(header_block)
        content_type = headers.get("content-type") or "text/plain"
        transfer_encoding = headers.get("content-transfer-encoding") or ""
        disposition = headers.get("content-disposition") or ""

        if "multipart/" in content_type.lower():
            boundary = get_boundary(content_type)
            if boundary:
                self.walk(part_body, boundary, sink, depth + 1)
            else:
                self.logger.debug("Skipping nested multipart without boundary")
            return

        result = decode_content(
            part_body, transfer_encoding, content_type, get_charset(content_type)
        )
        kind = classify_part(result.value, content_type, disposition)

        if kind == PART_ATTACHMENT:
            self._add_attachment(sink, result.value, content_type, disposition)
        elif kind == PART_HTML:
            sink.html = self._as_text(result.value)
        elif kind == PART_TEXT:
            sink.text = self._as_text(result.value)
        else:
            self.logger.debug(
                f"Discarding part of type {sanitize_for_logging(media_type(content_type))}"
            )

    def _add_attachment(
        self,
        sink: PartSink,
        value: Union[str, bytes],
        content_type: str,
        disposition: str
    ) -> None:
        """Append an attachment unless it would exceed the total size budget"""
        content = value if isinstance(value, bytes) else value.encode("utf-8")
        filename = get_filename(disposition)
        limit = self.config.max_total_attachment_bytes

        if limit > 0 and sink.attachment_bytes + len(content) > limit:
            self.logger.warning(
                f"Max total attachment size ({limit}) exceeded. "
                f"Skipping attachment {sanitize_for_logging(filename)}."
            )
            sink.limit_reached = True
            return

        sink.attachments.append(Attachment(
            filename=filename,
            content_type=media_type(content_type),
            content=content,
        ))
        sink.attachment_bytes += len(content)

    @staticmethod
    def _as_text(value: Union[str, bytes]) -> str:
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return value
