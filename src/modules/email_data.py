"""
Email Data Model
Contains the dataclasses produced by decoding a raw message
"""

import hashlib
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

DEFAULT_SUBJECT = "(No Subject)"
DEFAULT_ATTACHMENT_NAME = "attachment"

# Extension fallback when the filename has none
CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "application/pdf": "pdf",
    "application/zip": "zip",
    "text/plain": "txt",
}

_EXTENSION_PATTERN = re.compile(r"\.([^.]+)$")


@dataclass(frozen=True)
class Attachment:
    """
    A decoded attachment

    ``content`` is the exact decoded byte sequence: identical encoded input
    always yields identical bytes, which is what content-addressed storage
    keys off.
    """
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def sha256(self) -> str:
        """Hex SHA-256 of ``content``, the deduplication key"""
        return hashlib.sha256(self.content).hexdigest()

    @property
    def extension(self) -> str:
        match = _EXTENSION_PATTERN.search(self.filename)
        if match:
            return match.group(1).lower()
        return CONTENT_TYPE_EXTENSIONS.get(self.content_type, "bin")

    @property
    def storage_key(self) -> str:
        return f"attachments/{self.sha256}.{self.extension}"


@dataclass
class PartSink:
    """
    Mutable accumulator filled while walking a multipart body

    ``text`` and ``html`` hold the last matching part seen; ``parts_seen``
    and ``attachment_bytes`` feed the resource limits.
    """
    text: str = ""
    html: str = ""
    attachments: List[Attachment] = field(default_factory=list)
    parts_seen: int = 0
    attachment_bytes: int = 0
    limit_reached: bool = False


@dataclass
class ParsedEmail:
    """
    Structured record decoded from one raw message

    Never carries exceptions: fields that could not be decoded are left at
    their defaults.
    """
    sender: str = ""
    to: List[str] = field(default_factory=list)
    subject: str = DEFAULT_SUBJECT
    text: str = ""
    html: str = ""
    attachments: List[Attachment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Return the record in its external field layout"""
        return {
            "from": self.sender,
            "to": list(self.to),
            "subject": self.subject,
            "text": self.text,
            "html": self.html,
            "attachments": [
                {
                    "filename": att.filename,
                    "contentType": att.content_type,
                    "content": att.content,
                }
                for att in self.attachments
            ],
        }
