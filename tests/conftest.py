"""Pytest configuration.

We keep the application code under the top-level `src/` package.
Depending on how pytest is invoked (e.g., via the `pytest` console_script) and
the active import mode, the repository root may not be on `sys.path`, which
breaks imports like `from src.modules...`.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]

# NOTE: Insert at the front so local imports win over any similarly named
# third-party packages.
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def alternative_message() -> str:
    """multipart/alternative with a plain and an HTML part, CRLF line endings"""
    return (
        "From: \"Example Service\" <no-reply@example.com>\r\n"
        "To: user@example.org\r\n"
        "Subject: Your login code\r\n"
        "MIME-Version: 1.0\r\n"
        "Content-Type: multipart/alternative; boundary=\"ALT-1\"\r\n"
        "\r\n"
        "This is a multi-part message in MIME format.\r\n"
        "--ALT-1\r\n"
        "Content-Type: text/plain; charset=utf-8\r\n"
        "\r\n"
        "Your code is 482913\r\n"
        "--ALT-1\r\n"
        "Content-Type: text/html; charset=utf-8\r\n"
        "\r\n"
        "<p>Your code is <b>482913</b></p>\r\n"
        "--ALT-1--\r\n"
    )
