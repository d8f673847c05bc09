"""
Verification Code Extractor
Finds one-time numeric codes near verification keywords in subject and body

PATTERN RECOGNITION: Matching runs through an ordered table of tiers. Each
tier has a scope (subject or body), a window (how many non-digit characters
may sit between keyword and code) and two directional patterns
(keyword-then-code, code-then-keyword). The first accepted match wins:

    tier 1: subject, window 20
    tier 2: body,    window 30
    tier 3: body,    window 80

Every candidate passes a false-positive filter that rejects digit runs that
look like years, postal codes or street numbers.

SECURITY STORY: Bodies are attacker-controlled. All patterns use bounded
quantifiers and are compiled once at import time through pattern_compiler,
which rejects known catastrophic-backtracking shapes.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from ..utils.pattern_compiler import build_alternation, compile_checked

KEYWORD_TERMS = (
    "verification",
    r"one[-\s]?time",
    r"two[-\s]?factor",
    "2fa",
    "security",
    "auth",
    "login",
    "confirm",
    "code",
    "otp",
    "pin",
    "验证码",
    "校验码",
    "驗證碼",
    "確認碼",
    "認證碼",
    "認証コード",
    "인증코드",
    "코드",
)
KEYWORDS = build_alternation(KEYWORD_TERMS)

# Separators allowed between code digits: whitespace, NBSP, hyphen, en/em
# dash, underscore, period, middle dot, bullets, apostrophes
SEPARATOR_CLASS = r"[\u00A0\s\-\u2013\u2014_.\u00B7\u2022\u2219\u2027'\u2018\u2019]"
SEPARATOR_PATTERN = re.compile(SEPARATOR_CLASS)

# 4-8 digits, optionally one separator between neighbours
CODE_CHUNK = rf"([0-9](?:{SEPARATOR_CLASS}?[0-9]){{3,7}})"

CONTEXT_RADIUS = 50
YEAR_RANGE = (2000, 2099)

POSTAL_CONTEXT_PATTERN = compile_checked(
    r"\b(?:street|st|avenue|ave|road|rd|address|zip|postal)\b"
)
STREET_SUFFIX = r"(?i:street|st|avenue|ave|road|rd)\b"
# "123 Main Street": case-sensitive so the street name must be capitalized
STREET_NUMBER_PATTERN = compile_checked(
    rf"\b([0-9]+)\s+[A-Z][a-z]+\s+{STREET_SUFFIX}", flags=0
)

# HTML reduction
SCRIPT_STYLE_PATTERN = re.compile(r"<(script|style)\b[\s\S]*?</\1\s*>", re.IGNORECASE)
TAG_PATTERN = re.compile(r"<[^>]+>")
ENTITY_PATTERN = re.compile(r"&(#[0-9]{1,7}|#[xX][0-9a-fA-F]{1,6}|[a-zA-Z][a-zA-Z0-9]{1,31});")
SPACE_RUN_PATTERN = re.compile(r"\s+")
NAMED_ENTITIES = {
    "nbsp": " ",
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
}


def _replace_entity(match: "re.Match") -> str:
    name = match.group(1)
    if name.startswith("#"):
        try:
            codepoint = int(name[2:], 16) if name[1:2] in ("x", "X") else int(name[1:])
            if 0xD800 <= codepoint <= 0xDFFF:
                return " "
            return chr(codepoint)
        except (ValueError, OverflowError):
            return " "
    return NAMED_ENTITIES.get(name.lower(), " ")


def strip_html(html: str) -> str:
    """
    Reduce HTML to plain text for code matching

    Drops script/style blocks, replaces tags with spaces, decodes numeric
    entities and a core set of named ones (other named entities become a
    space), then collapses whitespace.
    """
    if not html:
        return ""
    text = SCRIPT_STYLE_PATTERN.sub(" ", html)
    text = TAG_PATTERN.sub(" ", text)
    text = ENTITY_PATTERN.sub(_replace_entity, text)
    return SPACE_RUN_PATTERN.sub(" ", text).strip()


def clean_digits(raw: str) -> str:
    """Remove separator characters from a matched code"""
    return SEPARATOR_PATTERN.sub("", raw)


def is_likely_non_code(digits: str, context: str) -> bool:
    """
    Return True if a digit run is probably a year, postal code or street number

    Rules:
    - exactly 4 digits in 2000-2099 (calendar year), regardless of keywords
    - exactly 5 digits with an address/postal word in the context
    - digits followed by a capitalized word and a street-type word,
      as in "123 Main Street"

    Args:
        digits: Separator-free digit string
        context: Text around the match (50 characters either side)
    """
    if len(digits) == 4 and YEAR_RANGE[0] <= int(digits) <= YEAR_RANGE[1]:
        return True

    if len(digits) == 5 and POSTAL_CONTEXT_PATTERN.search(context):
        return True

    return any(
        match.group(1) == digits for match in STREET_NUMBER_PATTERN.finditer(context)
    )


def _proximity_pattern(window: int, keyword_first: bool) -> "re.Pattern":
    gap = rf"[^\n\r0-9]{{0,{window}}}"
    code = rf"(?<![0-9]){CODE_CHUNK}(?![0-9])"
    if keyword_first:
        return compile_checked(f"{KEYWORDS}{gap}{code}")
    return compile_checked(f"{code}{gap}{KEYWORDS}")


@dataclass(frozen=True)
class VerificationTier:
    """One matching tier: where to look, how far apart, which patterns"""
    scope: str  # "subject" or "body"
    window: int
    patterns: Tuple["re.Pattern", ...]

    @classmethod
    def build(cls, scope: str, window: int) -> "VerificationTier":
        return cls(
            scope=scope,
            window=window,
            patterns=(
                _proximity_pattern(window, keyword_first=True),
                _proximity_pattern(window, keyword_first=False),
            ),
        )


class VerificationCodeExtractor:
    """
    Extracts a verification code from a message's subject and body

    Extraction is advisory: a missing code is a normal outcome, and
    adversarial text can produce a wrong one.
    """

    TIERS: Tuple[VerificationTier, ...] = (
        VerificationTier.build("subject", 20),
        VerificationTier.build("body", 30),
        VerificationTier.build("body", 80),
    )

    def __init__(self):
        self.logger = logging.getLogger("VerificationCodeExtractor")

    def extract(self, subject: str, text: str, html: str) -> Optional[str]:
        """
        Return the first accepted code, or None

        The body is the plain-text part when non-empty, otherwise the HTML
        part reduced by strip_html.

        Args:
            subject: Decoded subject line
            text: Plain-text body
            html: HTML body

        Returns:
            Digit-only code string, or None
        """
        scopes = {
            "subject": subject or "",
            "body": (text or "") or strip_html(html or ""),
        }

        for tier in self.TIERS:
            code = self._try_match(scopes[tier.scope], tier)
            if code:
                self.logger.debug(
                    f"Verification code found in {tier.scope} (window {tier.window})"
                )
                return code

        return None

    def _try_match(self, text: str, tier: VerificationTier) -> Optional[str]:
        """Test each directional pattern of a tier on its leftmost match"""
        if not text:
            return None

        for pattern in tier.patterns:
            match = pattern.search(text)
            if not match:
                continue
            digits = clean_digits(match.group(1))
            start = max(0, match.start() - CONTEXT_RADIUS)
            context = text[start:match.end() + CONTEXT_RADIUS]
            if is_likely_non_code(digits, context):
                self.logger.debug(
                    f"Rejected {len(digits)}-digit candidate in {tier.scope} as non-code"
                )
                continue
            return digits

        return None


_default_extractor = VerificationCodeExtractor()


def extract_verification_code(subject: str, text: str, html: str) -> Optional[str]:
    """Extract a verification code with the default tier table"""
    return _default_extractor.extract(subject, text, html)
