"""
Pattern Compiler Utility

Centralizes regex pattern compilation with consistent flags and ReDoS safety checks.

SECURITY STORY: The verification-code extractor runs its patterns over message
bodies chosen by whoever sent the mail. Patterns with nested unbounded
quantifiers would let a crafted body trigger catastrophic backtracking, so
every pattern table is built through these helpers and checked once at import
time.

MAINTENANCE WISDOM: When adding new keyword terms or separator characters,
build them through ``build_alternation`` and ``compile_checked``.
"""

import re
from typing import Iterable, List

# Known ReDoS signatures - nested or repeated quantifiers on unbounded character
# classes are the most common source of catastrophic backtracking.
_REDOS_SIGNATURES: List[str] = [
    r"(\w+)*",
    r"(\d+)+",
    r"(\s+)*",
    r"(a+)+",
    r"([a-zA-Z]+)*",
    r"([0-9]+)+",
]


def check_redos_safety(patterns: Iterable[str]) -> None:
    """
    Raise ValueError if any pattern contains a known ReDoS signature.

    This is a lightweight static check, not a full ReDoS prover. Detection
    uses substring matching against a fixed signature list.

    Args:
        patterns: Regex pattern strings to inspect.

    Raises:
        ValueError: If any pattern contains a known ReDoS signature.
    """
    for pattern in patterns:
        for unsafe in _REDOS_SIGNATURES:
            if unsafe in pattern:
                raise ValueError(f"Potential ReDoS in pattern: {pattern!r}")


def build_alternation(terms: Iterable[str], escape: bool = False) -> str:
    """
    Join terms into a single non-capturing alternation group.

    Args:
        terms: Alternatives, as regex fragments (or literals with ``escape=True``).
        escape: Escape each term with :func:`re.escape` first.

    Returns:
        A pattern string of the form ``(?:a|b|c)``.
    """
    parts = [re.escape(t) if escape else t for t in terms]
    if not parts:
        raise ValueError("Cannot build an alternation from no terms")
    return "(?:" + "|".join(parts) + ")"


def compile_checked(pattern: str, flags: int = re.I, validate_redos: bool = True) -> re.Pattern:
    """
    Compile a single pattern after the ReDoS signature check.

    Args:
        pattern: Regex pattern string.
        flags: Regex compilation flags (default: ``re.I`` for case-insensitive).
        validate_redos: If ``True``, run ``check_redos_safety`` before compiling.

    Returns:
        The compiled :class:`re.Pattern`.
    """
    if validate_redos:
        check_redos_safety([pattern])
    return re.compile(pattern, flags)
