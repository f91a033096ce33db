"""Paradox detection over raw proposal text.

The pattern list is fixed protocol data: six families, matched in order.
Families without backreferences run on RE2, so matching time is linear in
the text length. Family 5 needs a backreference and runs on ``regex``; its
keywords are case-insensitive but the repeated name must match exactly.

``\\s`` is Unicode White_Space and ``\\w`` is the Unicode word class
(Alphabetic, marks, connector punctuation, decimal digits, join controls) in
every family, whichever engine compiles it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import re2
import regex


ENGINE_RE2 = "re2"
ENGINE_REGEX = "regex"

# Unicode White_Space, spelled out: RE2 has no binary-property classes.
_RE2_WHITE_SPACE = (
    r"[\x{9}-\x{D}\x{20}\x{85}\x{A0}\x{1680}\x{2000}-\x{200A}"
    r"\x{2028}\x{2029}\x{202F}\x{205F}\x{3000}]"
)
_REGEX_WHITE_SPACE = r"\p{White_Space}"
_REGEX_WORD = r"[\p{Alphabetic}\p{M}\p{Pc}\p{Nd}\p{Join_Control}]"

# (family, declared pattern, engine); order is part of the protocol.
_DECLARED: tuple[tuple[str, str, str], ...] = (
    (
        "biconditional-self-negation",
        r"(?i)(this proposal|the motion|this rule|this amendment).*"
        r"(passes|fails|is true|is false|succeeds|is rejected)\s+(iff|if and only if)\s+.*"
        r"(fails|passes|is false|is true|is rejected|succeeds)",
        ENGINE_RE2,
    ),
    (
        "liar",
        r"(?i)(this rule|this statement|the following statement|this proposal)\s+(is|are)\s+false",
        ENGINE_RE2,
    ),
    (
        "conditional-self-negation",
        r"(?i)if\s+(this|it).*(true|passes|succeeds).*then.*(false|fails|is rejected)",
        ENGINE_RE2,
    ),
    (
        "negation-loop",
        r"(?i)(this|it).*(passes|succeeds|is approved)\s+(only if|unless)\s+.*"
        r"(doesn't|does not|not)\s*(pass|succeed|approved)",
        ENGINE_RE2,
    ),
    (
        "self-contradictory-definition",
        r"((?i:define|let|set))\s+(\w+)\s+((?i:as|to be|equal to|=))\s+"
        r"((?i:not|the opposite of|the negation of))\s+\2",
        ENGINE_REGEX,
    ),
    (
        "russell",
        r"(?i)(set|collection|group)\s+of\s+(all)?\s*(proposals?|rules?|statements?)\s+that\s+"
        r"(don't|do not|doesn't)\s+(include|contain|reference)\s+(themselves|itself)",
        ENGINE_RE2,
    ),
)


def _expand(source: str, engine: str) -> str:
    if engine == ENGINE_RE2:
        return source.replace(r"\s", _RE2_WHITE_SPACE)
    return source.replace(r"\s", _REGEX_WHITE_SPACE).replace(r"\w", _REGEX_WORD)


def _compile(source: str, engine: str) -> Any:
    if engine == ENGINE_RE2:
        return re2.compile(source)
    return regex.compile(source)


_PATTERN_SPECS: tuple[tuple[str, str, str], ...] = tuple(
    (family, _expand(source, engine), engine) for family, source, engine in _DECLARED
)

_PATTERNS: tuple[Any, ...] = tuple(_compile(source, engine) for _, source, engine in _PATTERN_SPECS)


@dataclass(frozen=True)
class ParadoxMatch:
    index: int
    family: str
    matched: str

    def to_dict(self) -> dict[str, object]:
        return {"index": self.index, "family": self.family, "matched": self.matched}


def pattern_specs() -> list[tuple[str, str, str]]:
    """(family, compiled pattern source, engine) for every family, in order."""

    return list(_PATTERN_SPECS)


def patterns() -> list[str]:
    return [source for _, source, _ in _PATTERN_SPECS]


def detect(text: str) -> bool:
    """True if any paradox pattern matches anywhere in the raw text."""

    return any(p.search(text) is not None for p in _PATTERNS)


def find_matches(text: str) -> list[ParadoxMatch]:
    """Return the first match of every matching family, in family order."""

    out: list[ParadoxMatch] = []
    for i, p in enumerate(_PATTERNS):
        m = p.search(text)
        if m is not None:
            out.append(ParadoxMatch(index=i, family=_PATTERN_SPECS[i][0], matched=m.group(0)))
    return out
