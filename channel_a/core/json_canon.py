"""Canonical JSON for Channel A payloads.

The encoding produced here is part of the verification protocol: every
independent verifier must emit the same bytes for the same JSON value.

Parsing (strict):
  - RFC 8259 text only; NaN/Infinity literals are rejected
  - lone UTF-16 surrogate escapes are rejected
  - floats that overflow binary64 are rejected
  - at most MAX_NESTING_DEPTH nested arrays/objects
  - integers outside [-2**63, 2**64 - 1], and ``-0``, become binary64 floats
  - duplicate object keys: the last occurrence wins

Encoding (compact):
  - object keys in strict lexicographic order of their UTF-8 bytes
  - no insignificant whitespace, separators ``,`` and ``:``
  - strings as raw UTF-8; only ``"``, ``\\`` and U+0000..U+001F are escaped
  - integers in plain decimal, floats in shortest round-trip digits
    (see ``format_float``)
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from channel_a.core.errors import EncodingError, ParseError


MAX_NESTING_DEPTH = 128

_I64_MIN = -(2**63)
_U64_MAX = 2**64 - 1
# Longest decimal literal that can still fit in [_I64_MIN, _U64_MAX].
_MAX_INT_DIGITS = 20

_SURROGATE_RE = re.compile("[\ud800-\udfff]")


def _parse_constant(name: str) -> Any:
    raise ParseError(f"non-finite number literal not allowed: {name}")


def _parse_float(literal: str) -> float:
    value = float(literal)
    if math.isinf(value):
        raise ParseError(f"number out of range: {literal[:40]}")
    return value


def _parse_int(literal: str) -> int | float:
    if len(literal.lstrip("-")) > _MAX_INT_DIGITS:
        return _parse_float(literal)
    value = int(literal)
    if value == 0 and literal.startswith("-"):
        return -0.0
    if _I64_MIN <= value <= _U64_MAX:
        return value
    return _parse_float(literal)


def _check_tree(root: Any, *, max_depth: int) -> None:
    stack: list[tuple[Any, int]] = [(root, 0)]
    while stack:
        value, depth = stack.pop()
        if isinstance(value, str):
            if _SURROGATE_RE.search(value) is not None:
                raise ParseError("lone surrogate in string value")
        elif isinstance(value, dict):
            if depth + 1 > max_depth:
                raise ParseError(f"nesting depth exceeds {max_depth}")
            for k, v in value.items():
                if _SURROGATE_RE.search(k) is not None:
                    raise ParseError("lone surrogate in object key")
                stack.append((v, depth + 1))
        elif isinstance(value, list):
            if depth + 1 > max_depth:
                raise ParseError(f"nesting depth exceeds {max_depth}")
            for v in value:
                stack.append((v, depth + 1))


def parse_json_strict(text: str, *, max_depth: int = MAX_NESTING_DEPTH) -> Any:
    """Parse JSON text into a value tree or raise ParseError."""

    if not isinstance(text, str):
        raise ParseError(f"JSON text must be str, got {type(text).__name__}")
    try:
        value = json.loads(
            text,
            parse_int=_parse_int,
            parse_float=_parse_float,
            parse_constant=_parse_constant,
        )
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid JSON: {e}") from e
    except RecursionError as e:
        raise ParseError(f"nesting depth exceeds {max_depth}") from e
    _check_tree(value, max_depth=max_depth)
    return value


def _to_utf8(text: str) -> bytes:
    try:
        return text.encode("utf-8", errors="strict")
    except UnicodeEncodeError as e:
        raise EncodingError(f"value is not encodable as UTF-8: {e.reason}") from e


def _utf8_key(key: str) -> bytes:
    return _to_utf8(key)


def sort_keys_recursive(value: Any) -> Any:
    """Return a copy of ``value`` with every object's keys in UTF-8 byte order."""

    if isinstance(value, dict):
        return {k: sort_keys_recursive(value[k]) for k in sorted(value, key=_utf8_key)}
    if isinstance(value, list):
        return [sort_keys_recursive(v) for v in value]
    return value


def _shortest_digits(x: float) -> tuple[str, int]:
    # repr() yields the shortest digit string that round-trips; re-layout below.
    mantissa, _, exp_part = repr(x).partition("e")
    exponent = int(exp_part) if exp_part else 0
    int_part, _, frac_part = mantissa.partition(".")
    digits = (int_part + frac_part).lstrip("0")
    exponent -= len(frac_part)
    stripped = digits.rstrip("0")
    exponent += len(digits) - len(stripped)
    return stripped, exponent


def format_float(x: float) -> str:
    """Format a finite float as digits x 10**k using the fixed layout rule.

    With n = len(digits) and kk = n + k:
      0 <= k and kk <= 16  -> 1000.0
      0 < kk <= 16         -> 12.34
      -5 < kk <= 0         -> 0.001234
      n == 1               -> 1e20, 1e-7
      otherwise            -> 1.234e20, 1.5e-7
    """

    if math.isnan(x) or math.isinf(x):
        raise EncodingError(f"non-finite float cannot be encoded: {x!r}")
    if x == 0.0:
        return "-0.0" if math.copysign(1.0, x) < 0 else "0.0"

    sign = "-" if x < 0 else ""
    digits, k = _shortest_digits(abs(x))
    n = len(digits)
    kk = n + k

    if 0 <= k and kk <= 16:
        body = digits + "0" * k + ".0"
    elif 0 < kk <= 16:
        body = digits[:kk] + "." + digits[kk:]
    elif -5 < kk <= 0:
        body = "0." + "0" * (-kk) + digits
    elif n == 1:
        body = f"{digits}e{kk - 1}"
    else:
        body = f"{digits[0]}.{digits[1:]}e{kk - 1}"
    return sign + body


def _encode(value: Any, out: list[str]) -> None:
    if value is None:
        out.append("null")
    elif value is True:
        out.append("true")
    elif value is False:
        out.append("false")
    elif isinstance(value, int):
        out.append(str(value))
    elif isinstance(value, float):
        out.append(format_float(value))
    elif isinstance(value, str):
        out.append(json.dumps(value, ensure_ascii=False))
    elif isinstance(value, dict):
        out.append("{")
        for i, (k, v) in enumerate(value.items()):
            if not isinstance(k, str):
                raise EncodingError(f"object key must be str, got {type(k).__name__}")
            if i:
                out.append(",")
            out.append(json.dumps(k, ensure_ascii=False))
            out.append(":")
            _encode(v, out)
        out.append("}")
    elif isinstance(value, (list, tuple)):
        out.append("[")
        for i, v in enumerate(value):
            if i:
                out.append(",")
            _encode(v, out)
        out.append("]")
    else:
        raise EncodingError(f"unsupported JSON value type: {type(value).__name__}")


def encode_compact(value: Any) -> str:
    """Serialize ``value`` as compact JSON, preserving the given key order."""

    out: list[str] = []
    _encode(value, out)
    return "".join(out)


def canonical_ast_bytes(value: Any) -> bytes:
    """Return the canonical (sorted, compact, no trailing LF) bytes for a JSON value."""

    return _to_utf8(encode_compact(sort_keys_recursive(value)))


def canonical_json_bytes(obj: Any) -> bytes:
    """Return canonical JSON bytes (UTF-8, sorted keys, compact separators, trailing LF)."""

    return _to_utf8(encode_compact(sort_keys_recursive(obj)) + "\n")
