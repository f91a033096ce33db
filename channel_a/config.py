"""Fixed Channel A protocol parameters.

Every value here changes verdict bytes when altered, so all of them are
folded into the ruleset identity (``ruleset_id``). Two verifiers that report
different ruleset ids are not comparing like with like.
"""

from __future__ import annotations

import os
import zlib
from typing import Any

from channel_a.core.hash import sha256_bytes
from channel_a.core.json_canon import MAX_NESTING_DEPTH, canonical_json_bytes


GATE_ID = "A"
SCHEMA_VERSION = "1.0.0"
RULESET_FORMAT_VERSION = 1

MAX_COMPLEXITY = 10_000
# Fail-safe score reported when the compressor faults (u64::MAX).
MAX_SCORE = 2**64 - 1

PAYLOAD_SEPARATOR = b"."

# zlib container, DEFLATE, maximum level, default window/memory, no dictionary.
ZLIB_LEVEL = 9
ZLIB_WBITS = 15
ZLIB_MEM_LEVEL = 8
ZLIB_STRATEGY = zlib.Z_DEFAULT_STRATEGY

REF_PREFIX = "$ref:"
REF_LIST_FIELDS = ("depends_on",)
REF_SCALAR_FIELDS = ("references", "ref")

DEV_ENV_VAR = "CHANNEL_A_DEV"


class DevOverrideNotAllowedError(RuntimeError):
    """Raised when a dev-only override is used without CHANNEL_A_DEV=1 or in CI."""


def require_dev_mode(flag_name: str) -> None:
    if os.environ.get("CI"):
        raise DevOverrideNotAllowedError(f"{flag_name} is not allowed in CI")
    if os.environ.get(DEV_ENV_VAR) != "1":
        raise DevOverrideNotAllowedError(f"{flag_name} requires {DEV_ENV_VAR}=1")


def ruleset_manifest(*, max_complexity: int = MAX_COMPLEXITY) -> dict[str, Any]:
    """Describe every verdict-affecting parameter as a JSON object."""

    from channel_a.paradox import pattern_specs

    return {
        "ruleset_format_version": RULESET_FORMAT_VERSION,
        "gate_id": GATE_ID,
        "max_complexity": max_complexity,
        "canonical_json": {
            "key_order": "utf8-bytes",
            "float_layout": "shortest-roundtrip",
            "max_nesting_depth": MAX_NESTING_DEPTH,
        },
        "text_normalization": {
            "lowercase": "full",
            "keep": ["Alphabetic", "N"],
            "to_space": "White_Space",
        },
        "payload_separator": PAYLOAD_SEPARATOR.decode("ascii"),
        "digest": "sha256",
        "compression": {
            "format": "zlib",
            "level": ZLIB_LEVEL,
            "wbits": ZLIB_WBITS,
            "mem_level": ZLIB_MEM_LEVEL,
            "strategy": "default",
            "dictionary": None,
        },
        "paradox_patterns": [
            {"family": family, "pattern": source, "engine": engine}
            for family, source, engine in pattern_specs()
        ],
        "references": {
            "prefix": REF_PREFIX,
            "list_fields": list(REF_LIST_FIELDS),
            "scalar_fields": list(REF_SCALAR_FIELDS),
        },
    }


def ruleset_id(*, max_complexity: int = MAX_COMPLEXITY) -> str:
    return sha256_bytes(canonical_json_bytes(ruleset_manifest(max_complexity=max_complexity)))


def verify_ruleset_identity(declared: Any, *, max_complexity: int = MAX_COMPLEXITY) -> str | None:
    """Return None if ``declared`` matches the active ruleset id, else a mismatch message.

    Fail-closed: a missing or malformed declaration is a mismatch.
    """

    active = ruleset_id(max_complexity=max_complexity)
    if not isinstance(declared, str) or not declared:
        return "ruleset_id missing/invalid"
    if declared != active:
        return f"ruleset_id mismatch: declared={declared!r} active={active!r}"
    return None
