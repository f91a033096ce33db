"""Complexity scoring.

score = len(zlib(payload)) with a fixed compressor configuration:
zlib container, DEFLATE, level 9, 15 window bits, memLevel 8,
Z_DEFAULT_STRATEGY, no preset dictionary, one Z_FINISH flush.
"""

from __future__ import annotations

import zlib
from typing import Any

from channel_a.config import (
    MAX_COMPLEXITY,
    MAX_SCORE,
    ZLIB_LEVEL,
    ZLIB_MEM_LEVEL,
    ZLIB_STRATEGY,
    ZLIB_WBITS,
)
from channel_a.core.errors import CompressionFault


def _compress(payload: bytes) -> bytes:
    try:
        compressor = zlib.compressobj(ZLIB_LEVEL, zlib.DEFLATED, ZLIB_WBITS, ZLIB_MEM_LEVEL, ZLIB_STRATEGY)
        return compressor.compress(payload) + compressor.flush(zlib.Z_FINISH)
    except zlib.error as e:
        raise CompressionFault(str(e)) from e


def score(payload: bytes) -> int:
    """Return the compressed size of ``payload``.

    A compressor fault yields MAX_SCORE so the payload can never pass the
    complexity gate by accident.
    """

    try:
        return len(_compress(payload))
    except CompressionFault:
        return MAX_SCORE


def check(complexity_score: int, *, max_complexity: int = MAX_COMPLEXITY) -> bool:
    return complexity_score <= max_complexity


def compressor_info() -> dict[str, Any]:
    return {
        "format": "zlib",
        "level": ZLIB_LEVEL,
        "wbits": ZLIB_WBITS,
        "mem_level": ZLIB_MEM_LEVEL,
        "zlib_version": zlib.ZLIB_VERSION,
        "zlib_runtime_version": zlib.ZLIB_RUNTIME_VERSION,
    }
