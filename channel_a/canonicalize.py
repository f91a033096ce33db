"""Canonical proposal representation.

payload = canonical_ast_bytes(logic) || b"." || utf8(normalize_text(text))
digest  = sha256(payload)   (doubles as the proposal identifier)

Text classes are Unicode properties: a character is kept when it is
Alphabetic or a Number (N*), and mapped to a space when it is White_Space.
"""

from __future__ import annotations

import regex

from channel_a.config import PAYLOAD_SEPARATOR
from channel_a.core.errors import EncodingError
from channel_a.core.hash import sha256_digest
from channel_a.core.json_canon import canonical_ast_bytes, parse_json_strict
from channel_a.types import CanonicalPayload, Proposal


_DROPPED = regex.compile(r"[^\p{Alphabetic}\p{N}\p{White_Space}]+")
_WHITE_SPACE_RUN = regex.compile(r"\p{White_Space}+")


def normalize_text(text: str) -> str:
    """Lower-case, drop punctuation, collapse whitespace runs to one space, trim."""

    kept = _DROPPED.sub("", text.lower())
    return " ".join(part for part in _WHITE_SPACE_RUN.split(kept) if part)


def decode_text(text: str | bytes) -> str:
    # Raw UTF-8 bytes are accepted; a str must be encodable as UTF-8.
    if isinstance(text, (bytes, bytearray)):
        try:
            return bytes(text).decode("utf-8", errors="strict")
        except UnicodeDecodeError as e:
            raise EncodingError(f"proposal text is not valid UTF-8: {e.reason}") from e
    if not isinstance(text, str):
        raise EncodingError(f"proposal text must be str, got {type(text).__name__}")
    try:
        text.encode("utf-8", errors="strict")
    except UnicodeEncodeError as e:
        raise EncodingError(f"proposal text is not encodable as UTF-8: {e.reason}") from e
    return text


def canonical_logic_bytes(logic: str) -> bytes:
    """Parse a logic description and return its sorted compact encoding.

    Raises ParseError on invalid JSON.
    """

    return canonical_ast_bytes(parse_json_strict(logic))


def canonicalize(proposal: Proposal) -> CanonicalPayload:
    """Return the canonical payload and digest of ``proposal``.

    Raises ParseError if the logic description is not valid JSON text and
    EncodingError if the text is not valid UTF-8 (bytes) or holds lone
    surrogates (str). Pure: no other failure mode and no side effects.
    """

    ast_bytes = canonical_logic_bytes(proposal.logic)
    text_bytes = normalize_text(decode_text(proposal.text)).encode("utf-8", errors="strict")

    data = ast_bytes + PAYLOAD_SEPARATOR + text_bytes
    return CanonicalPayload(data=data, digest=sha256_digest(data))


def proposal_id(proposal: Proposal) -> str:
    """Hex SHA-256 of the canonical payload; the proposal's content address."""

    return canonicalize(proposal).hash_hex
