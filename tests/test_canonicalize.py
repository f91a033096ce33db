from __future__ import annotations

import sys
from pathlib import Path

import pytest

pytestmark = pytest.mark.repo_local


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from channel_a.canonicalize import canonicalize, decode_text, normalize_text, proposal_id
from channel_a.core.errors import EncodingError, ParseError
from channel_a.core.hash import is_hex_sha256, sha256_bytes
from channel_a.types import GovernanceLayer, Proposal, ProposalStatus


def _proposal(logic: str, text: str | bytes, **kw: object) -> Proposal:
    return Proposal(proposer="alice", logic=logic, text=text, created_at=0, **kw)  # type: ignore[arg-type]


def test_reordered_keys_and_recased_text_share_one_hash() -> None:
    p1 = _proposal('{"b":2,"a":1}', "Hello, World!")
    p2 = _proposal('{"a":1,"b":2}', "HELLO, WORLD!")

    c1 = canonicalize(p1)
    c2 = canonicalize(p2)
    assert c1.data == b'{"a":1,"b":2}.hello world'
    assert c1.digest == c2.digest
    assert proposal_id(p1) == proposal_id(p2) == c1.hash_hex


def test_digest_is_sha256_of_payload() -> None:
    c = canonicalize(_proposal('{"x": [1, 2]}', "Some text."))
    assert c.hash_hex == sha256_bytes(c.data)
    assert is_hex_sha256(c.hash_hex)
    assert c.payload_hex == c.data.hex()
    assert c.length == len(c.data)


def test_metadata_does_not_affect_payload() -> None:
    a = Proposal(proposer="alice", logic="{}", text="t", created_at=1)
    b = Proposal(
        proposer="bob",
        logic="{}",
        text="t",
        created_at=999,
        layer=GovernanceLayer.L0_IMMUTABLE,
        status=ProposalStatus.VOTING,
    )
    assert canonicalize(a) == canonicalize(b)


def test_canonicalize_is_deterministic() -> None:
    p = _proposal('{"k": {"z": 0.5, "a": [true, null]}}', "Deterministic, please.")
    assert canonicalize(p) == canonicalize(p)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Hello, World!", "hello world"),
        ("  leading and trailing  ", "leading and trailing"),
        ("tabs\tand\nnewlines\r\n", "tabs and newlines"),
        ("multiple     spaces", "multiple spaces"),
        ("punct.u-a_t!ion?", "punctuation"),
        ("Ünïcode Çase", "ünïcode çase"),
        ("100% of 2,000", "100 of 2000"),
        ("", ""),
        ("!!!", ""),
        ("\u0939\u093f\u0902\u0926\u0940", "\u0939\u093f\u0902\u0926\u0940"),
        ("\u0e20\u0e32\u0e29\u0e32\u0e44\u0e17\u0e22", "\u0e20\u0e32\u0e29\u0e32\u0e44\u0e17\u0e22"),
        ("a\x1cb\x1fc", "abc"),
        ("a\u2003b\x85c\u3000d", "a b c d"),
        ("\u00bd cup", "\u00bd cup"),
    ],
)
def test_normalize_text(raw: str, expected: str) -> None:
    assert normalize_text(raw) == expected


def test_normalize_text_is_idempotent() -> None:
    raw = "  A, b;\tC!!  d e  "
    once = normalize_text(raw)
    assert normalize_text(once) == once


def test_malformed_logic_raises_parse_error() -> None:
    with pytest.raises(ParseError):
        canonicalize(_proposal("not json", "text"))


def test_text_bytes_must_be_valid_utf8() -> None:
    assert decode_text("café".encode("utf-8")) == "café"
    with pytest.raises(EncodingError):
        canonicalize(_proposal("{}", b"\xff\xfe"))


def test_text_must_be_str_or_bytes() -> None:
    with pytest.raises(EncodingError):
        decode_text(42)  # type: ignore[arg-type]


def test_combining_marks_survive_into_payload() -> None:
    c = canonicalize(_proposal("{}", "हिंदी में"))
    assert c.data == b"{}." + "हिंदी में".encode("utf-8")


def test_lone_surrogate_text_raises_encoding_error() -> None:
    with pytest.raises(EncodingError):
        canonicalize(_proposal("{}", "abc\ud800"))
