"""Ed25519 attestation signing, signature verification and verdict reproduction."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

pytestmark = pytest.mark.repo_local


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from channel_a.attestation import (
    attestation_hash,
    build_attestation,
    check_attestation,
    sign_attestation,
    verify_attestation_signature,
)
from channel_a.core.errors import ParseError
from channel_a.types import Proposal, Verdict
from channel_a.verifier import verify


SEED_HEX = "11" * 32
OTHER_SEED_HEX = "22" * 32


def _public_hex(seed_hex: str) -> str:
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

    sk = Ed25519PrivateKey.from_private_bytes(bytes.fromhex(seed_hex))
    pk = sk.public_key().public_bytes(encoding=serialization.Encoding.Raw, format=serialization.PublicFormat.Raw)
    return pk.hex()


def _proposal(text: str = "Transfer 100 tokens to the community fund") -> Proposal:
    return Proposal(proposer="alice", logic='{"action":"transfer","amount":100}', text=text, created_at=0)


def _signed(p: Proposal | None = None) -> dict:
    p = p or _proposal()
    return sign_attestation(build_attestation(p, verify(p)), SEED_HEX.encode("ascii"))


def test_signed_attestation_verifies() -> None:
    record = _signed()
    assert record["signature_alg"] == "ed25519"
    assert record["attestation_hash"] == attestation_hash(record)
    verify_attestation_signature(record, _public_hex(SEED_HEX).encode("ascii"))


def test_signing_is_deterministic() -> None:
    assert _signed() == _signed()


def test_wrong_key_is_rejected() -> None:
    with pytest.raises(ValueError, match="Invalid Ed25519 signature"):
        verify_attestation_signature(_signed(), _public_hex(OTHER_SEED_HEX).encode("ascii"))


def test_tampered_verdict_is_rejected() -> None:
    record = _signed()
    record["verdict"] = dict(record["verdict"], complexity_score=1)
    with pytest.raises(ValueError, match="attestation_hash mismatch"):
        verify_attestation_signature(record, _public_hex(SEED_HEX).encode("ascii"))


def test_unsigned_record_is_rejected() -> None:
    p = _proposal()
    with pytest.raises(ValueError, match="not signed"):
        verify_attestation_signature(build_attestation(p, verify(p)), _public_hex(SEED_HEX).encode("ascii"))


def test_pem_keys_are_accepted() -> None:
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

    sk = Ed25519PrivateKey.from_private_bytes(bytes.fromhex(SEED_HEX))
    sk_pem = sk.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    pk_pem = sk.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    p = _proposal()
    record = sign_attestation(build_attestation(p, verify(p)), sk_pem)
    verify_attestation_signature(record, pk_pem)
    assert record == _signed()


def test_honest_attestation_reproduces() -> None:
    p = _proposal()
    assert check_attestation(_signed(p), p) == []


def test_false_claim_is_detected() -> None:
    p = _proposal()
    honest = verify(p)
    claimed = Verdict(passed=False, complexity_score=honest.complexity_score, paradox_found=True, cycle_found=False)
    problems = check_attestation(build_attestation(p, claimed), p)
    assert any(d.startswith("pass mismatch") for d in problems)
    assert any(d.startswith("paradox_found mismatch") for d in problems)


def test_attestation_for_other_proposal_is_detected() -> None:
    record = _signed(_proposal())
    problems = check_attestation(record, _proposal("A different proposal text"))
    assert any(d.startswith("proposal_id mismatch") for d in problems)


def test_ruleset_mismatch_is_detected() -> None:
    p = _proposal()
    record = build_attestation(p, verify(p), max_complexity=5)
    problems = check_attestation(record, p)
    assert any(d.startswith("ruleset_id mismatch") for d in problems)


def test_schema_invalid_record_is_reported() -> None:
    problems = check_attestation({"gate_id": "B"}, _proposal())
    assert problems
    assert all(d.startswith("schema: ") for d in problems)


def test_unattestable_proposal_raises() -> None:
    p = Proposal(proposer="alice", logic="not json", text="x", created_at=0)
    with pytest.raises(ParseError):
        build_attestation(p, verify(p))


def test_non_ed25519_pem_keys_are_rejected() -> None:
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import ec

    sk = ec.generate_private_key(ec.SECP256R1())
    sk_pem = sk.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    pk_pem = sk.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    p = _proposal()
    record = build_attestation(p, verify(p))
    with pytest.raises(ValueError, match="Private key is not Ed25519"):
        sign_attestation(record, sk_pem)
    with pytest.raises(ValueError, match="Public key is not Ed25519"):
        verify_attestation_signature(_signed(p), pk_pem)
