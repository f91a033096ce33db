"""Ed25519-signed Channel A verdict attestations.

An attestation binds a verdict to a proposal id and a ruleset id. The
signature covers the canonical JSON bytes of the record without its
``attestation_hash``/``signature_alg``/``signature`` fields; ``attestation_hash``
is the SHA-256 of those same bytes.
"""

from __future__ import annotations

import base64
from typing import Any

from channel_a.canonicalize import proposal_id as compute_proposal_id
from channel_a.config import GATE_ID, MAX_COMPLEXITY, SCHEMA_VERSION, ruleset_id, verify_ruleset_identity
from channel_a.core.errors import EncodingError, ParseError
from channel_a.core.hash import sha256_bytes
from channel_a.core.json_canon import canonical_json_bytes
from channel_a.core.schema import load_schema, validate_schema
from channel_a.report import compare_verdicts
from channel_a.types import Proposal, Verdict
from channel_a.verifier import verify


SIGNATURE_ALG = "ed25519"
_SIGNATURE_FIELDS = ("attestation_hash", "signature_alg", "signature")


def build_attestation(proposal: Proposal, verdict: Verdict, *, max_complexity: int = MAX_COMPLEXITY) -> dict[str, Any]:
    """Unsigned attestation record for ``verdict`` on ``proposal``.

    Raises ParseError/EncodingError if the proposal cannot be canonicalized:
    there is no proposal id to attest to.
    """

    return {
        "schema_version": SCHEMA_VERSION,
        "gate_id": GATE_ID,
        "proposal_id": compute_proposal_id(proposal),
        "ruleset_id": ruleset_id(max_complexity=max_complexity),
        "verdict": verdict.to_dict(),
    }


def _unsigned(record: dict[str, Any]) -> dict[str, Any]:
    unsigned = dict(record)
    for k in _SIGNATURE_FIELDS:
        unsigned.pop(k, None)
    return unsigned


def signing_payload(record: dict[str, Any]) -> bytes:
    return canonical_json_bytes(_unsigned(record))


def attestation_hash(record: dict[str, Any]) -> str:
    return sha256_bytes(signing_payload(record))


_HEX_KEY_LEN = 64


def _raw_hex(blob: bytes) -> bytes | None:
    try:
        hex_s = blob.decode("ascii", errors="strict").strip()
    except UnicodeDecodeError:
        return None
    if len(hex_s) != _HEX_KEY_LEN or any(c not in "0123456789abcdefABCDEF" for c in hex_s):
        return None
    return bytes.fromhex(hex_s)


def _load_ed25519_key(blob: bytes, *, private: bool) -> Any:
    """Load an Ed25519 key from 64-hex raw bytes (seed or public point) or PEM."""

    try:
        from cryptography.hazmat.primitives import serialization
        from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
    except ImportError as e:  # pragma: no cover
        raise ValueError("Missing crypto dependency for Ed25519 attestations (install 'cryptography').") from e

    kind = "Private" if private else "Public"
    trimmed = blob.strip()
    raw = _raw_hex(trimmed)
    if raw is not None:
        return Ed25519PrivateKey.from_private_bytes(raw) if private else Ed25519PublicKey.from_public_bytes(raw)

    if private:
        key = serialization.load_pem_private_key(trimmed, password=None)
    else:
        key = serialization.load_pem_public_key(trimmed)
    if not isinstance(key, Ed25519PrivateKey if private else Ed25519PublicKey):
        raise ValueError(f"{kind} key is not Ed25519")
    return key


def sign_attestation(record: dict[str, Any], private_key_bytes: bytes) -> dict[str, Any]:
    """Return a copy of ``record`` carrying its hash and a base64 Ed25519 signature.

    ``private_key_bytes`` is a 64-hex raw seed or a PEM private key.
    """

    key = _load_ed25519_key(private_key_bytes, private=True)
    payload = signing_payload(record)
    signed = _unsigned(record)
    signed["attestation_hash"] = sha256_bytes(payload)
    signed["signature_alg"] = SIGNATURE_ALG
    signed["signature"] = base64.b64encode(key.sign(payload)).decode("ascii")
    return signed


def verify_attestation_signature(record: dict[str, Any], public_key_bytes: bytes) -> None:
    """Raise ValueError unless ``record`` is well-formed and signed by the given key."""

    errs = validate_schema(record, load_schema("Attestation"), path="Attestation")
    if errs:
        first = errs[0]
        raise ValueError(f"Attestation is schema-invalid at {first.path}: {first.message}")

    sig_b64 = record.get("signature")
    if record.get("signature_alg") != SIGNATURE_ALG or not isinstance(sig_b64, str):
        raise ValueError("Attestation is not signed (signature_alg/signature missing)")

    payload = signing_payload(record)
    if record.get("attestation_hash") != sha256_bytes(payload):
        raise ValueError("Attestation.attestation_hash mismatch")

    try:
        sig_bytes = base64.b64decode(sig_b64.strip(), validate=True)
    except ValueError as e:
        raise ValueError("Attestation.signature must be valid base64") from e
    if len(sig_bytes) != 64:
        raise ValueError("Attestation.signature must decode to 64 bytes (Ed25519 signature)")

    from cryptography.exceptions import InvalidSignature

    pub = _load_ed25519_key(public_key_bytes, private=False)
    try:
        pub.verify(sig_bytes, payload)
    except InvalidSignature:
        # InvalidSignature has an empty str().
        raise ValueError("Invalid Ed25519 signature (Attestation)") from None


def check_attestation(
    record: dict[str, Any], proposal: Proposal, *, max_complexity: int = MAX_COMPLEXITY
) -> list[str]:
    """Recompute the verdict for ``proposal`` and list disagreements with ``record``.

    An empty list means the attested verdict is reproducible under the
    active ruleset. Signature checking is separate (verify_attestation_signature).
    """

    errs = validate_schema(record, load_schema("Attestation"), path="Attestation")
    if errs:
        return [f"schema: {e.path}: {e.message}" for e in errs]

    discrepancies: list[str] = []
    ruleset_msg = verify_ruleset_identity(record.get("ruleset_id"), max_complexity=max_complexity)
    if ruleset_msg is not None:
        discrepancies.append(ruleset_msg)

    try:
        actual_id = compute_proposal_id(proposal)
    except (ParseError, EncodingError) as e:
        actual_id = None
        discrepancies.append(f"proposal cannot be canonicalized: {e}")
    if actual_id is not None and record["proposal_id"] != actual_id:
        discrepancies.append(f"proposal_id mismatch: claimed={record['proposal_id']} actual={actual_id}")

    claimed = Verdict.from_dict(record["verdict"])
    discrepancies.extend(compare_verdicts(claimed, verify(proposal, max_complexity=max_complexity)))
    return discrepancies
