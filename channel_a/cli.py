#!/usr/bin/env python3
"""Channel A CLI: deterministic verification gate tools.

This is the installable CLI entrypoint (console_scripts).

Subcommands:
- channel-a canonicalize        → Canonical payload, length and proposal id
- channel-a score               → Complexity score of a payload
- channel-a paradox             → Paradox detection over raw text
- channel-a cycles              → Dependency-cycle detection over a logic description
- channel-a verify              → Full gate verdict report (GateAReport)
- channel-a patterns            → Paradox pattern list and active ruleset id
- channel-a attest              → Sign a verdict attestation (Ed25519)
- channel-a verify-attestation  → Check an attestation's signature and reproduce its verdict
- channel-a about               → Print package identity info

Exit codes:
- 0: success / PASS
- 2: verdict FAIL, attestation rejected
- 3: usage/internal error
"""

from __future__ import annotations

import argparse
import sys
from importlib.metadata import PackageNotFoundError, metadata, version
from pathlib import Path
from typing import Any

from channel_a import complexity, cycles, paradox
from channel_a.canonicalize import canonicalize, decode_text
from channel_a.config import MAX_COMPLEXITY, DevOverrideNotAllowedError, require_dev_mode, ruleset_id
from channel_a.core.errors import ChannelAError
from channel_a.core.json_canon import canonical_json_bytes, parse_json_strict
from channel_a.types import Proposal


DIST_NAME = "channel-a-gate"

_EXPECTED_ERRORS = (ChannelAError, DevOverrideNotAllowedError, OSError, ValueError)


def _emit(obj: Any) -> None:
    sys.stdout.write(canonical_json_bytes(obj).decode("utf-8"))


def _read_json_file(path: Path) -> Any:
    return parse_json_strict(path.read_text(encoding="utf-8", errors="strict"))


def _load_proposal(args: argparse.Namespace) -> Proposal:
    if getattr(args, "proposal", None):
        return Proposal.from_record(_read_json_file(Path(args.proposal)))
    if args.logic is None or args.text is None:
        raise ValueError("provide --proposal PATH, or both --logic and --text")
    return Proposal(proposer=args.proposer, logic=args.logic, text=args.text, created_at=0)


def _effective_max_complexity(args: argparse.Namespace) -> int:
    if args.max_complexity is None:
        return MAX_COMPLEXITY
    require_dev_mode("--max-complexity")
    if args.max_complexity < 0:
        raise ValueError("--max-complexity must be >= 0")
    return int(args.max_complexity)


def _add_proposal_args(p: argparse.ArgumentParser, *, logic: bool = True, text: bool = True) -> None:
    p.add_argument("--proposal", default=None, help="Proposal record JSON path")
    if logic:
        p.add_argument("--logic", default=None, help="Inline logic description (JSON text)")
    if text:
        p.add_argument("--text", default=None, help="Inline proposal text")
    p.add_argument("--proposer", default="cli", help="Proposer id for inline proposals (default: cli)")


# ---------------------------------------------------------------------------
# component subcommands
# ---------------------------------------------------------------------------

def cmd_canonicalize(args: argparse.Namespace) -> int:
    try:
        canonical = canonicalize(_load_proposal(args))
    except _EXPECTED_ERRORS as e:
        print(f"[channel-a canonicalize] ERROR: {e}", file=sys.stderr)
        return 3
    _emit({
        "proposal_id": canonical.hash_hex,
        "payload_hex": canonical.payload_hex,
        "length": canonical.length,
    })
    return 0


def cmd_score(args: argparse.Namespace) -> int:
    try:
        max_complexity = _effective_max_complexity(args)
        if args.payload_hex is not None:
            payload = bytes.fromhex(args.payload_hex)
        else:
            payload = canonicalize(_load_proposal(args)).data
    except _EXPECTED_ERRORS as e:
        print(f"[channel-a score] ERROR: {e}", file=sys.stderr)
        return 3
    s = complexity.score(payload)
    _emit({
        "complexity_score": s,
        "max_complexity": max_complexity,
        "within_limit": complexity.check(s, max_complexity=max_complexity),
    })
    return 0


def cmd_paradox(args: argparse.Namespace) -> int:
    try:
        if args.text is not None:
            text = decode_text(args.text)
        elif args.proposal:
            text = decode_text(Proposal.from_record(_read_json_file(Path(args.proposal))).text)
        else:
            raise ValueError("provide --proposal PATH or --text")
    except _EXPECTED_ERRORS as e:
        print(f"[channel-a paradox] ERROR: {e}", file=sys.stderr)
        return 3
    if args.detail:
        matches = paradox.find_matches(text)
        _emit({"paradox_found": bool(matches), "matches": [m.to_dict() for m in matches]})
    else:
        _emit({"paradox_found": paradox.detect(text)})
    return 0


def cmd_cycles(args: argparse.Namespace) -> int:
    try:
        if args.logic is not None:
            logic = args.logic
        elif args.proposal:
            logic = Proposal.from_record(_read_json_file(Path(args.proposal))).logic
        else:
            raise ValueError("provide --proposal PATH or --logic")
        if args.detail:
            components = cycles.find_cycles(logic)
            out: dict[str, Any] = {"cycle_found": bool(components), "cycles": components}
        else:
            out = {"cycle_found": cycles.detect(logic)}
    except _EXPECTED_ERRORS as e:
        print(f"[channel-a cycles] ERROR: {e}", file=sys.stderr)
        return 3
    _emit(out)
    return 0


def cmd_patterns(_: argparse.Namespace) -> int:
    _emit({
        "patterns": [
            {"index": i, "family": family, "pattern": source, "engine": engine}
            for i, (family, source, engine) in enumerate(paradox.pattern_specs())
        ],
        "ruleset_id": ruleset_id(),
    })
    return 0


# ---------------------------------------------------------------------------
# verify subcommand
# ---------------------------------------------------------------------------

def cmd_verify(args: argparse.Namespace) -> int:
    from channel_a.report import build_gate_report, write_report
    from channel_a.verifier import verify_detailed

    try:
        max_complexity = _effective_max_complexity(args)
        proposal = _load_proposal(args)
        doc = build_gate_report(
            verify_detailed(proposal, max_complexity=max_complexity),
            deterministic=bool(args.deterministic),
        )
        if args.out:
            write_report(Path(args.out), doc)
    except _EXPECTED_ERRORS as e:
        print(f"[channel-a verify] ERROR: {e}", file=sys.stderr)
        return 3

    _emit(doc)
    if doc["result"] != "PASS":
        for f in doc["failures"]:
            print(f"[channel-a verify] FAIL {f['id']} {f['category']}: {f['message']}", file=sys.stderr)
        return 2
    return 0


# ---------------------------------------------------------------------------
# attestation subcommands
# ---------------------------------------------------------------------------

def cmd_attest(args: argparse.Namespace) -> int:
    from channel_a.attestation import build_attestation, sign_attestation
    from channel_a.report import write_report
    from channel_a.verifier import verify

    try:
        proposal = _load_proposal(args)
        record = build_attestation(proposal, verify(proposal))
        signed = sign_attestation(record, Path(args.private_key).read_bytes())
        if args.out:
            write_report(Path(args.out), signed)
    except _EXPECTED_ERRORS as e:
        print(f"[channel-a attest] ERROR: {e}", file=sys.stderr)
        return 3
    _emit(signed)
    return 0


def cmd_verify_attestation(args: argparse.Namespace) -> int:
    from channel_a.attestation import check_attestation, verify_attestation_signature

    try:
        record = _read_json_file(Path(args.attestation))
        if not isinstance(record, dict):
            raise ValueError("attestation must be a JSON object")
        public_key = Path(args.public_key).read_bytes()
        proposal = _load_proposal(args)
    except _EXPECTED_ERRORS as e:
        print(f"[channel-a verify-attestation] ERROR: {e}", file=sys.stderr)
        return 3

    try:
        verify_attestation_signature(record, public_key)
    except ValueError as e:
        print(f"[channel-a verify-attestation] REJECTED: {e}", file=sys.stderr)
        return 2

    discrepancies = check_attestation(record, proposal)
    _emit({"ok": not discrepancies, "discrepancies": discrepancies})
    if discrepancies:
        for d in discrepancies:
            print(f"[channel-a verify-attestation] REJECTED: {d}", file=sys.stderr)
        return 2
    return 0


# ---------------------------------------------------------------------------
# about subcommand
# ---------------------------------------------------------------------------

def cmd_about(_: argparse.Namespace) -> int:
    """Print package identity info (human-readable)."""

    try:
        pkg_version = version(DIST_NAME)
    except PackageNotFoundError:
        pkg_version = "0.0.0"

    pkg_name = DIST_NAME
    pkg_summary = ""
    try:
        meta = metadata(DIST_NAME)
        pkg_name = str(meta.get("Name") or pkg_name)
        pkg_summary = str(meta.get("Summary") or "")
    except PackageNotFoundError:
        pass

    print(f"{pkg_name} {pkg_version}")
    if pkg_summary:
        print(pkg_summary)
    print(f"Ruleset: {ruleset_id()}")
    print(f"Compressor: zlib {complexity.compressor_info()['zlib_runtime_version']}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="channel-a",
        description="Channel A CLI: deterministic verification gate tools",
    )
    subparsers = parser.add_subparsers(dest="command", help="Subcommand")

    p_about = subparsers.add_parser("about", help="Print package identity info")
    p_about.set_defaults(func=cmd_about)

    p_canon = subparsers.add_parser("canonicalize", help="Print canonical payload (hex), length and proposal id")
    _add_proposal_args(p_canon)
    p_canon.set_defaults(func=cmd_canonicalize)

    p_score = subparsers.add_parser("score", help="Compute the complexity score of a payload")
    _add_proposal_args(p_score)
    p_score.add_argument("--payload-hex", default=None, help="Raw payload bytes as hex (skips canonicalization)")
    p_score.add_argument("--max-complexity", type=int, default=None, help="DEV ONLY: override the complexity threshold")
    p_score.set_defaults(func=cmd_score)

    p_paradox = subparsers.add_parser("paradox", help="Detect self-referential paradox patterns in text")
    _add_proposal_args(p_paradox, logic=False)
    p_paradox.add_argument("--detail", action="store_true", help="Include the matching families and matched text")
    p_paradox.set_defaults(func=cmd_paradox)

    p_cycles = subparsers.add_parser("cycles", help="Detect dependency cycles in a logic description")
    _add_proposal_args(p_cycles, text=False)
    p_cycles.add_argument("--detail", action="store_true", help="Include the members of every cyclic component")
    p_cycles.set_defaults(func=cmd_cycles)

    p_verify = subparsers.add_parser("verify", help="Run the full gate and emit a GateAReport")
    _add_proposal_args(p_verify)
    p_verify.add_argument("--out", default=None, help="Also write the report to this path")
    p_verify.add_argument("--deterministic", action="store_true", help="Use fixed timestamps for deterministic output")
    p_verify.add_argument("--max-complexity", type=int, default=None, help="DEV ONLY: override the complexity threshold")
    p_verify.set_defaults(func=cmd_verify)

    p_patterns = subparsers.add_parser("patterns", help="List paradox patterns and the active ruleset id")
    p_patterns.set_defaults(func=cmd_patterns)

    p_attest = subparsers.add_parser("attest", help="Verify a proposal and sign the verdict attestation")
    _add_proposal_args(p_attest)
    p_attest.add_argument("--private-key", required=True, help="Ed25519 private key (PEM or 64-hex seed) path")
    p_attest.add_argument("--out", default=None, help="Also write the signed attestation to this path")
    p_attest.set_defaults(func=cmd_attest)

    p_va = subparsers.add_parser("verify-attestation", help="Check an attestation signature and reproduce its verdict")
    _add_proposal_args(p_va)
    p_va.add_argument("--attestation", required=True, help="Signed attestation JSON path")
    p_va.add_argument("--public-key", required=True, help="Ed25519 public key (PEM or 64-hex) path")
    p_va.set_defaults(func=cmd_verify_attestation)

    args = parser.parse_args(argv)

    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 3
    return int(func(args))


if __name__ == "__main__":
    sys.exit(main())
