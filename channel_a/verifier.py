"""Channel A verifier: fixed check sequence and failure policy.

Sequence:
  1. canonicalize(proposal)            -> payload, digest
  2. complexity.score(payload)         -> complexity_score
  3. paradox.detect(raw text)          -> paradox_found
  4. cycles.detect(raw logic text)     -> cycle_found

Failure policy (downstream fraud proofs depend on it exactly):
  - canonicalization failure is FAIL_CLOSED: unconditional FAIL verdict with
    complexity_score=0, paradox_found=False, cycle_found=False
  - cycle-detection parse failure is FAIL_OPEN: cycle_found=False

The fail-open branch means a logic description that fails only the cycle
parser is reported as acyclic. Canonicalization parses the same text first,
so today the branch is reached only if the two parsers ever diverge.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from channel_a import complexity, cycles, paradox
from channel_a.canonicalize import canonicalize, decode_text
from channel_a.config import MAX_COMPLEXITY
from channel_a.core.errors import EncodingError, ParseError
from channel_a.paradox import ParadoxMatch
from channel_a.types import CanonicalPayload, Proposal, Verdict


class FailurePolicy(str, Enum):
    FAIL_CLOSED = "fail-closed"
    FAIL_OPEN = "fail-open"


CANONICALIZATION_FAILURE_POLICY = FailurePolicy.FAIL_CLOSED
CYCLE_PARSE_FAILURE_POLICY = FailurePolicy.FAIL_OPEN


@dataclass(frozen=True)
class VerificationReport:
    """Verdict plus the witness data and explicit error channel behind it."""

    verdict: Verdict
    max_complexity: int
    canonical: CanonicalPayload | None = None
    paradox_matches: tuple[ParadoxMatch, ...] = ()
    cycle_components: tuple[tuple[str, ...], ...] = ()
    canonicalization_error: str | None = None
    cycle_parse_error: str | None = None
    trace: tuple[str, ...] = field(default_factory=tuple)

    @property
    def proposal_id(self) -> str | None:
        return self.canonical.hash_hex if self.canonical is not None else None


def _cycles_with_fail_open(logic: str) -> tuple[list[list[str]], str | None]:
    # CYCLE_PARSE_FAILURE_POLICY: a ParseError here reports "no cycle".
    try:
        return cycles.find_cycles(logic), None
    except ParseError as e:
        if CYCLE_PARSE_FAILURE_POLICY is FailurePolicy.FAIL_OPEN:
            return [], str(e)
        raise


def _compose(complexity_score: int, paradox_found: bool, cycle_found: bool, *, max_complexity: int) -> Verdict:
    if complexity.check(complexity_score, max_complexity=max_complexity) and not paradox_found and not cycle_found:
        return Verdict.passing(complexity_score)
    return Verdict.failing(complexity_score, paradox_found, cycle_found)


def verify_detailed(proposal: Proposal, *, max_complexity: int = MAX_COMPLEXITY) -> VerificationReport:
    """Run the full Channel A pipeline and keep every intermediate result."""

    trace: list[str] = []

    # CANONICALIZATION_FAILURE_POLICY: any failure here is a hard FAIL.
    try:
        canonical = canonicalize(proposal)
    except (ParseError, EncodingError) as e:
        trace.append(f"canonicalize: error ({type(e).__name__}): {e}")
        trace.append(f"verdict: FAIL ({CANONICALIZATION_FAILURE_POLICY.value} canonicalization)")
        return VerificationReport(
            verdict=Verdict.canonicalization_failure(),
            max_complexity=max_complexity,
            canonicalization_error=f"{type(e).__name__}: {e}",
            trace=tuple(trace),
        )
    trace.append(f"canonicalize: length={canonical.length} sha256={canonical.hash_hex}")

    complexity_score = complexity.score(canonical.data)
    trace.append(f"complexity: score={complexity_score} max={max_complexity}")

    text = decode_text(proposal.text)
    matches = paradox.find_matches(text)
    trace.append(f"paradox: found={bool(matches)} families={[m.index for m in matches]}")

    components, cycle_error = _cycles_with_fail_open(proposal.logic)
    if cycle_error is not None:
        trace.append(f"cycles: parse error treated as no cycle ({CYCLE_PARSE_FAILURE_POLICY.value}): {cycle_error}")
    else:
        trace.append(f"cycles: found={bool(components)} components={len(components)}")

    verdict = _compose(complexity_score, bool(matches), bool(components), max_complexity=max_complexity)
    trace.append(f"verdict: {'PASS' if verdict.passed else 'FAIL'}")

    return VerificationReport(
        verdict=verdict,
        max_complexity=max_complexity,
        canonical=canonical,
        paradox_matches=tuple(matches),
        cycle_components=tuple(tuple(c) for c in components),
        cycle_parse_error=cycle_error,
        trace=tuple(trace),
    )


def verify(proposal: Proposal, *, max_complexity: int = MAX_COMPLEXITY) -> Verdict:
    """Return the Channel A verdict for ``proposal``. Never raises on bad input."""

    try:
        canonical = canonicalize(proposal)
    except (ParseError, EncodingError):
        return Verdict.canonicalization_failure()

    complexity_score = complexity.score(canonical.data)
    paradox_found = paradox.detect(decode_text(proposal.text))
    components, _ = _cycles_with_fail_open(proposal.logic)
    return _compose(complexity_score, paradox_found, bool(components), max_complexity=max_complexity)
