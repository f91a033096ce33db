"""End-to-end verdicts for the fixed check sequence, including both failure policies."""

from __future__ import annotations

import hashlib
import sys
from pathlib import Path

import pytest

pytestmark = pytest.mark.repo_local


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from channel_a import cycles, verifier
from channel_a.config import MAX_COMPLEXITY, MAX_SCORE
from channel_a.core.errors import ParseError
from channel_a.types import Proposal, Verdict
from channel_a.verifier import (
    CANONICALIZATION_FAILURE_POLICY,
    CYCLE_PARSE_FAILURE_POLICY,
    FailurePolicy,
    verify,
    verify_detailed,
)


def _proposal(logic: str, text: str | bytes) -> Proposal:
    return Proposal(proposer="alice", logic=logic, text=text, created_at=0)  # type: ignore[arg-type]


def test_benign_transfer_passes() -> None:
    v = verify(_proposal('{"action":"transfer","amount":100}', "Transfer 100 tokens to the community fund"))
    assert v.passed is True
    assert v.paradox_found is False
    assert v.cycle_found is False
    assert 0 < v.complexity_score <= MAX_COMPLEXITY


def test_paradox_fails() -> None:
    v = verify(_proposal("{}", "This proposal passes iff it fails."))
    assert v.passed is False
    assert v.paradox_found is True
    assert v.cycle_found is False


def test_dependency_cycle_fails() -> None:
    v = verify(_proposal('{"a":{"value":"$ref:b"},"b":{"value":"$ref:a"}}', "Swap dependency"))
    assert v.passed is False
    assert v.cycle_found is True
    assert v.paradox_found is False


def test_excess_complexity_fails() -> None:
    text = " ".join(hashlib.sha256(str(i).encode("ascii")).hexdigest() for i in range(1_000))
    v = verify(_proposal("{}", text))
    assert v.passed is False
    assert v.complexity_score > MAX_COMPLEXITY
    assert v.paradox_found is False
    assert v.cycle_found is False


def test_all_failures_are_reported_together() -> None:
    v = verify(_proposal('{"a":{"ref":"a"}}', "This statement is false"))
    assert v == Verdict(passed=False, complexity_score=v.complexity_score, paradox_found=True, cycle_found=True)


def test_malformed_logic_is_fail_closed() -> None:
    assert CANONICALIZATION_FAILURE_POLICY is FailurePolicy.FAIL_CLOSED
    v = verify(_proposal("not json", "This statement is false"))
    assert v == Verdict(passed=False, complexity_score=0, paradox_found=False, cycle_found=False)
    # The cycle check on its own reports the parse error instead of "no cycle".
    with pytest.raises(ParseError):
        cycles.detect("not json")


def test_invalid_utf8_text_is_fail_closed() -> None:
    assert verify(_proposal("{}", b"\xff")) == Verdict.canonicalization_failure()
    assert verify(_proposal("{}", "This statement is false \udc80")) == Verdict.canonicalization_failure()


def test_cycle_parse_failure_is_fail_open(monkeypatch: pytest.MonkeyPatch) -> None:
    # Regression guard: a logic description that fails only the cycle parser
    # is reported as acyclic and can pass the gate.
    assert CYCLE_PARSE_FAILURE_POLICY is FailurePolicy.FAIL_OPEN

    def _unparsable(_logic: str) -> list[list[str]]:
        raise ParseError("cycle parser rejected input")

    monkeypatch.setattr(verifier.cycles, "find_cycles", _unparsable)
    p = _proposal('{"a":{"ref":"a"}}', "Benign text")

    v = verify(p)
    assert v.passed is True
    assert v.cycle_found is False

    report = verify_detailed(p)
    assert report.verdict == v
    assert report.cycle_parse_error == "cycle parser rejected input"
    assert any("fail-open" in line for line in report.trace)


def test_compressor_fault_fails_with_max_score(monkeypatch: pytest.MonkeyPatch) -> None:
    import zlib

    def _boom(*_args: object, **_kwargs: object) -> object:
        raise zlib.error("simulated failure")

    monkeypatch.setattr(zlib, "compressobj", _boom)
    v = verify(_proposal("{}", "Benign text"))
    assert v.passed is False
    assert v.complexity_score == MAX_SCORE


def test_verify_is_deterministic() -> None:
    p = _proposal('{"x":[1,2,3],"y":{"ref":"x"}}', "Repeatable outcome")
    assert verify(p) == verify(p)


@pytest.mark.parametrize(
    ("logic", "text"),
    [
        ('{"action":"transfer","amount":100}', "Transfer 100 tokens to the community fund"),
        ("{}", "This proposal passes iff it fails."),
        ('{"a":{"value":"$ref:b"},"b":{"value":"$ref:a"}}', "Swap dependency"),
        ("not json", "anything"),
    ],
)
def test_detailed_report_agrees_with_verify(logic: str, text: str) -> None:
    p = _proposal(logic, text)
    assert verify_detailed(p).verdict == verify(p)


def test_detailed_report_carries_witness_data() -> None:
    p = _proposal('{"a":{"ref":"b"},"b":{"ref":"a"}}', "This statement is false")
    report = verify_detailed(p)
    assert report.canonical is not None
    assert report.proposal_id == report.canonical.hash_hex
    assert [m.family for m in report.paradox_matches] == ["liar"]
    assert report.cycle_components == (("a", "b"),)
    assert report.canonicalization_error is None
    assert report.trace[0].startswith("canonicalize: ")
    assert report.trace[-1] == "verdict: FAIL"


def test_detailed_report_records_canonicalization_error() -> None:
    report = verify_detailed(_proposal("not json", "x"))
    assert report.canonical is None
    assert report.proposal_id is None
    assert report.canonicalization_error is not None
    assert report.canonicalization_error.startswith("ParseError: ")


def test_threshold_override_changes_outcome() -> None:
    p = _proposal('{"action":"transfer","amount":100}', "Transfer 100 tokens to the community fund")
    s = verify(p).complexity_score
    assert verify(p, max_complexity=s).passed is True
    assert verify(p, max_complexity=s - 1).passed is False
