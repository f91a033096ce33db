from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from channel_a import complexity
from channel_a.config import GATE_ID, SCHEMA_VERSION, ruleset_id
from channel_a.core.json_canon import canonical_json_bytes
from channel_a.core.schema import load_schema, validate_schema
from channel_a.core.time import utc_timestamp_iso_z
from channel_a.types import Verdict
from channel_a.verifier import VerificationReport


EVALUATOR = "channel_a/verifier.py"

Status = str  # "PASS" | "FAIL" | "SKIP"


@dataclass(frozen=True)
class CheckResult:
    check_id: str
    status: Status
    message: str
    category: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "check_id": self.check_id,
            "status": self.status,
            "message": self.message,
            "category": self.category,
        }


def _skipped(check_id: str) -> CheckResult:
    return CheckResult(check_id, "SKIP", "Not evaluated: canonicalization failed (fail-closed).")


def check_results(report: VerificationReport) -> list[CheckResult]:
    """Per-check outcomes in fixed order A1..A4."""

    if report.canonical is None:
        return [
            CheckResult(
                "A1",
                "FAIL",
                f"Canonicalization failed: {report.canonicalization_error}",
                category="FA-CANONICALIZATION-FAILED",
            ),
            _skipped("A2"),
            _skipped("A3"),
            _skipped("A4"),
        ]

    v = report.verdict
    results = [
        CheckResult("A1", "PASS", f"Canonical payload sha256={report.canonical.hash_hex}."),
    ]

    if complexity.check(v.complexity_score, max_complexity=report.max_complexity):
        results.append(CheckResult("A2", "PASS", f"Complexity {v.complexity_score} <= {report.max_complexity}."))
    else:
        results.append(
            CheckResult(
                "A2",
                "FAIL",
                f"Complexity {v.complexity_score} exceeds {report.max_complexity}.",
                category="FA-COMPLEXITY-EXCEEDED",
            )
        )

    if v.paradox_found:
        families = ", ".join(m.family for m in report.paradox_matches)
        results.append(
            CheckResult("A3", "FAIL", f"Self-referential paradox detected: {families}.", category="FA-PARADOX-DETECTED")
        )
    else:
        results.append(CheckResult("A3", "PASS", "No paradox pattern matched."))

    if v.cycle_found:
        rendered = "; ".join(" -> ".join(c) for c in report.cycle_components)
        results.append(CheckResult("A4", "FAIL", f"Dependency cycle detected: {rendered}.", category="FA-CYCLE-DETECTED"))
    elif report.cycle_parse_error is not None:
        results.append(
            CheckResult("A4", "PASS", f"Cycle extraction parse error treated as no cycle (fail-open): {report.cycle_parse_error}")
        )
    else:
        results.append(CheckResult("A4", "PASS", "No dependency cycle."))

    return results


def _stable_failure_id(rule_id: str, ordinal: int = 1) -> str:
    return f"{GATE_ID}-{rule_id}-{ordinal:03d}"


def build_gate_report(report: VerificationReport, *, deterministic: bool) -> dict[str, Any]:
    """Render a verification report as a schema-valid gate verdict document."""

    checks = check_results(report)
    failures = [
        {
            "id": _stable_failure_id(c.check_id),
            "rule_id": c.check_id,
            "category": c.category,
            "message": c.message,
        }
        for c in checks
        if c.status == "FAIL"
    ]

    canonical = report.canonical
    doc: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "gate_id": GATE_ID,
        "ruleset_id": ruleset_id(max_complexity=report.max_complexity),
        "proposal_id": report.proposal_id,
        "result": "PASS" if report.verdict.passed else "FAIL",
        "verdict": report.verdict.to_dict(),
        "max_complexity": report.max_complexity,
        "checks": [c.to_dict() for c in checks],
        "failures": failures,
        "errors": {
            "canonicalization": report.canonicalization_error,
            "cycle_parse": report.cycle_parse_error,
        },
        "witness": {
            "canonical_payload_hex": canonical.payload_hex if canonical is not None else None,
            "paradox_matches": [m.to_dict() for m in report.paradox_matches],
            "cycles": [list(c) for c in report.cycle_components],
            "computation_trace": list(report.trace),
        },
        "environment": {"compressor": complexity.compressor_info()},
        "evaluated_at": utc_timestamp_iso_z(deterministic=deterministic),
        "evaluator": EVALUATOR,
    }

    errs = validate_schema(doc, load_schema("GateAReport"), path="GateAReport")
    if errs:
        first = errs[0]
        raise ValueError(f"GateAReport output is schema-invalid at {first.path}: {first.message}")
    return doc


def write_report(path: Path, doc: dict[str, Any]) -> bytes:
    data = canonical_json_bytes(doc)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return data


def compare_verdicts(claimed: Verdict, actual: Verdict) -> list[str]:
    """List every field where a claimed verdict disagrees with the recomputed one."""

    discrepancies: list[str] = []
    if claimed.passed != actual.passed:
        discrepancies.append(f"pass mismatch: claimed={claimed.passed} actual={actual.passed}")
    if claimed.complexity_score != actual.complexity_score:
        discrepancies.append(
            f"complexity_score mismatch: claimed={claimed.complexity_score} actual={actual.complexity_score}"
        )
    if claimed.paradox_found != actual.paradox_found:
        discrepancies.append(f"paradox_found mismatch: claimed={claimed.paradox_found} actual={actual.paradox_found}")
    if claimed.cycle_found != actual.cycle_found:
        discrepancies.append(f"cycle_found mismatch: claimed={claimed.cycle_found} actual={actual.cycle_found}")
    return discrepancies
