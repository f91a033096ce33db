from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from channel_a.core.schema import load_schema, validate_schema
from channel_a.core.time import epoch_seconds


class GovernanceLayer(IntEnum):
    """Target layer in the four-layer constitutional model (ordered, L0 highest)."""

    L0_IMMUTABLE = 0
    L1_CONSTITUTIONAL = 1
    L2_OPERATIONAL = 2
    L3_EXECUTION = 3

    @property
    def wire_name(self) -> str:
        return _LAYER_WIRE[self]

    @classmethod
    def from_wire(cls, name: str) -> GovernanceLayer:
        for layer, wire in _LAYER_WIRE.items():
            if wire == name:
                return layer
        raise ValueError(f"unknown governance layer: {name!r}")


_LAYER_WIRE = {
    GovernanceLayer.L0_IMMUTABLE: "L0Immutable",
    GovernanceLayer.L1_CONSTITUTIONAL: "L1Constitutional",
    GovernanceLayer.L2_OPERATIONAL: "L2Operational",
    GovernanceLayer.L3_EXECUTION: "L3Execution",
}


class ProposalStatus(str, Enum):
    PENDING = "Pending"
    CHANNEL_A_REVIEW = "ChannelAReview"
    CHANNEL_B_REVIEW = "ChannelBReview"
    VOTING = "Voting"
    REQUIRES_HUMAN_REVIEW = "RequiresHumanReview"
    PASSED = "Passed"
    REJECTED = "Rejected"
    EXECUTED = "Executed"


@dataclass(frozen=True)
class Proposal:
    """A governance change request.

    The proposal identifier is not a field: it is the SHA-256 of the
    canonical payload and is obtained through ``canonicalize.proposal_id``.
    """

    proposer: str
    logic: str
    text: str
    layer: GovernanceLayer = GovernanceLayer.L2_OPERATIONAL
    created_at: int = field(default_factory=epoch_seconds)
    status: ProposalStatus = ProposalStatus.PENDING

    @classmethod
    def from_record(cls, obj: Any) -> Proposal:
        """Build a Proposal from a JSON record (see Proposal.schema.json)."""

        schema = load_schema("Proposal")
        errs = validate_schema(obj, schema, path="Proposal")
        if errs:
            first = errs[0]
            raise ValueError(f"Proposal record is schema-invalid at {first.path}: {first.message}")

        kwargs: dict[str, Any] = {
            "proposer": obj["proposer"],
            "logic": obj["logic_ast"],
            "text": obj["text"],
            "layer": GovernanceLayer.from_wire(obj.get("layer", "L2Operational")),
        }
        if "created_at" in obj:
            kwargs["created_at"] = obj["created_at"]
        if "status" in obj:
            kwargs["status"] = ProposalStatus(obj["status"])
        return cls(**kwargs)

    def to_record(self) -> dict[str, Any]:
        return {
            "proposer": self.proposer,
            "logic_ast": self.logic,
            "text": self.text,
            "layer": self.layer.wire_name,
            "created_at": self.created_at,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class CanonicalPayload:
    """Canonical payload bytes and their SHA-256 digest (the proposal id)."""

    data: bytes
    digest: bytes

    @property
    def hash_hex(self) -> str:
        return self.digest.hex()

    @property
    def payload_hex(self) -> str:
        return self.data.hex()

    @property
    def length(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Verdict:
    """Channel A verdict.

    ``passed`` is serialized as ``pass``. Outside the canonicalization
    failure sentinel, passed == (score <= MAX_COMPLEXITY and not
    paradox_found and not cycle_found).
    """

    passed: bool
    complexity_score: int
    paradox_found: bool
    cycle_found: bool

    @classmethod
    def passing(cls, complexity_score: int) -> Verdict:
        return cls(passed=True, complexity_score=complexity_score, paradox_found=False, cycle_found=False)

    @classmethod
    def failing(cls, complexity_score: int, paradox_found: bool, cycle_found: bool) -> Verdict:
        return cls(
            passed=False,
            complexity_score=complexity_score,
            paradox_found=paradox_found,
            cycle_found=cycle_found,
        )

    @classmethod
    def canonicalization_failure(cls) -> Verdict:
        return cls.failing(0, False, False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pass": self.passed,
            "complexity_score": self.complexity_score,
            "paradox_found": self.paradox_found,
            "cycle_found": self.cycle_found,
        }

    @classmethod
    def from_dict(cls, obj: Any) -> Verdict:
        if not isinstance(obj, dict):
            raise ValueError("verdict must be a JSON object")
        flags = ("pass", "paradox_found", "cycle_found")
        for k in flags:
            if not isinstance(obj.get(k), bool):
                raise ValueError(f"verdict.{k} missing/invalid")
        score = obj.get("complexity_score")
        if not isinstance(score, int) or isinstance(score, bool) or score < 0:
            raise ValueError("verdict.complexity_score missing/invalid")
        return cls(
            passed=obj["pass"],
            complexity_score=score,
            paradox_found=obj["paradox_found"],
            cycle_found=obj["cycle_found"],
        )
