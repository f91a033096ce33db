"""Channel A: deterministic verification gate for governance proposals.

Every verdict is a pure function of the proposal's logic description and
text under a fixed ruleset (see ``channel_a.config.ruleset_id``).
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from channel_a.types import GovernanceLayer, Proposal, ProposalStatus, Verdict
from channel_a.verifier import verify, verify_detailed

__all__ = [
    "GovernanceLayer",
    "Proposal",
    "ProposalStatus",
    "Verdict",
    "verify",
    "verify_detailed",
]


def __getattr__(name: str):
    if name == "__version__":
        try:
            return version("channel-a-gate")
        except PackageNotFoundError:
            return "0.0.0"
    raise AttributeError(name)
