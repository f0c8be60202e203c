"""Type definitions shared by the clustering components.

This module provides the edge and diagnostics record types so the registry,
admission filter, driver and emitter agree on one contract.
"""

from __future__ import annotations

from typing import NamedTuple, TypedDict

Member = int
SourceGroup = int


class CandidateEdge(NamedTuple):
    """A pairwise hit between two members.

    ``rank`` is the 1-based ordinal of ``member_b`` among ``member_a``'s hits
    sorted by descending score. RBH edges carry rank 1.
    """

    member_a: Member
    member_b: Member
    score: float
    rank: int


class SelfScore(NamedTuple):
    """Score of a member against itself."""

    member: Member
    score: float


class PassSummary(TypedDict):
    """Serializable summary of one clustering pass."""

    phase: str
    source_pair: list[int]
    processed: int
    admitted: int
    admitted_best: int
    admitted_bsr: int
    admitted_unconditional: int
    rejected: int
    self_pairs: int
    missing_self_hits: int
    clusters_after: int
    members_after: int
    seconds: float
