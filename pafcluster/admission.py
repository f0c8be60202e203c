"""Admission filter for threshold-candidate edges.

Decides whether a candidate hit becomes a clustering edge. Policies are
checked in order: unconditional admission, best-rank admission, then the
blast score ratio (BSR) against the larger self score of the two members.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import NamedTuple, Optional

from pafcluster.types import CandidateEdge, Member

logger = logging.getLogger(__name__)

DEFAULT_BSR_THRESHOLD = 0.25

REASON_SELF_PAIR = "self_pair"
REASON_UNCONDITIONAL = "unconditional"
REASON_BEST_RANK = "best_rank"
REASON_BSR = "bsr"
REASON_BELOW_BSR = "below_bsr"
REASON_MISSING_SELF_HIT = "missing_self_hit"


class SelfScoreTable(Mapping[Member, float]):
    """Read-only member -> self score mapping.

    Built once per run and shared by every admission check.
    """

    def __init__(self, scores: Optional[Mapping[Member, float]] = None) -> None:
        self._scores: dict[Member, float] = dict(scores or {})

    @classmethod
    def load(cls, records: Iterable[tuple[Member, float]]) -> SelfScoreTable:
        """Build a table from (member, score) records.

        Args:
            records: Lazy sequence of (member, self score) pairs; a repeated
                member keeps its last score

        Returns:
            Populated table

        """
        scores: dict[Member, float] = {}
        for member, score in records:
            scores[int(member)] = float(score)
        return cls(scores)

    def __getitem__(self, member: Member) -> float:
        return self._scores[member]

    def __iter__(self) -> Iterator[Member]:
        return iter(self._scores)

    def __len__(self) -> int:
        return len(self._scores)

    def reference_score(self, member_a: Member, member_b: Member) -> Optional[float]:
        """Largest self score of the two members, ignoring missing ones.

        Returns:
            The reference score, or None if neither member has a self score

        """
        ref_a = self._scores.get(member_a)
        ref_b = self._scores.get(member_b)
        if ref_a is None:
            return ref_b
        if ref_b is None:
            return ref_a
        return max(ref_a, ref_b)


@dataclass(frozen=True)
class AdmissionPolicy:
    """Admission mode flags.

    Attributes:
        no_filters: Admit every non-self pair
        all_bests: Admit every rank-1 hit
        bsr_threshold: Minimum score / reference ratio, exclusive
    """

    no_filters: bool = False
    all_bests: bool = False
    bsr_threshold: float = DEFAULT_BSR_THRESHOLD


class AdmissionDecision(NamedTuple):
    admitted: bool
    reason: str
    missing: tuple[Member, ...] = ()


def admit(
    edge: CandidateEdge,
    self_scores: SelfScoreTable,
    policy: AdmissionPolicy,
) -> AdmissionDecision:
    """Decide whether a candidate edge joins the clustering.

    Args:
        edge: Candidate hit
        self_scores: Reference self scores
        policy: Admission flags and BSR threshold

    Returns:
        AdmissionDecision with the admit flag, the deciding reason and the
        endpoints that had no self score (only filled when BSR was evaluated)

    """
    member_a, member_b, score, rank = edge

    if member_a == member_b:
        return AdmissionDecision(False, REASON_SELF_PAIR)

    if policy.no_filters:
        return AdmissionDecision(True, REASON_UNCONDITIONAL)

    if policy.all_bests and rank == 1:
        return AdmissionDecision(True, REASON_BEST_RANK)

    missing = tuple(m for m in (member_a, member_b) if m not in self_scores)
    ref_score = self_scores.reference_score(member_a, member_b)

    if ref_score is None:
        return AdmissionDecision(False, REASON_MISSING_SELF_HIT, missing)

    # A non-positive reference cannot normalize a score
    if ref_score > 0 and score / ref_score > policy.bsr_threshold:
        return AdmissionDecision(True, REASON_BSR, missing)

    return AdmissionDecision(False, REASON_BELOW_BSR, missing)


@dataclass
class AdmissionStats:
    """Counters for one pass of admission checks."""

    processed: int = 0
    admitted: int = 0
    admitted_best: int = 0
    admitted_bsr: int = 0
    admitted_unconditional: int = 0
    rejected: int = 0
    self_pairs: int = 0
    missing_self_hits: int = 0

    def record(self, decision: AdmissionDecision) -> None:
        """Count one decision."""
        self.processed += 1
        for member in decision.missing:
            logger.debug(f"member {member} missing self hit")
        self.missing_self_hits += len(decision.missing)

        if decision.admitted:
            self.admitted += 1
            if decision.reason == REASON_BEST_RANK:
                self.admitted_best += 1
            elif decision.reason == REASON_BSR:
                self.admitted_bsr += 1
            elif decision.reason == REASON_UNCONDITIONAL:
                self.admitted_unconditional += 1
        elif decision.reason == REASON_SELF_PAIR:
            self.self_pairs += 1
        else:
            self.rejected += 1

    def merge(self, other: AdmissionStats) -> None:
        """Add another pass's counters into this one."""
        self.processed += other.processed
        self.admitted += other.admitted
        self.admitted_best += other.admitted_best
        self.admitted_bsr += other.admitted_bsr
        self.admitted_unconditional += other.admitted_unconditional
        self.rejected += other.rejected
        self.self_pairs += other.self_pairs
        self.missing_self_hits += other.missing_self_hits
