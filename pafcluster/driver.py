"""Clustering driver.

Feeds edges from the sources through the admission filter into the cluster
registry. For every source group X, in configured order, the driver runs the
paralogue threshold pass on X alone, then for every later group Y the
reciprocal-best-hit pass and the threshold pass on (X, Y). The order only
helps throughput; the final partition does not depend on it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Iterator
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from pafcluster.admission import AdmissionPolicy, AdmissionStats, SelfScoreTable, admit
from pafcluster.config import ClusteringConfig
from pafcluster.errors import (
    PHASE_RBH,
    PHASE_SCORE_LOADING,
    PHASE_THRESHOLD,
    ClusteringRunError,
)
from pafcluster.registry import ClusterRegistry
from pafcluster.sources import PafTable, RbhEdgeSupplier, SelfScoreSupplier, ThresholdEdgeSupplier
from pafcluster.types import CandidateEdge, PassSummary, SourceGroup
from pafcluster.utils.perf_utils import time_stage
from pafcluster.utils.progress import ProgressLogger

logger = logging.getLogger(__name__)


@dataclass
class PassDiagnostics:
    """Counters for one RBH or threshold pass over a source-group pair."""

    phase: str
    source_pair: tuple[SourceGroup, ...]
    stats: AdmissionStats = field(default_factory=AdmissionStats)
    seconds: float = 0.0
    clusters_after: int = 0
    members_after: int = 0

    def to_dict(self) -> PassSummary:
        return PassSummary(
            phase=self.phase,
            source_pair=list(self.source_pair),
            seconds=round(self.seconds, 3),
            clusters_after=self.clusters_after,
            members_after=self.members_after,
            **asdict(self.stats),
        )


@dataclass
class RunDiagnostics:
    """Diagnostics of one clustering run, returned instead of kept globally."""

    self_scores_loaded: int = 0
    passes: list[PassDiagnostics] = field(default_factory=list)

    def totals(self, phase: Optional[str] = None) -> AdmissionStats:
        """Sum counters over all passes, or over the passes of one phase."""
        total = AdmissionStats()
        for entry in self.passes:
            if phase is None or entry.phase == phase:
                total.merge(entry.stats)
        return total

    @property
    def missing_self_hits(self) -> int:
        return self.totals().missing_self_hits

    def to_dict(self) -> dict[str, Any]:
        return {
            "self_scores_loaded": self.self_scores_loaded,
            "totals": {
                "rbh": asdict(self.totals(PHASE_RBH)),
                "threshold": asdict(self.totals(PHASE_THRESHOLD)),
            },
            "passes": [entry.to_dict() for entry in self.passes],
        }


@dataclass
class ClusteringResult:
    registry: ClusterRegistry
    diagnostics: RunDiagnostics


def plan_passes(
    species_set: Iterable[SourceGroup], include_rbh: bool = True
) -> Iterator[tuple[str, tuple[SourceGroup, ...]]]:
    """Yield (phase, source groups) in processing order."""
    remaining = list(species_set)
    while remaining:
        group_x = remaining.pop(0)
        yield PHASE_THRESHOLD, (group_x,)
        for group_y in remaining:
            if include_rbh:
                yield PHASE_RBH, (group_x, group_y)
            yield PHASE_THRESHOLD, (group_x, group_y)


def union_rbh_edges(registry: ClusterRegistry, edges: Iterable[CandidateEdge]) -> AdmissionStats:
    """Union every RBH edge; they skip the admission filter."""
    stats = AdmissionStats()
    for member_a, member_b, _score, _rank in edges:
        stats.processed += 1
        if member_a == member_b:
            stats.self_pairs += 1
            continue
        stats.admitted += 1
        registry.union(member_a, member_b)
    return stats


def union_threshold_edges(
    registry: ClusterRegistry,
    edges: Iterable[CandidateEdge],
    self_scores: SelfScoreTable,
    policy: AdmissionPolicy,
) -> AdmissionStats:
    """Union every threshold candidate that passes the admission filter."""
    stats = AdmissionStats()
    for edge in edges:
        decision = admit(edge, self_scores, policy)
        stats.record(decision)
        if decision.admitted:
            member_a, member_b, _score, _rank = edge
            registry.union(member_a, member_b)
    return stats


class ClusteringDriver:
    """Runs every clustering pass for a configured set of source groups.

    The driver owns its registry exclusively; the self-score table is
    loaded once and only read afterwards.
    """

    def __init__(
        self,
        config: ClusteringConfig,
        self_scores: SelfScoreSupplier,
        rbh_edges: RbhEdgeSupplier,
        threshold_edges: ThresholdEdgeSupplier,
    ) -> None:
        self.config = config.validate()
        self.self_scores = self_scores
        self.rbh_edges = rbh_edges
        self.threshold_edges = threshold_edges

    @classmethod
    def from_table(cls, config: ClusteringConfig, table: PafTable) -> ClusteringDriver:
        """Driver reading all three edge streams from one hit table."""
        return cls(config, table.self_scores, table.rbh_edges, table.threshold_edges)

    def load_self_scores(self) -> SelfScoreTable:
        groups = self.config.species_set
        try:
            with time_stage("self_scores", logger):
                table = SelfScoreTable.load(self.self_scores(groups))
        except Exception as e:
            raise ClusteringRunError(PHASE_SCORE_LOADING, groups, e) from e
        logger.info(f"Loaded {len(table):,} self scores for source groups {list(groups)}")
        return table

    def run(self) -> ClusteringResult:
        """Run every pass and return the registry with its diagnostics.

        Raises:
            ClusteringRunError: If a source fails; nothing from the run should
                be used in that case

        """
        config = self.config
        logger.info(f"Clustering parameters: {config.describe()}")

        diagnostics = RunDiagnostics()
        self_scores = self.load_self_scores()
        diagnostics.self_scores_loaded = len(self_scores)

        registry = ClusterRegistry()
        policy = config.policy
        for phase, pair in plan_passes(config.species_set, config.include_rbh):
            entry = self._run_pass(phase, pair, registry, self_scores, policy)
            diagnostics.passes.append(entry)

        logger.info(
            f"Clustering finished: {registry.cluster_count:,} clusters, "
            f"{len(registry):,} members, {registry.merge_count:,} merges"
        )
        return ClusteringResult(registry=registry, diagnostics=diagnostics)

    def process_edges(
        self,
        registry: ClusterRegistry,
        edges: Iterable[CandidateEdge],
        self_scores: SelfScoreTable,
        phase: str = PHASE_THRESHOLD,
        policy: Optional[AdmissionPolicy] = None,
    ) -> AdmissionStats:
        """Union an explicit edge list into ``registry``.

        RBH edges are merged unconditionally; threshold edges go through the
        admission filter with ``policy`` (the configured one by default).
        Exceptions propagate unwrapped.
        """
        if phase == PHASE_RBH:
            return union_rbh_edges(registry, edges)
        return union_threshold_edges(registry, edges, self_scores, policy or self.config.policy)

    def _run_pass(
        self,
        phase: str,
        pair: tuple[SourceGroup, ...],
        registry: ClusterRegistry,
        self_scores: SelfScoreTable,
        policy: AdmissionPolicy,
    ) -> PassDiagnostics:
        label = f"{phase} {'/'.join(str(g) for g in pair)}"
        progress = ProgressLogger(
            total=None,
            label=label,
            step_every=self.config.progress_every,
            logger=logger,
        )
        start = time.time()
        try:
            with time_stage(label, logger):
                if phase == PHASE_RBH:
                    edges = self.rbh_edges(*pair)
                else:
                    edges = self.threshold_edges(pair)
                stats = self.process_edges(registry, progress.wrap(edges), self_scores, phase, policy)
        except Exception as e:
            raise ClusteringRunError(phase, pair, e) from e

        entry = PassDiagnostics(
            phase=phase,
            source_pair=pair,
            stats=stats,
            seconds=time.time() - start,
            clusters_after=registry.cluster_count,
            members_after=len(registry),
        )
        logger.info(
            f"{label}: {stats.processed:,} hits => {stats.admitted:,} picked "
            f"({stats.admitted_best:,} best + {stats.admitted_bsr:,} bsr); "
            f"{entry.clusters_after:,} clusters, {entry.members_after:,} members so far"
        )
        if stats.missing_self_hits:
            logger.warning(f"{label}: {stats.missing_self_hits:,} member endpoints missing a self hit")
        return entry


def cluster_edges(
    rbh_edges: Iterable[CandidateEdge] = (),
    threshold_edges: Iterable[CandidateEdge] = (),
    self_scores: Optional[SelfScoreTable] = None,
    policy: Optional[AdmissionPolicy] = None,
) -> ClusterRegistry:
    """Cluster explicit edge streams without any source-group bookkeeping."""
    registry = ClusterRegistry()
    union_rbh_edges(registry, rbh_edges)
    union_threshold_edges(registry, threshold_edges, self_scores or SelfScoreTable(), policy or AdmissionPolicy())
    return registry
