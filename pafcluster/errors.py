"""Exception types for the clustering pipeline."""

from __future__ import annotations

from typing import Optional

# Phases reported by ClusteringRunError
PHASE_SCORE_LOADING = "score_loading"
PHASE_RBH = "rbh"
PHASE_THRESHOLD = "threshold"
PHASE_PERSISTENCE = "persistence"
PHASE_FAN_OUT = "fan_out"


class PafClusterError(Exception):
    """Base class for all pafcluster errors."""


class ConfigurationError(PafClusterError):
    """Raised when the run configuration is missing or invalid."""


class EdgeSourceError(PafClusterError):
    """Raised when a hit table cannot be read or lacks required columns."""


class ClusteringRunError(PafClusterError):
    """Raised when a clustering run fails; the partial partition is discarded.

    Attributes:
        phase: Phase that failed (score_loading, rbh, threshold, persistence,
            fan_out)
        source_pair: Source-group ids being processed, if any
    """

    def __init__(
        self,
        phase: str,
        source_pair: Optional[tuple[int, ...]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.phase = phase
        self.source_pair = source_pair
        self.cause = cause
        where = f" for source groups {source_pair}" if source_pair else ""
        detail = f": {cause!r}" if cause is not None else ""
        super().__init__(f"Clustering failed in phase '{phase}'{where}{detail}")
