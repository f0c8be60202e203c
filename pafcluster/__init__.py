"""Incremental single-linkage clustering of sequence members from pairwise hits."""

from pafcluster.admission import AdmissionPolicy, SelfScoreTable, admit
from pafcluster.config import ClusteringConfig, load_config
from pafcluster.driver import ClusteringDriver, ClusteringResult, RunDiagnostics, cluster_edges
from pafcluster.emitter import EmittedCluster, PartitionEmitter, iter_partition
from pafcluster.errors import ClusteringRunError, ConfigurationError, PafClusterError
from pafcluster.registry import ClusterRegistry
from pafcluster.types import CandidateEdge

__version__ = "0.1.0"

__all__ = [
    "AdmissionPolicy",
    "CandidateEdge",
    "ClusterRegistry",
    "ClusteringConfig",
    "ClusteringDriver",
    "ClusteringResult",
    "ClusteringRunError",
    "ConfigurationError",
    "EmittedCluster",
    "PafClusterError",
    "PartitionEmitter",
    "RunDiagnostics",
    "SelfScoreTable",
    "admit",
    "cluster_edges",
    "iter_partition",
    "load_config",
]
