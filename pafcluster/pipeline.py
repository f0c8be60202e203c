"""End-to-end clustering run: cluster, persist, fan out."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pafcluster.config import ClusteringConfig
from pafcluster.driver import ClusteringDriver, RunDiagnostics
from pafcluster.emitter import EmittedCluster, PartitionEmitter, sequential_ids
from pafcluster.sources import FanOutSink, PafTable, PersistenceSink
from pafcluster.utils.perf_utils import time_stage

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    clusters: list[EmittedCluster]
    diagnostics: RunDiagnostics


def run_pipeline(
    config: ClusteringConfig,
    table: PafTable,
    persist: PersistenceSink,
    fan_out: FanOutSink,
) -> PipelineResult:
    """Cluster the hit table and hand the partition to the sinks.

    The configuration is validated before any hit is read. A failure in any
    phase raises ClusteringRunError and the sinks must treat whatever they
    received as void.
    """
    driver = ClusteringDriver.from_table(config, table)
    with time_stage("clustering", logger):
        result = driver.run()

    emitter = PartitionEmitter(
        persist=persist,
        fan_out=fan_out,
        id_allocator=sequential_ids(config.first_cluster_id),
        min_size=config.min_cluster_size,
    )
    with time_stage("emit", logger):
        clusters = emitter.emit(result.registry)

    return PipelineResult(clusters=clusters, diagnostics=result.diagnostics)
