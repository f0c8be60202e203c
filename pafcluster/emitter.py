"""Partition emitter.

Walks the final registry, drops degenerate clusters, allocates an external
id for each surviving cluster and hands it to the persistence and fan-out
sinks.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Callable, Optional

import pandas as pd

from pafcluster.errors import PHASE_FAN_OUT, PHASE_PERSISTENCE, ClusteringRunError
from pafcluster.registry import ClusterRegistry
from pafcluster.sources import FanOutSink, PersistenceSink
from pafcluster.types import Member

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmittedCluster:
    """A cluster handed to the sinks.

    Attributes:
        cluster_id: External identifier allocated at emission
        members: Member ids in insertion order
    """

    cluster_id: int
    members: tuple[Member, ...]

    @property
    def size(self) -> int:
        return len(self.members)


def iter_partition(registry: ClusterRegistry, min_size: int = 2) -> Iterator[list[Member]]:
    """Yield member lists for clusters with at least ``min_size`` members.

    Clusters come out in creation order of their surviving record, members
    in insertion order, so identical input gives identical output.
    """
    for _handle, members in registry.clusters():
        if len(members) >= min_size:
            yield members


def sequential_ids(start: int = 1) -> Callable[[], int]:
    """Allocator returning ``start``, ``start + 1``, ... on each call."""
    counter = itertools.count(start)
    return lambda: next(counter)


class PartitionEmitter:
    """Hands the final partition to the persistence and fan-out sinks.

    Every cluster is persisted before any fan-out happens, so downstream jobs
    are only scheduled once the whole partition is stored.
    """

    def __init__(
        self,
        persist: PersistenceSink,
        fan_out: Optional[FanOutSink] = None,
        id_allocator: Optional[Callable[[], int]] = None,
        min_size: int = 2,
    ) -> None:
        self.persist = persist
        self.fan_out = fan_out
        self.id_allocator = id_allocator or sequential_ids(1)
        self.min_size = min_size

    def emit(self, registry: ClusterRegistry) -> list[EmittedCluster]:
        """Persist every surviving cluster, then fan each one out.

        Args:
            registry: Final cluster registry

        Returns:
            Emitted clusters in emission order

        Raises:
            ClusteringRunError: If a sink fails (phase ``persistence`` or
                ``fan_out``)

        """
        emitted: list[EmittedCluster] = []
        try:
            for members in iter_partition(registry, self.min_size):
                cluster = EmittedCluster(cluster_id=self.id_allocator(), members=tuple(members))
                self.persist(cluster.cluster_id, cluster.members)
                emitted.append(cluster)
                if len(emitted) % 1000 == 0:
                    logger.info(f"{len(emitted):,} clusters stored")
        except Exception as e:
            raise ClusteringRunError(PHASE_PERSISTENCE, cause=e) from e

        if self.fan_out is not None:
            try:
                for cluster in emitted:
                    self.fan_out(cluster.cluster_id)
            except Exception as e:
                raise ClusteringRunError(PHASE_FAN_OUT, cause=e) from e

        skipped = registry.cluster_count - len(emitted)
        logger.info(
            f"Emitted {len(emitted):,} clusters "
            f"({sum(c.size for c in emitted):,} members); skipped {skipped:,} below size {self.min_size}"
        )
        return emitted


def partition_frame(emitted: list[EmittedCluster]) -> pd.DataFrame:
    """One row per (cluster, member) with the cluster size."""
    rows = [(c.cluster_id, member, c.size) for c in emitted for member in c.members]
    return pd.DataFrame(rows, columns=["cluster_id", "member_id", "cluster_size"])
