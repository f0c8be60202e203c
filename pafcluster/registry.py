"""Cluster registry for single-linkage clustering.

This module provides a disjoint-set partition over integer member ids. Each
cluster is a record in an arena keyed by an integer handle, and a
member -> handle map resolves lookups. Merging moves the members of the
smaller cluster into the larger one and drops the emptied record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pafcluster.types import Member

logger = logging.getLogger(__name__)


@dataclass
class ClusterRecord:
    """A live cluster in the registry arena.

    Attributes:
        handle: Integer handle of the cluster (its representative)
        members: Member ids in insertion order
    """

    handle: int
    members: list[Member] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.members)


class ClusterRegistry:
    """Union-Find registry with size tracking.

    ``find`` is O(1) since every member maps directly to its cluster handle.
    ``union`` moves the smaller cluster onto the larger, so each member is
    moved at most O(log n) times over a whole run.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._owner: dict[Member, int] = {}
        self._arena: dict[int, ClusterRecord] = {}
        self._next_handle = 0
        self._merges = 0

    def _create(self, member: Member) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._arena[handle] = ClusterRecord(handle=handle, members=[member])
        self._owner[member] = handle
        return handle

    def find(self, member: Member) -> int:
        """Find the handle of the cluster containing a member.

        Unseen members get a new singleton cluster.

        Args:
            member: Member id to look up

        Returns:
            Handle of the cluster containing the member

        """
        handle = self._owner.get(member)
        if handle is None:
            handle = self._create(member)
        return handle

    def union(self, member_a: Member, member_b: Member) -> int:
        """Merge the clusters containing two members.

        Args:
            member_a: First member
            member_b: Second member

        Returns:
            Handle of the cluster that now holds both members

        """
        handle_a = self.find(member_a)
        handle_b = self.find(member_b)

        if handle_a == handle_b:
            return handle_a

        survivor = self._arena[handle_a]
        absorbed = self._arena[handle_b]

        # Union by size, ties keep member_a's cluster
        if len(absorbed) > len(survivor):
            survivor, absorbed = absorbed, survivor

        for member in absorbed.members:
            self._owner[member] = survivor.handle
        survivor.members.extend(absorbed.members)
        del self._arena[absorbed.handle]
        self._merges += 1

        return survivor.handle

    def same_cluster(self, member_a: Member, member_b: Member) -> bool:
        """Check if two seen members share a cluster.

        Unlike ``find`` this never creates clusters; unseen members are in no
        cluster and so never share one.
        """
        handle_a = self._owner.get(member_a)
        return handle_a is not None and handle_a == self._owner.get(member_b)

    def members_of(self, member: Member) -> list[Member]:
        """Get a copy of the members sharing a cluster with ``member``."""
        handle = self._owner.get(member)
        if handle is None:
            return []
        return list(self._arena[handle].members)

    def clusters(self) -> list[tuple[int, list[Member]]]:
        """Snapshot of the current partition.

        Returns:
            List of (handle, members) in cluster creation order; member lists
            are copies in insertion order

        """
        return [(record.handle, list(record.members)) for record in self._arena.values()]

    @property
    def cluster_count(self) -> int:
        """Number of live clusters."""
        return len(self._arena)

    @property
    def merge_count(self) -> int:
        """Number of unions that joined two distinct clusters."""
        return self._merges

    def reset(self) -> None:
        """Reset the registry to empty state."""
        self._owner.clear()
        self._arena.clear()
        self._next_handle = 0
        self._merges = 0

    def __len__(self) -> int:
        """Get the total number of members seen."""
        return len(self._owner)

    def __contains__(self, member: object) -> bool:
        """Check if a member has been seen."""
        return member in self._owner
