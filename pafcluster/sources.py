"""Edge sources and result sinks for the clustering driver.

The driver only talks to the protocols defined here. ``PafTable`` implements
the three edge streams over an in-memory hit table, and the sinks collect
the emitted partition for file output.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path
from typing import Protocol, Union

import pandas as pd
from pyarrow import ArrowException

from pafcluster.errors import EdgeSourceError
from pafcluster.types import CandidateEdge, Member, SelfScore, SourceGroup

logger = logging.getLogger(__name__)

PAF_COLUMNS = [
    "qmember_id",
    "hmember_id",
    "qgenome_db_id",
    "hgenome_db_id",
    "score",
    "hit_rank",
]

_ID_COLUMNS = ["qmember_id", "hmember_id", "qgenome_db_id", "hgenome_db_id", "hit_rank"]


class SelfScoreSupplier(Protocol):
    """Yields (member, self score) for members of the given source groups."""

    def __call__(self, groups: Sequence[SourceGroup]) -> Iterable[tuple[Member, float]]: ...


class RbhEdgeSupplier(Protocol):
    """Yields reciprocal best hits between two source groups."""

    def __call__(self, group_x: SourceGroup, group_y: SourceGroup) -> Iterable[CandidateEdge]: ...


class ThresholdEdgeSupplier(Protocol):
    """Yields non-self candidate hits within the given source groups.

    With more than one group, hits inside a single group are left out.
    """

    def __call__(self, groups: Sequence[SourceGroup]) -> Iterable[CandidateEdge]: ...


class PersistenceSink(Protocol):
    def __call__(self, cluster_id: int, members: Sequence[Member]) -> None: ...


class FanOutSink(Protocol):
    def __call__(self, cluster_id: int) -> None: ...


class PafTable:
    """Pairwise hit table held in a pandas DataFrame.

    Each row is a hit from ``qmember_id`` (genome ``qgenome_db_id``) to
    ``hmember_id`` (genome ``hgenome_db_id``) with its ``score`` and
    ``hit_rank`` among the query's hits.
    """

    def __init__(self, frame: pd.DataFrame) -> None:
        missing = [c for c in PAF_COLUMNS if c not in frame.columns]
        if missing:
            raise EdgeSourceError(f"Hit table is missing required columns: {missing}")
        try:
            frame = frame[PAF_COLUMNS].astype({c: "int64" for c in _ID_COLUMNS})
            frame = frame.astype({"score": "float64"})
        except (TypeError, ValueError) as e:
            raise EdgeSourceError(f"Hit table has non-numeric values: {e}") from e
        self._frame = frame.reset_index(drop=True)

    @classmethod
    def from_records(cls, records: Iterable[Sequence[float]]) -> PafTable:
        """Build a table from rows ordered as ``PAF_COLUMNS``."""
        return cls(pd.DataFrame(list(records), columns=PAF_COLUMNS))

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame

    def __len__(self) -> int:
        return len(self._frame)

    def self_scores(self, groups: Sequence[SourceGroup]) -> Iterator[SelfScore]:
        df = self._frame
        mask = (df["qmember_id"] == df["hmember_id"]) & df["qgenome_db_id"].isin(list(groups))
        for member, score in df.loc[mask, ["qmember_id", "score"]].itertuples(index=False, name=None):
            yield SelfScore(int(member), float(score))

    def rbh_edges(self, group_x: SourceGroup, group_y: SourceGroup) -> Iterator[CandidateEdge]:
        if group_x == group_y:
            return
        df = self._frame
        forward = df[
            (df["qgenome_db_id"] == group_x)
            & (df["hgenome_db_id"] == group_y)
            & (df["hit_rank"] == 1)
        ]
        reverse = df.loc[
            (df["qgenome_db_id"] == group_y)
            & (df["hgenome_db_id"] == group_x)
            & (df["hit_rank"] == 1),
            ["qmember_id", "hmember_id"],
        ].drop_duplicates()
        # Reverse hit must point back: reverse.q == forward.h and reverse.h == forward.q
        reverse = reverse.rename(columns={"qmember_id": "hmember_id", "hmember_id": "qmember_id"})
        pairs = forward.merge(reverse, on=["qmember_id", "hmember_id"], how="inner")
        for a, b, score, rank in pairs[["qmember_id", "hmember_id", "score", "hit_rank"]].itertuples(
            index=False, name=None
        ):
            yield CandidateEdge(int(a), int(b), float(score), int(rank))

    def threshold_edges(self, groups: Sequence[SourceGroup]) -> Iterator[CandidateEdge]:
        df = self._frame
        group_list = list(groups)
        mask = (
            (df["qmember_id"] != df["hmember_id"])
            & df["qgenome_db_id"].isin(group_list)
            & df["hgenome_db_id"].isin(group_list)
        )
        if len(group_list) > 1:
            mask &= df["qgenome_db_id"] != df["hgenome_db_id"]
        for a, b, score, rank in df.loc[mask, ["qmember_id", "hmember_id", "score", "hit_rank"]].itertuples(
            index=False, name=None
        ):
            yield CandidateEdge(int(a), int(b), float(score), int(rank))


def read_paf_table(path: Union[str, Path]) -> PafTable:
    """Read a hit table from a parquet, CSV or tab-separated file.

    Args:
        path: ``.parquet`` files are read with pyarrow, ``.csv`` files are
            comma separated, anything else is read as TSV

    Returns:
        PafTable over the file contents

    Raises:
        EdgeSourceError: If the file is missing, unreadable or lacks columns

    """
    path = Path(path)
    if not path.exists():
        raise EdgeSourceError(f"Hit table not found: {path}")
    suffix = path.suffix.lower()
    try:
        if suffix == ".parquet":
            frame = pd.read_parquet(path)
        else:
            frame = pd.read_csv(path, sep="," if suffix == ".csv" else "\t")
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, ArrowException) as e:
        raise EdgeSourceError(f"Could not parse hit table {path}: {e}") from e
    logger.info(f"Loaded {len(frame):,} hits from {path}")
    return PafTable(frame)


class CsvPartitionSink:
    """Persistence sink that writes one row per cluster member on close."""

    def __init__(self, path: Union[str, Path], sep: str = "\t") -> None:
        self.path = Path(path)
        self.sep = sep
        self._rows: list[tuple[int, int, int]] = []
        self.cluster_count = 0

    def __call__(self, cluster_id: int, members: Sequence[Member]) -> None:
        size = len(members)
        self._rows.extend((cluster_id, member, size) for member in members)
        self.cluster_count += 1

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self._rows, columns=["cluster_id", "member_id", "cluster_size"])

    def close(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.to_frame().to_csv(self.path, sep=self.sep, index=False)
        logger.info(f"Wrote {self.cluster_count:,} clusters ({len(self._rows):,} members) to {self.path}")
        return self.path


class ListFanOutSink:
    """Fan-out sink that records cluster ids in hand-off order."""

    def __init__(self) -> None:
        self.cluster_ids: list[int] = []

    def __call__(self, cluster_id: int) -> None:
        self.cluster_ids.append(cluster_id)

    def write(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(f"{cid}\n" for cid in self.cluster_ids), encoding="utf-8")
        return path
