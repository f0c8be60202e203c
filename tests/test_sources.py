"""
Tests for the hit table adapter and the file sinks.
"""

import pandas as pd
import pytest

from pafcluster.errors import EdgeSourceError
from pafcluster.sources import PAF_COLUMNS, CsvPartitionSink, ListFanOutSink, PafTable, read_paf_table
from pafcluster.types import CandidateEdge

ROWS = [
    (1, 1, 10, 10, 200.0, 1),
    (2, 2, 10, 10, 150.0, 1),
    (5, 5, 20, 20, 180.0, 1),
    (6, 6, 30, 30, 120.0, 1),
    # reciprocal best hit 1 <-> 5
    (1, 5, 10, 20, 90.0, 1),
    (5, 1, 20, 10, 92.0, 1),
    # 2 -> 5 is 2's best, but 5's best back is 1
    (2, 5, 10, 20, 40.0, 1),
    (5, 2, 20, 10, 41.0, 2),
    # paralogue inside group 10
    (1, 2, 10, 10, 70.0, 2),
    # hit to a group outside the set
    (1, 6, 10, 30, 30.0, 3),
]


@pytest.fixture
def table():
    return PafTable.from_records(ROWS)


class TestPafTable:
    """Test the three edge streams."""

    def test_self_scores_restricted_to_groups(self, table):
        scores = dict(table.self_scores([10, 20]))

        assert scores == {1: 200.0, 2: 150.0, 5: 180.0}

    def test_rbh_edges_require_reciprocal_rank_one(self, table):
        edges = list(table.rbh_edges(10, 20))

        assert edges == [CandidateEdge(1, 5, 90.0, 1)]

    def test_rbh_edges_other_direction(self, table):
        assert list(table.rbh_edges(20, 10)) == [CandidateEdge(5, 1, 92.0, 1)]

    def test_rbh_same_group_is_empty(self, table):
        assert list(table.rbh_edges(10, 10)) == []

    def test_threshold_single_group_keeps_paralogues(self, table):
        assert list(table.threshold_edges([10])) == [CandidateEdge(1, 2, 70.0, 2)]

    def test_threshold_pair_excludes_same_group(self, table):
        edges = list(table.threshold_edges([10, 20]))

        assert {(e.member_a, e.member_b) for e in edges} == {(1, 5), (5, 1), (2, 5), (5, 2)}

    def test_streams_are_lazy(self, table):
        stream = table.threshold_edges([10, 20])

        assert next(stream).member_a in (1, 2, 5)

    def test_missing_columns(self):
        with pytest.raises(EdgeSourceError):
            PafTable(pd.DataFrame({"qmember_id": [1]}))

    def test_non_numeric_values(self):
        frame = pd.DataFrame([("a", 1, 1, 1, 1.0, 1)], columns=PAF_COLUMNS)

        with pytest.raises(EdgeSourceError):
            PafTable(frame)

    def test_empty_table(self):
        table = PafTable.from_records([])

        assert len(table) == 0
        assert list(table.threshold_edges([1, 2])) == []


class TestReadPafTable:
    def test_read_tsv(self, tmp_path):
        path = tmp_path / "hits.tsv"
        pd.DataFrame(ROWS, columns=PAF_COLUMNS).to_csv(path, sep="\t", index=False)

        table = read_paf_table(path)

        assert len(table) == len(ROWS)

    def test_read_csv(self, tmp_path):
        path = tmp_path / "hits.csv"
        pd.DataFrame(ROWS, columns=PAF_COLUMNS).to_csv(path, index=False)

        assert len(read_paf_table(path)) == len(ROWS)

    def test_read_parquet(self, tmp_path):
        path = tmp_path / "hits.parquet"
        pd.DataFrame(ROWS, columns=PAF_COLUMNS).to_parquet(path, index=False)

        table = read_paf_table(path)

        assert len(table) == len(ROWS)
        assert list(table.rbh_edges(10, 20)) == [CandidateEdge(1, 5, 90.0, 1)]

    def test_corrupt_parquet(self, tmp_path):
        path = tmp_path / "hits.parquet"
        path.write_bytes(b"not a parquet file")

        with pytest.raises(EdgeSourceError):
            read_paf_table(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(EdgeSourceError):
            read_paf_table(tmp_path / "nope.tsv")


class TestSinks:
    def test_csv_partition_sink(self, tmp_path):
        sink = CsvPartitionSink(tmp_path / "out" / "clusters.tsv")
        sink(1, [4, 5])
        sink(2, [7, 8, 9])

        path = sink.close()

        frame = pd.read_csv(path, sep="\t")
        assert frame["cluster_id"].tolist() == [1, 1, 2, 2, 2]
        assert frame["cluster_size"].tolist() == [2, 2, 3, 3, 3]
        assert sink.cluster_count == 2

    def test_list_fan_out_sink(self, tmp_path):
        sink = ListFanOutSink()
        sink(3)
        sink(4)

        path = sink.write(tmp_path / "fanout.txt")

        assert sink.cluster_ids == [3, 4]
        assert path.read_text() == "3\n4\n"
