"""Command line entry point for single-linkage clustering of a hit table."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from pafcluster.config import ClusteringConfig, load_settings
from pafcluster.errors import ConfigurationError, PafClusterError
from pafcluster.pipeline import run_pipeline
from pafcluster.sources import CsvPartitionSink, ListFanOutSink, read_paf_table
from pafcluster.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pafcluster",
        description="Single-linkage clustering of sequence members from pairwise hits",
    )
    parser.add_argument("--paf", required=True, help="Hit table (CSV, or tab-separated for any other suffix)")
    parser.add_argument("--outdir", required=True, help="Output directory path")
    parser.add_argument("--config", help="YAML settings file")
    parser.add_argument(
        "--species-set",
        type=int,
        nargs="+",
        help="Source-group ids to cluster, in processing order",
    )
    parser.add_argument("--bsr-threshold", type=float, help="Blast score ratio threshold (default 0.25)")
    parser.add_argument("--all-bests", action="store_true", default=None, help="Admit every rank-1 hit")
    parser.add_argument("--no-filters", action="store_true", default=None, help="Admit every non-self hit")
    parser.add_argument(
        "--no-brh",
        dest="include_rbh",
        action="store_false",
        default=None,
        help="Skip the reciprocal-best-hit passes",
    )
    parser.add_argument("--first-cluster-id", type=int, help="First external cluster id")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigurationError as e:
        setup_logging(args.log_level or "INFO")
        logger.error(str(e))
        return EXIT_CONFIG

    log_cfg = settings.get("logging", {})
    setup_logging(args.log_level or log_cfg.get("level", "INFO"), log_cfg.get("file"))

    try:
        config = (
            ClusteringConfig.from_settings(settings)
            .with_overrides(
                species_set=args.species_set,
                bsr_threshold=args.bsr_threshold,
                all_bests=args.all_bests,
                no_filters=args.no_filters,
                include_rbh=args.include_rbh,
                first_cluster_id=args.first_cluster_id,
            )
            .validate()
        )
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG

    outdir = Path(args.outdir)
    sink = CsvPartitionSink(outdir / "clusters.tsv")
    fan_out = ListFanOutSink()

    try:
        table = read_paf_table(args.paf)
        result = run_pipeline(config, table, sink, fan_out)
        sink.close()
        fan_out.write(outdir / "fanout.txt")
    except PafClusterError:
        logger.exception("Clustering run failed; no output written is authoritative")
        return EXIT_FAILED

    diagnostics_path = outdir / "diagnostics.json"
    with open(diagnostics_path, "w", encoding="utf-8") as f:
        json.dump(result.diagnostics.to_dict(), f, indent=2)
    logger.info(f"{len(result.clusters):,} clusters written to {outdir}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
