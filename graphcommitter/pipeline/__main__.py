"""
Command line entry point: commit JSON Lines operation files to Neo4j.
"""

from __future__ import annotations

import argparse
import itertools
import logging
from pathlib import Path
from typing import Iterable

from neo4j.exceptions import DriverError, Neo4jError

from graphcommitter.config import load_committer_settings, load_settings
from graphcommitter.config.xml_config import load_committer_config
from graphcommitter.exceptions import CommitterError
from graphcommitter.logging import setup_logging
from graphcommitter.pipeline import GraphCommitter
from graphcommitter.pipeline.reader import read_operations

logger = logging.getLogger("graphcommitter.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Commit crawler add/delete operations to a Neo4j graph."
    )
    parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="One or more JSON Lines files, or directories containing *.jsonl files.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Committer XML configuration. Defaults to GRAPHCOMMITTER_* environment variables.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )
    return parser


def resolve_inputs(inputs: Iterable[Path]) -> list[Path]:
    resolved: list[Path] = []
    for input_path in inputs:
        if input_path.is_dir():
            resolved.extend(sorted(path for path in input_path.rglob("*.jsonl") if path.is_file()))
            continue
        if not input_path.exists():
            raise FileNotFoundError(f"{input_path} does not exist")
        resolved.append(input_path)

    if not resolved:
        raise RuntimeError("No operation files found")

    # Deduplicate while preserving order
    return list(dict.fromkeys(resolved))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    files = resolve_inputs(args.paths)
    try:
        if args.config:
            config = load_committer_config(args.config)
            settings, neo4j_settings = config.committer, config.neo4j or load_settings()
        else:
            settings, neo4j_settings = load_committer_settings(), load_settings()

        operations = itertools.chain.from_iterable(read_operations(path) for path in files)
        with GraphCommitter(settings=settings, neo4j_settings=neo4j_settings) as committer:
            result = committer.commit_all(operations)
    except (CommitterError, DriverError, Neo4jError) as exc:
        logger.error("Commit failed: %s", exc)
        return 1

    print(
        f"Commit complete: {result.added} added, {result.deleted} deleted, "
        f"{result.relationships} relationship(s), "
        f"{len(result.missing_endpoints)} missing endpoint(s)."
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
