"""
High-level committer: owns the store lifecycle and feeds batches to the executor.
"""

from __future__ import annotations

import logging
import time
from itertools import islice
from typing import Callable, Iterable, Iterator, List

from graphcommitter.config import CommitterSettings, Neo4jSettings, load_settings
from graphcommitter.documents.models import CommitOperation
from graphcommitter.graph.schema import build_schema
from graphcommitter.graph.store import GraphStore, Neo4jGraphStore
from graphcommitter.graph.topologies import NodeTopology, create_topology
from graphcommitter.pipeline.executor import BatchExecutor, BatchResult

logger = logging.getLogger(__name__)


class GraphCommitter:
    """
    Commits document operations to the graph.

    The committer is opened once, used for any number of batches and closed
    once; closing releases the store connection on every exit path when the
    committer is used as a context manager:

        with GraphCommitter(settings=settings) as committer:
            committer.commit(batch)
    """

    def __init__(
        self,
        *,
        settings: CommitterSettings | None = None,
        neo4j_settings: Neo4jSettings | None = None,
        store: GraphStore | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings or CommitterSettings()
        self._neo4j_settings = neo4j_settings
        self._store = store
        self._sleep = sleep
        self._topology: NodeTopology | None = None
        self._executor: BatchExecutor | None = None

    @property
    def settings(self) -> CommitterSettings:
        return self._settings

    @property
    def is_open(self) -> bool:
        return self._executor is not None

    # Lifecycle --------------------------------------------------------------------
    def open(self) -> "GraphCommitter":
        if self._executor is not None:
            return self

        if self._store is None:
            self._store = Neo4jGraphStore(settings=self._neo4j_settings or load_settings())
        try:
            self._store.ensure_schema(
                build_schema(
                    topology_type=self._settings.topology_type,
                    primary_label=self._settings.primary_label,
                    id_field=self._settings.target_reference_field,
                    relationships=self._settings.relationships,
                )
            )
            self._topology = create_topology(self._settings, self._store)
            self._executor = BatchExecutor(self._topology, self._settings, sleep=self._sleep)
        except BaseException:
            # __exit__ never runs when __enter__ fails.
            self.close()
            raise
        logger.info("Committer opened (topology=%s)", self._settings.topology_type.value)
        return self

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
        if self._executor is not None:
            logger.info("Committer closed")
        self._executor = None
        self._topology = None

    def __enter__(self) -> "GraphCommitter":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Public API -------------------------------------------------------------------
    def commit(self, batch: Iterable[CommitOperation]) -> BatchResult:
        """Apply one ordered batch. Any CommitterError ends the batch."""

        if self._executor is None:
            raise RuntimeError("GraphCommitter is not open; call open() first")
        return self._executor.execute(batch)

    def commit_all(self, operations: Iterable[CommitOperation]) -> BatchResult:
        """Apply `operations` in batches of `commit_batch_size`, stopping at the first failed batch."""

        total = BatchResult()
        for batch in _chunked(operations, self._settings.commit_batch_size):
            total.merge(self.commit(batch))
        return total


def _chunked(operations: Iterable[CommitOperation], size: int) -> Iterator[List[CommitOperation]]:
    iterator = iter(operations)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch
