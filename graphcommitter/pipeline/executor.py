"""
Batch executor: applies an ordered batch of operations to the active topology.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, TypeVar

from graphcommitter.config import CommitterSettings
from graphcommitter.documents.mapper import PropertyMapper
from graphcommitter.documents.models import CommitOperation, OperationKind
from graphcommitter.exceptions import CommitterError, RetriesExhaustedError
from graphcommitter.graph.relationships import MissingEndpoint
from graphcommitter.graph.store import TRANSIENT_ERRORS
from graphcommitter.graph.topologies import NodeTopology
from graphcommitter.pipeline.dispatcher import classify, delete_reference

logger = logging.getLogger(__name__)

T = TypeVar("T")

BASE_RETRY_DELAY = 0.5


@dataclass
class BatchResult:
    added: int = 0
    deleted: int = 0
    relationships: int = 0
    missing_endpoints: List[MissingEndpoint] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.added + self.deleted

    def merge(self, other: "BatchResult") -> None:
        self.added += other.added
        self.deleted += other.deleted
        self.relationships += other.relationships
        self.missing_endpoints.extend(other.missing_endpoints)


class BatchExecutor:
    """
    Applies operations strictly in order, one store transaction per operation.

    Later operations may depend on nodes created by earlier ones, so nothing is
    reordered, deduplicated or skipped: the first fatal error ends the batch
    and the remaining operations are not attempted.
    """

    def __init__(
        self,
        topology: NodeTopology,
        settings: CommitterSettings,
        *,
        mapper: PropertyMapper | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._topology = topology
        self._settings = settings
        self._mapper = mapper or PropertyMapper(settings)
        self._sleep = sleep

    def execute(self, batch: Iterable[CommitOperation]) -> BatchResult:
        result = BatchResult()
        position = 0
        try:
            for position, operation in enumerate(batch):
                self._apply(operation, result)
        except CommitterError as exc:
            logger.error(
                "Batch aborted at operation %d after %d applied: %s",
                position,
                result.processed,
                exc,
            )
            raise

        logger.info(
            "Batch committed: %d added, %d deleted, %d relationship(s), %d missing endpoint(s)",
            result.added,
            result.deleted,
            result.relationships,
            len(result.missing_endpoints),
        )
        return result

    # Internal helpers -------------------------------------------------------------
    def _apply(self, operation: CommitOperation, result: BatchResult) -> None:
        kind = classify(operation)
        if kind is OperationKind.ADD:
            entry = self._mapper.build_entry(operation)
            report = self._with_retries(entry.id, lambda: self._topology.store_entry(entry))
            result.added += 1
            result.relationships += report.relationships
            result.missing_endpoints.extend(report.missing_endpoints)
        else:
            reference = delete_reference(operation)
            self._with_retries(reference, lambda: self._topology.delete_entry(reference))
            result.deleted += 1

    def _with_retries(self, reference: str, action: Callable[[], T]) -> T:
        attempts = self._settings.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return action()
            except TRANSIENT_ERRORS as exc:
                if attempt == attempts:
                    logger.error("Retries exhausted for %s after %d attempt(s): %s", reference, attempt, exc)
                    raise RetriesExhaustedError(reference, attempt, exc) from exc

                delay = self._backoff(attempt)
                logger.warning(
                    "Transient failure on %s (attempt %d/%d), retrying in %.2fs: %s",
                    reference,
                    attempt,
                    attempts,
                    delay,
                    exc,
                )
                self._sleep(delay)
        raise AssertionError("unreachable")

    def _backoff(self, attempt: int) -> float:
        delay = BASE_RETRY_DELAY * (2 ** (attempt - 1))
        # Up to 25% jitter, never above the configured cap.
        delay *= 1 + random.random() * 0.25
        return min(delay, self._settings.max_retry_wait)
