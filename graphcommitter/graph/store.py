"""
Graph stores that execute the mutations planned by the node topologies.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence

from neo4j import Driver, GraphDatabase, Session
from neo4j.exceptions import ServiceUnavailable, SessionExpired, TransientError

from graphcommitter.config import Neo4jSettings
from graphcommitter.graph.cypher import quote, render
from graphcommitter.graph.mutations import Mutation
from graphcommitter.graph.schema import SchemaMetadata

logger = logging.getLogger(__name__)

# Failures worth another attempt: the store or the network, not the statement.
TRANSIENT_ERRORS = (
    ServiceUnavailable,
    SessionExpired,
    TransientError,
    ConnectionError,
    TimeoutError,
)


class GraphStore(ABC):
    """Executes mutations; one `write` call is one transaction."""

    @abstractmethod
    def write(self, mutations: Sequence[Mutation]) -> List[int]:
        """Apply `mutations` atomically and return the affected count of each."""

    def ensure_schema(self, schema: SchemaMetadata) -> None:
        """Create the constraints and indexes described by `schema`."""

    def close(self) -> None:
        """Release any connection held by the store."""


@dataclass
class Neo4jGraphStore(GraphStore):
    """Neo4j-backed store. The driver is created on first use and closed once."""

    settings: Neo4jSettings
    driver: Driver | None = None

    def close(self) -> None:
        if self.driver:
            self.driver.close()
            self.driver = None
            logger.info("Neo4j driver closed")

    def _session(self) -> Session:
        if self.driver is None:
            auth = (self.settings.username, self.settings.password)
            self.driver = GraphDatabase.driver(self.settings.uri, auth=auth)
            logger.info("Neo4j driver created for %s (db=%s)", self.settings.uri, self.settings.database)
        return self.driver.session(database=self.settings.database)

    # Constraint/index management -------------------------------------------------
    def ensure_schema(self, schema: SchemaMetadata) -> None:
        with self._session() as session:
            for label, key in schema.node_keys.items():
                session.run(
                    f"CREATE CONSTRAINT IF NOT EXISTS FOR (n:{quote(label)}) "
                    f"REQUIRE n.{quote(key)} IS UNIQUE"
                )

            for label, indexes in schema.node_indexes.items():
                for index_property in indexes:
                    session.run(
                        f"CREATE INDEX IF NOT EXISTS FOR (n:{quote(label)}) "
                        f"ON (n.{quote(index_property)})"
                    )

    # Public API -------------------------------------------------------------------
    def write(self, mutations: Sequence[Mutation]) -> List[int]:
        statements = [render(mutation) for mutation in mutations]
        affected: List[int] = []
        with self._session() as session:
            with session.begin_transaction(timeout=self.settings.transaction_timeout) as tx:
                for query, parameters in statements:
                    record = tx.run(query, parameters).single()
                    affected.append(int(record["affected"]) if record else 0)
                tx.commit()
        return affected
