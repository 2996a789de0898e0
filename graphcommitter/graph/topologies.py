"""
Node topologies: the shape of the graph fragment written for one document.

The set of shapes is closed and selected once from `TopologyType`:

    ONE_NODE    (:Primary {identity, ...metadata, content})
    NO_CONTENT  (:Primary {identity, ...metadata})
    SPLITTED    (:Primary {identity})-[:HAS_METADATA]->(:Metadata {...metadata})
                (:Primary {identity})-[:HAS_CONTENT]->(:Content {content})

Every write for one document (its own nodes, placeholder claims and declared
relationships) is issued as a single store transaction, so a retried entry
either fully lands or leaves no trace.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from graphcommitter.config import CommitterSettings
from graphcommitter.documents.mapper import PropertyMapper
from graphcommitter.documents.models import GraphEntry
from graphcommitter.exceptions import ConfigurationError
from graphcommitter.graph.mutations import ConnectNodes, DeleteNode, Mutation, NodeKey, UpsertLinkedNode, UpsertNode
from graphcommitter.graph.relationships import MissingEndpoint, RelationshipResolver
from graphcommitter.graph.schema import (
    NODE_CONTENT,
    NODE_METADATA,
    REL_HAS_CONTENT,
    REL_HAS_METADATA,
    TopologyType,
)
from graphcommitter.graph.store import GraphStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryReport:
    document_id: str
    relationships: int
    missing_endpoints: Tuple[MissingEndpoint, ...] = ()


class NodeTopology:
    """Upserts and deletes documents in the shape selected by `kind`."""

    def __init__(
        self,
        kind: TopologyType,
        settings: CommitterSettings,
        store: GraphStore,
        *,
        resolver: RelationshipResolver | None = None,
        mapper: PropertyMapper | None = None,
    ) -> None:
        try:
            self.kind = TopologyType(kind)
        except ValueError:
            raise ConfigurationError(f"Unsupported node topology: {kind!r}") from None
        self._settings = settings
        self._store = store
        self._resolver = resolver or RelationshipResolver(settings.relationships)
        self._mapper = mapper or PropertyMapper(settings)
        self._planners: Dict[TopologyType, Callable[[GraphEntry], List[Mutation]]] = {
            TopologyType.ONE_NODE: self._plan_single_node,
            TopologyType.NO_CONTENT: self._plan_single_node,
            TopologyType.SPLITTED: self._plan_split_nodes,
        }

    @property
    def settings(self) -> CommitterSettings:
        return self._settings

    @property
    def property_label(self) -> str:
        """Label of the node that carries a document's metadata properties."""

        if self.kind is TopologyType.SPLITTED:
            return NODE_METADATA
        return self._settings.primary_label

    def identity_key(self, document_id: str) -> NodeKey:
        return NodeKey(
            label=self._settings.primary_label,
            key=self._settings.target_reference_field,
            value=document_id,
        )

    def anchor(self, document_id: str) -> NodeKey:
        """Key of the node that declared relationships start from."""

        key = self.identity_key(document_id)
        if self.kind is TopologyType.SPLITTED:
            return NodeKey(key.label, key.key, key.value, hop=(REL_HAS_METADATA, NODE_METADATA))
        return key

    # Public API -------------------------------------------------------------------
    def store_entry(self, entry: GraphEntry) -> EntryReport:
        """Upsert the document's nodes, then its declared relationships, in one transaction."""

        own = self.store_mutations(entry)
        connections = self.relationship_mutations(entry)
        affected = self._store.write([*own, *connections])
        missing = self._resolver.record(entry.id, connections, affected[len(own):])
        logger.debug("Stored %s as %s with %d relationship(s)", entry.id, self.kind.value, len(connections))
        return EntryReport(
            document_id=entry.id,
            relationships=len(connections),
            missing_endpoints=tuple(missing),
        )

    def delete_entry(self, document_id: str) -> int:
        """Delete the document's nodes. Returns 0 when the document was not in the graph."""

        affected = self._store.write(self.delete_mutations(document_id))
        deleted = affected[0] if affected else 0
        if not deleted:
            logger.debug("Nothing to delete for %s", document_id)
        return deleted

    def store_mutations(self, entry: GraphEntry) -> List[Mutation]:
        return self._planners[self.kind](entry)

    def relationship_mutations(self, entry: GraphEntry) -> List[ConnectNodes]:
        return self._resolver.plan(entry, self.anchor(entry.id), self.property_label)

    def delete_mutations(self, document_id: str) -> List[Mutation]:
        cascade = (REL_HAS_METADATA, REL_HAS_CONTENT) if self.kind is TopologyType.SPLITTED else ()
        return [DeleteNode(node=self.identity_key(document_id), cascade=cascade)]

    # Planners ---------------------------------------------------------------------
    def _plan_single_node(self, entry: GraphEntry) -> List[Mutation]:
        properties = self._mapper.node_properties(entry)
        if self.kind is TopologyType.ONE_NODE and entry.content and entry.content_field:
            properties[entry.content_field] = entry.content

        owner = self.identity_key(entry.id)
        mutations: List[Mutation] = [
            UpsertNode(
                label=owner.label,
                key=owner.key,
                value=owner.value,
                properties=properties,
                labels=entry.labels,
            )
        ]
        mutations.extend(self._resolver.claims(owner, properties, self._settings.primary_label))
        return mutations

    def _plan_split_nodes(self, entry: GraphEntry) -> List[Mutation]:
        owner = self.identity_key(entry.id)
        metadata = self._mapper.node_properties(entry)
        content = {entry.content_field: entry.content} if entry.content and entry.content_field else {}

        mutations: List[Mutation] = [
            UpsertNode(label=owner.label, key=owner.key, value=owner.value),
            UpsertLinkedNode(
                owner=owner,
                rel_type=REL_HAS_METADATA,
                label=NODE_METADATA,
                properties=metadata,
                labels=entry.labels,
            ),
            UpsertLinkedNode(
                owner=owner,
                rel_type=REL_HAS_CONTENT,
                label=NODE_CONTENT,
                properties=content,
            ),
        ]
        mutations.extend(
            self._resolver.claims(self.anchor(entry.id), metadata, NODE_METADATA, REL_HAS_METADATA)
        )
        return mutations


def create_topology(settings: CommitterSettings, store: GraphStore) -> NodeTopology:
    """Build the topology selected by `settings.topology_type`."""

    topology = NodeTopology(settings.topology_type, settings, store)
    logger.info("Node topology loaded: %s", topology.kind.value)
    return topology
