"""
Relationship resolver.

Declared relationship rules connect a committed document to other nodes by
matching property values instead of node ids. Endpoints may not exist yet:
MERGE rules create a minimal endpoint that the endpoint's own document later
claims, MATCH rules skip the edge and record the miss.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from graphcommitter.documents.models import GraphEntry
from graphcommitter.graph.mutations import ClaimPlaceholder, ConnectNodes, NodeKey
from graphcommitter.graph.schema import FindSyntax, RelationshipRule, field_values

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MissingEndpoint:
    """A MATCH rule that found no node carrying the looked-up value."""

    document_id: str
    relationship_type: str
    key: str
    value: str


class RelationshipResolver:
    """Plans the relationship mutations of a document from the configured rules."""

    def __init__(self, rules: Sequence[RelationshipRule]) -> None:
        self._rules = tuple(rule for rule in rules if rule.enabled)
        skipped = len(rules) - len(self._rules)
        if skipped:
            logger.info("Ignoring %d disabled relationship rule(s)", skipped)

    @property
    def rules(self) -> Sequence[RelationshipRule]:
        return self._rules

    def plan(self, entry: GraphEntry, anchor: NodeKey, target_label: str) -> List[ConnectNodes]:
        """
        Return one mutation per rule and source value.

        Args:
            entry: The document being stored.
            anchor: Key of the document node that holds its metadata.
            target_label: Label of the nodes that may carry the target property.
        """

        mutations: List[ConnectNodes] = []
        for rule in self._rules:
            values = field_values(entry.properties.get(rule.source_property_key))
            if not values:
                logger.debug(
                    "No %s value on %s, skipping %s relationship",
                    rule.source_property_key,
                    entry.id,
                    rule.type,
                )
                continue
            for value in dict.fromkeys(item.strip() for item in values):
                mutations.append(
                    ConnectNodes(
                        anchor=anchor,
                        rel_type=rule.type,
                        direction=rule.direction,
                        label=target_label,
                        key=rule.target_property_key,
                        value=value,
                        create_missing=rule.find_syntax is FindSyntax.MERGE,
                    )
                )
        return mutations

    def claims(
        self,
        owner: NodeKey,
        node_properties: Mapping[str, str],
        placeholder_label: str,
        rel_type: Optional[str] = None,
    ) -> List[ClaimPlaceholder]:
        """
        Return the claims that fold endpoints created for a document earlier into its node.

        Only MERGE rules create endpoints, and only a document carrying the
        rule's target property can have been looked up by it. Each rule may
        have created its own endpoint, so every rule gets a claim, and each
        claim moves the relationships of all configured types.

        Args:
            owner: Key of the node that carries the document metadata.
            node_properties: The stored metadata properties of the document.
            placeholder_label: Label the endpoints were created with.
            rel_type: Link that marks a `placeholder_label` node as owned, if any.
        """

        rel_types = tuple(dict.fromkeys(rule.type for rule in self._rules))
        claims: List[ClaimPlaceholder] = []
        seen = set()
        for rule in self._rules:
            if rule.find_syntax is not FindSyntax.MERGE:
                continue
            value = node_properties.get(rule.target_property_key)
            if not value or (rule.target_property_key, value) in seen:
                continue
            seen.add((rule.target_property_key, value))
            claims.append(
                ClaimPlaceholder(
                    owner=owner,
                    label=placeholder_label,
                    key=rule.target_property_key,
                    value=value,
                    rel_type=rel_type,
                    rel_types=rel_types,
                )
            )
        return claims

    def record(
        self,
        document_id: str,
        mutations: Sequence[ConnectNodes],
        affected: Sequence[int],
    ) -> List[MissingEndpoint]:
        """Log and return the MATCH mutations that connected nothing."""

        missing: List[MissingEndpoint] = []
        for mutation, count in zip(mutations, affected):
            if count or mutation.create_missing:
                continue
            missing.append(
                MissingEndpoint(
                    document_id=document_id,
                    relationship_type=mutation.rel_type,
                    key=mutation.key,
                    value=mutation.value,
                )
            )
            logger.debug(
                "No node with %s=%r for %s relationship of %s",
                mutation.key,
                mutation.value,
                mutation.rel_type,
                document_id,
            )
        return missing
