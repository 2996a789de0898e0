"""
Centralized definitions for the graph layout written by graph-committer.

The topologies, the relationship resolver and the store bootstrap all rely on
the names in this file so that every mutation agrees on labels, keys and
internal relationship types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

DEFAULT_PRIMARY_LABEL = "CommittedDocument"
DEFAULT_ID_FIELD = "identity"
DEFAULT_CONTENT_FIELD = "content"
DEFAULT_MULTI_VALUES_JOINER = "|"
DEFAULT_SOURCE_REFERENCE_FIELD = "document.reference"

DEFAULT_RELATIONSHIP_TYPE = "PARENT_OF"
DEFAULT_SOURCE_PROPERTY_KEY = "collector.referrer-reference"
DEFAULT_TARGET_PROPERTY_KEY = "document.reference"

# Split topology
NODE_METADATA = "Metadata"
NODE_CONTENT = "Content"
REL_HAS_METADATA = "HAS_METADATA"
REL_HAS_CONTENT = "HAS_CONTENT"

PropertyValue = Union[str, Sequence[str]]


class TopologyType(str, Enum):
    """
    Shape of the graph fragment written for one committed document.

    ONE_NODE: a single node holding metadata and content.
    NO_CONTENT: a single node holding metadata only.
    SPLITTED: an identity node linked to a metadata node and a content node.
    """

    ONE_NODE = "ONE_NODE"
    NO_CONTENT = "NO_CONTENT"
    SPLITTED = "SPLITTED"


class Direction(str, Enum):
    """Direction of a declared relationship, seen from the committed document."""

    NONE = "NONE"
    INCOMING = "INCOMING"
    OUTGOING = "OUTGOING"
    BOTH = "BOTH"


class FindSyntax(str, Enum):
    """Whether a relationship endpoint must exist (MATCH) or may be created (MERGE)."""

    MATCH = "MATCH"
    MERGE = "MERGE"


@dataclass(frozen=True)
class AdditionalLabel:
    """A metadata field whose values become extra labels on the document node."""

    source_field: str
    keep: bool = False


@dataclass(frozen=True)
class RelationshipRule:
    """
    Connects a document to the nodes whose `target_property_key` equals the
    document's value(s) at `source_property_key`.
    """

    type: str = DEFAULT_RELATIONSHIP_TYPE
    direction: Direction = Direction.NONE
    source_property_key: str = DEFAULT_SOURCE_PROPERTY_KEY
    target_property_key: str = DEFAULT_TARGET_PROPERTY_KEY
    find_syntax: FindSyntax = FindSyntax.MERGE

    @property
    def enabled(self) -> bool:
        return (
            self.direction is not Direction.NONE
            and bool(self.type.strip())
            and bool(self.source_property_key.strip())
            and bool(self.target_property_key.strip())
        )


@dataclass(frozen=True)
class SchemaMetadata:
    """
    Constraints and indexes the store creates before committing.

    Attributes:
        node_keys: Mapping of node label -> property used as unique identifier.
        node_indexes: Mapping of node label -> properties looked up by relationships.
    """

    node_keys: Mapping[str, str]
    node_indexes: Mapping[str, Sequence[str]]


def build_schema(
    *,
    topology_type: TopologyType,
    primary_label: str,
    id_field: str,
    relationships: Iterable[RelationshipRule] = (),
) -> SchemaMetadata:
    """Derive the constraints and lookup indexes needed by a committer configuration."""

    lookup_label = NODE_METADATA if topology_type is TopologyType.SPLITTED else primary_label
    lookup_keys: List[str] = []
    for rule in relationships:
        if rule.enabled and rule.target_property_key not in lookup_keys:
            lookup_keys.append(rule.target_property_key)

    return SchemaMetadata(
        node_keys={primary_label: id_field},
        node_indexes={lookup_label: tuple(lookup_keys)} if lookup_keys else {},
    )


def field_values(value: Optional[PropertyValue]) -> List[str]:
    """Return the non-blank values of a single or multi-valued metadata field."""

    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [item for item in value if item is not None and str(item).strip()]


def format_node_properties(payload: Mapping[str, Optional[PropertyValue]], joiner: str) -> Dict[str, str]:
    """
    Normalize node property payloads before upsert.

    Multi-valued fields are joined with `joiner`. Blank and missing values are
    dropped so that nodes never carry empty noise properties.
    """

    normalized: Dict[str, str] = {}
    for key, value in payload.items():
        values = field_values(value)
        if not values:
            continue
        normalized[key] = joiner.join(str(item) for item in values)
    return normalized
