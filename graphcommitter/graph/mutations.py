"""
Declarative graph mutations issued by the node topologies.

Each record describes one idempotent upsert-by-key or match-by-key action.
Records carry no Cypher; `graphcommitter.graph.cypher` renders them for
Neo4j, which keeps the topologies testable against any store that can apply
the same records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple, Union

from .schema import Direction


@dataclass(frozen=True)
class NodeKey:
    """
    Locates one node by label and unique key property.

    When `hop` is set, the located node is the end of the `(rel_type, label)`
    link leaving the keyed node, e.g. the metadata node of a split document.
    """

    label: str
    key: str
    value: str
    hop: Optional[Tuple[str, str]] = None


@dataclass(frozen=True)
class UpsertNode:
    """Merge a node by key, replace its properties and add labels."""

    label: str
    key: str
    value: str
    properties: Mapping[str, str] = field(default_factory=dict)
    labels: Tuple[str, ...] = ()


@dataclass(frozen=True)
class UpsertLinkedNode:
    """Merge the single node linked from `owner` by `rel_type`, replacing its properties."""

    owner: NodeKey
    rel_type: str
    label: str
    properties: Mapping[str, str] = field(default_factory=dict)
    labels: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ClaimPlaceholder:
    """
    Fold the minimal endpoint nodes created earlier by MERGE relationships into `owner`.

    Every unowned `label` node whose `key` equals `value` hands its `rel_types`
    relationships over to `owner` and is deleted. Without `rel_type`, a node is
    unowned when it lacks the owner's key property; with `rel_type`, when no
    `rel_type` link points at it.
    """

    owner: NodeKey
    label: str
    key: str
    value: str
    rel_type: Optional[str] = None
    rel_types: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DeleteNode:
    """Detach-delete a keyed node together with the nodes it links to by `cascade`."""

    node: NodeKey
    cascade: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ConnectNodes:
    """
    Merge a `rel_type` relationship between `anchor` and every `label` node
    whose `key` property equals `value`.

    When `create_missing` is set a minimal endpoint carrying only `key` is
    merged first; otherwise a missing endpoint leaves the graph unchanged.
    """

    anchor: NodeKey
    rel_type: str
    direction: Direction
    label: str
    key: str
    value: str
    create_missing: bool


Mutation = Union[UpsertNode, UpsertLinkedNode, ClaimPlaceholder, DeleteNode, ConnectNodes]
