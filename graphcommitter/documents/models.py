"""
Document operation and graph entry models.

Operations arrive from the crawling pipeline; a GraphEntry is built fresh for
each add operation, handed to the active node topology and discarded once its
mutations are issued.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Dict, Mapping, Optional, Tuple

from graphcommitter.graph.schema import PropertyValue


class OperationKind(str, Enum):
    """Operation kinds the committer knows how to apply."""

    ADD = "add"
    DELETE = "delete"


@dataclass
class CommitOperation:
    """
    Base of every operation in a batch.

    Only AddOperation and DeleteOperation are applied; any other
    CommitOperation aborts its batch.
    """

    reference: str


@dataclass
class AddOperation(CommitOperation):
    """Create or update a document. `content` is read once, when the entry is built."""

    metadata: Mapping[str, PropertyValue] = field(default_factory=dict)
    content: Optional[BinaryIO] = None


@dataclass
class DeleteOperation(CommitOperation):
    """Remove a document and everything its topology attached to it."""


@dataclass(slots=True)
class GraphEntry:
    """
    Normalized view of one document, ready for a node topology.

    `properties` still holds multi-valued fields as lists; the topology joins
    them when building node properties, while the relationship resolver uses
    the individual values.
    """

    id: str
    properties: Dict[str, PropertyValue] = field(default_factory=dict)
    labels: Tuple[str, ...] = ()
    content_field: Optional[str] = None
    content: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValueError("GraphEntry id must not be blank")
