"""
Graph layout, mutation planning and Neo4j integration for graph-committer.
"""

from .schema import (
    NODE_CONTENT,
    NODE_METADATA,
    REL_HAS_CONTENT,
    REL_HAS_METADATA,
    AdditionalLabel,
    Direction,
    FindSyntax,
    RelationshipRule,
    SchemaMetadata,
    TopologyType,
)

__all__ = [
    "AdditionalLabel",
    "Direction",
    "FindSyntax",
    "RelationshipRule",
    "SchemaMetadata",
    "TopologyType",
    "NODE_METADATA",
    "NODE_CONTENT",
    "REL_HAS_METADATA",
    "REL_HAS_CONTENT",
]
