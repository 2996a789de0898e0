"""
graph-committer package root.

Commits crawler add/delete operations to a Neo4j graph: the property mapper
normalizes document metadata, a node topology decides the shape of each
document in the graph, and the batch executor applies operations in order
with idempotent, retried upserts.
"""

__all__ = ["config", "documents", "graph", "pipeline"]
