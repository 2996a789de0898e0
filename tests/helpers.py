"""Builders shared by the test modules."""

import io

from graphcommitter.documents.mapper import PropertyMapper
from graphcommitter.documents.models import AddOperation, GraphEntry
from graphcommitter.graph.topologies import NodeTopology


def add_operation(reference, metadata=None, content=None) -> AddOperation:
    return AddOperation(
        reference=reference,
        metadata=dict(metadata or {}),
        content=io.BytesIO(content.encode("utf-8")) if content is not None else None,
    )


def entry_for(topology: NodeTopology, reference, metadata=None, content=None) -> GraphEntry:
    return PropertyMapper(topology.settings).build_entry(add_operation(reference, metadata, content))


def store_document(topology: NodeTopology, reference, metadata=None, content=None):
    return topology.store_entry(entry_for(topology, reference, metadata, content))
