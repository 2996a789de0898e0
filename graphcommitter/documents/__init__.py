"""
Document operations and the property mapper that prepares them for the graph.
"""

from .models import (
    AddOperation,
    CommitOperation,
    DeleteOperation,
    GraphEntry,
    OperationKind,
)

__all__ = [
    "AddOperation",
    "CommitOperation",
    "DeleteOperation",
    "GraphEntry",
    "OperationKind",
]
