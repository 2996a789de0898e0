"""
Classifies incoming commit operations.
"""

from __future__ import annotations

from graphcommitter.documents.models import AddOperation, CommitOperation, DeleteOperation, OperationKind
from graphcommitter.exceptions import InvalidOperationError, UnsupportedOperationError


def classify(operation: CommitOperation) -> OperationKind:
    """Return the kind of `operation`, failing fast on anything but add or delete."""

    if isinstance(operation, AddOperation):
        return OperationKind.ADD
    if isinstance(operation, DeleteOperation):
        return OperationKind.DELETE
    raise UnsupportedOperationError(operation)


def delete_reference(operation: DeleteOperation) -> str:
    reference = (operation.reference or "").strip()
    if not reference:
        raise InvalidOperationError("Delete operation has a blank reference")
    return reference
