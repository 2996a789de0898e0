"""
Conversion of serialized operation records into commit operations.

A record is a JSON object:

    {"kind": "add", "reference": "...", "metadata": {"k": "v" | ["v1", "v2"]}, "content": "..."}
    {"kind": "delete", "reference": "..."}

Records with any other kind still become operations so that the executor,
not the reader, decides to abort the batch they belong to.
"""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping

from graphcommitter.documents.models import AddOperation, CommitOperation, DeleteOperation, OperationKind
from graphcommitter.exceptions import InvalidOperationError


def operation_from_record(record: Mapping[str, Any]) -> CommitOperation:
    kind = str(record.get("kind") or "").strip().lower()
    reference = str(record.get("reference") or "")

    if kind == OperationKind.ADD.value:
        content = record.get("content")
        return AddOperation(
            reference=reference,
            metadata=_normalize_metadata(record.get("metadata") or {}),
            content=io.BytesIO(content.encode("utf-8")) if isinstance(content, str) else None,
        )
    if kind == OperationKind.DELETE.value:
        return DeleteOperation(reference=reference)
    return CommitOperation(reference=reference)


def read_operations(path: Path) -> Iterator[CommitOperation]:
    """Yield the operations of a JSON Lines file, in file order."""

    with path.open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as exc:
                raise InvalidOperationError(f"{path}:{line_number}: invalid JSON ({exc.msg})") from exc
            if not isinstance(record, dict):
                raise InvalidOperationError(f"{path}:{line_number}: expected a JSON object")
            yield operation_from_record(record)


def _normalize_metadata(metadata: Mapping[str, Any]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            normalized[str(key)] = [str(item) for item in value if item is not None]
        else:
            normalized[str(key)] = str(value)
    return normalized
