"""
Pydantic models for the graph-committer HTTP intake.
"""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, Field


class OperationRecord(BaseModel):
    kind: str
    reference: str = ""
    metadata: dict[str, Union[str, list[str]]] = Field(default_factory=dict)
    content: str | None = None


class CommitRequest(BaseModel):
    operations: list[OperationRecord]


class MissingEndpointRef(BaseModel):
    documentId: str
    relationshipType: str
    key: str
    value: str


class CommitResponse(BaseModel):
    added: int
    deleted: int
    relationships: int
    missingEndpoints: list[MissingEndpointRef]
