"""
FastAPI application accepting commit batches over HTTP.
"""

from __future__ import annotations

import threading

from fastapi import Depends, FastAPI, HTTPException

from graphcommitter.api.models import CommitRequest, CommitResponse, MissingEndpointRef
from graphcommitter.config import load_committer_settings, load_settings
from graphcommitter.exceptions import (
    ConfigurationError,
    ContentReadError,
    InvalidOperationError,
    RetriesExhaustedError,
)
from graphcommitter.logging import setup_logging
from graphcommitter.pipeline import GraphCommitter
from graphcommitter.pipeline.reader import operation_from_record


def create_app(committer: GraphCommitter | None = None, log_level: str = "INFO") -> FastAPI:
    setup_logging(log_level)
    app = FastAPI(title="graph-committer", version="0.1.0")
    # Batches share one committer and must not interleave.
    commit_lock = threading.Lock()

    @app.on_event("startup")
    def startup() -> None:
        instance = committer or GraphCommitter(
            settings=load_committer_settings(),
            neo4j_settings=load_settings(),
        )
        app.state.committer = instance.open()

    @app.on_event("shutdown")
    def shutdown() -> None:
        instance = getattr(app.state, "committer", None)
        if instance:
            instance.close()

    def get_committer() -> GraphCommitter:
        instance = getattr(app.state, "committer", None)
        if instance is None:
            raise RuntimeError("Committer not initialized")
        return instance

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/commit", response_model=CommitResponse)
    def commit(
        body: CommitRequest,
        instance: GraphCommitter = Depends(get_committer),
    ) -> CommitResponse:
        batch = [operation_from_record(record.model_dump()) for record in body.operations]
        try:
            with commit_lock:
                result = instance.commit(batch)
        except (ConfigurationError, InvalidOperationError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ContentReadError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except RetriesExhaustedError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

        return CommitResponse(
            added=result.added,
            deleted=result.deleted,
            relationships=result.relationships,
            missingEndpoints=[
                MissingEndpointRef(
                    documentId=missing.document_id,
                    relationshipType=missing.relationship_type,
                    key=missing.key,
                    value=missing.value,
                )
                for missing in result.missing_endpoints
            ],
        )

    return app
