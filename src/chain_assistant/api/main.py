"""FastAPI entrypoint for submit/balance/state/trace endpoints."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from chain_assistant.agent.orchestrator import Orchestrator
from chain_assistant.config import AssistantConfig
from chain_assistant.logging_config import setup_logging
from chain_assistant.obs.tracing import TraceStore
from chain_assistant.types import SessionState


class SubmitRequest(BaseModel):
    query: str = Field(min_length=1)


def _state_payload(state: SessionState) -> dict[str, Any]:
    return {
        "status": state.status.value,
        "display": state.display,
        "activity": state.activity,
    }


def create_app(
    orchestrator: Orchestrator | None = None,
    *,
    trace_store: TraceStore | None = None,
) -> FastAPI:
    """Build the API around an orchestrator (one is created from env if absent)."""

    trace_records = trace_store or (
        orchestrator.trace_store if orchestrator and orchestrator.trace_store else TraceStore()
    )
    flow = orchestrator or Orchestrator.from_config(
        AssistantConfig.from_env(), trace_store=trace_records
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        flow.close()

    app = FastAPI(title="Chain Assistant", version="0.1.0", lifespan=lifespan)

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "assistant_enabled": flow.config.has_credential,
            "model": flow.config.model,
            "state": _state_payload(flow.state),
        }

    @app.get("/state")
    def state() -> dict[str, Any]:
        return _state_payload(flow.state)

    @app.post("/submit")
    def submit(request: SubmitRequest) -> dict[str, Any]:
        result = flow.submit(request.query)
        if result is None:
            raise HTTPException(status_code=409, detail="A request is already in flight.")
        return {
            **_state_payload(flow.state),
            "kind": result.kind.value,
            "sources": [asdict(source) for source in result.sources],
        }

    @app.post("/balance")
    def balance(request: SubmitRequest) -> dict[str, Any]:
        if flow.check_balance(request.query) is None:
            raise HTTPException(status_code=409, detail="A request is already in flight.")
        return _state_payload(flow.state)

    @app.get("/traces")
    def traces(limit: int = 20) -> dict[str, Any]:
        records = [asdict(record) for record in trace_records.list_recent(limit=limit)]
        return {"items": records}

    @app.get("/traces/{trace_id}")
    def trace_detail(trace_id: str) -> dict[str, Any]:
        try:
            record = trace_records.get(trace_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return asdict(record)

    @app.get("/metrics")
    def metrics() -> dict[str, Any]:
        return trace_records.summary()

    return app


setup_logging(os.getenv("LOG_LEVEL", "INFO"))
app = create_app()
