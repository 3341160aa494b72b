"""FastAPI application exposing the FolderChat job-control surface."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import AliasChoices, BaseModel, Field

from folderchat.errors import IndexUnavailable
from folderchat.index.registry import default_registry
from folderchat.ingestion.connectors import DriveConnector, SourceConnector
from folderchat.models import Document
from folderchat.progress import default_bus
from folderchat.services import Services, build_services
from folderchat.warmup import WARMUP_MESSAGE, WarmupOutcome, handle_warmup
from folderchat.web.errors import (
    classify_chat_error,
    classify_job_error,
    index_not_found_payload,
)

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="FolderChat", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_services: Optional[Services] = None
_services_lock = threading.Lock()


class ProcessPayload(BaseModel):
    folder_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("folder_id", "folderId")
    )


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatPayload(BaseModel):
    message: Optional[str] = None
    folder_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("folder_id", "folderId")
    )
    history: List[ChatMessage] = Field(default_factory=list)
    documents: Optional[List[Dict[str, Any]]] = None


def get_services() -> Services:
    """Create the process-wide services on first use."""
    global _services
    with _services_lock:
        if _services is None:
            _services = build_services(registry=default_registry, bus=default_bus)
        return _services


def _make_connector(access_token: str) -> SourceConnector:
    return DriveConnector(access_token)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _error(status_code: int, body: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    LOGGER.warning("Rejected invalid request to %s: %s", request.url.path, exc.errors())
    return _error(400, {"error": "Invalid request"})


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.post("/api/folders/process")
async def process_folder(
    payload: ProcessPayload,
    authorization: Optional[str] = Header(default=None),
) -> Any:
    token = _bearer_token(authorization)
    if token is None:
        return _error(401, {"error": "Unauthorized"})

    folder_id = (payload.folder_id or "").strip()
    if not folder_id:
        return _error(400, {"error": "Folder ID is required"})

    LOGGER.info("Processing folder %s", folder_id)
    try:
        services = get_services()
        processor = services.processor(_make_connector(token))
        result = await asyncio.to_thread(
            processor.process, folder_id, warmup_headers={"Authorization": authorization}
        )
    except Exception as exc:
        status_code, body = classify_job_error(exc)
        LOGGER.exception("Processing folder %s failed: %s", folder_id, exc)
        return _error(status_code, body)

    return result.to_dict()


@app.get("/api/folders/progress")
async def folder_progress(
    request: Request,
    folder_id: Optional[str] = Query(default=None),
    folder_id_alias: Optional[str] = Query(default=None, alias="folderId"),
) -> Any:
    job_id = (folder_id or folder_id_alias or "").strip()
    if not job_id:
        return _error(400, {"error": "Missing folderId"})

    async def stream() -> AsyncIterator[str]:
        async for event in default_bus.subscribe(job_id, request.is_disconnected):
            yield f"data: {json.dumps(event.to_dict(), ensure_ascii=False)}\n\n"

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


async def _warmup(services: Services, folder_id: str, documents: List[Document]) -> Any:
    result = await asyncio.to_thread(
        handle_warmup, services.registry, services.builder, folder_id, documents
    )
    if result.outcome is WarmupOutcome.READY:
        return {"response": "Function warmed successfully", "warmed": True, "rebuilt": result.rebuilt}
    return _error(404, {"response": "Function warmed, index pending", "warmed": True})


@app.post("/api/chat")
async def chat(
    payload: ChatPayload,
    authorization: Optional[str] = Header(default=None),
) -> Any:
    if _bearer_token(authorization) is None:
        return _error(401, {"error": "Unauthorized"})

    message = (payload.message or "").strip()
    folder_id = (payload.folder_id or "").strip()
    documents = [Document.from_payload(item) for item in payload.documents or []]

    try:
        if message == WARMUP_MESSAGE and folder_id:
            return await _warmup(get_services(), folder_id, documents)

        if not message or not folder_id:
            return _error(400, {"error": "Message and folderId are required"})

        if folder_id not in default_registry and not documents:
            raise IndexUnavailable(folder_id)

        services = get_services()
        if documents and services.registry.get(folder_id) is None:
            await asyncio.to_thread(
                handle_warmup, services.registry, services.builder, folder_id, documents
            )

        history = [turn.model_dump() for turn in payload.history]
        answer = await asyncio.to_thread(services.citations.answer, folder_id, message, history)
    except Exception as exc:
        status_code, body = classify_chat_error(exc)
        if status_code == 404:
            LOGGER.warning("No index for folder %s; reprocessing required", folder_id)
        else:
            LOGGER.exception("Chat request failed: %s", exc)
        return _error(status_code, body)

    return {
        "response": answer.response,
        "citations": [citation.label for citation in answer.citations],
        "sources": [
            {
                "number": citation.number,
                "file_name": citation.file_name,
                "relevance_score": citation.relevance_score,
            }
            for citation in answer.citations
        ],
    }


@app.get("/api/indices")
async def list_indices() -> Dict[str, List[str]]:
    return {"folder_ids": default_registry.list_ids()}


@app.delete("/api/indices/{folder_id}")
async def delete_index(folder_id: str) -> Any:
    if not default_registry.delete(folder_id):
        return _error(404, index_not_found_payload())
    return {"status": "ok", "deleted": folder_id}