"""Post-build warm-up request and cross-process index handoff.

The registry lives in process memory, so in a horizontally scaled deployment
the warm-up request (and later queries) may land on an instance that never
built the index. The request therefore optionally carries a snapshot of the
built documents; an instance that misses in its own registry rebuilds from
the snapshot instead of failing.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx

from folderchat.index.builder import IndexBuilder
from folderchat.index.engine import VectorIndex
from folderchat.index.registry import IndexRegistry
from folderchat.models import Document

LOGGER = logging.getLogger(__name__)

WARMUP_MESSAGE = "warmup"
CHAT_PATH = "/api/chat"


class WarmupOutcome(str, enum.Enum):
    READY = "ready"
    PENDING = "pending"
    FAILED = "failed"


@dataclass(slots=True)
class WarmupResult:
    outcome: WarmupOutcome
    rebuilt: bool = False
    detail: str = ""


def handle_warmup(
    registry: IndexRegistry,
    builder: IndexBuilder,
    folder_id: str,
    documents: Optional[Sequence[Document]] = None,
) -> WarmupResult:
    """Answer a warm-up request on the receiving instance.

    A registry hit is ready. A miss with an inline document snapshot rebuilds
    the index locally (basic path, no enrichment) and registers it. A miss
    without a snapshot is pending.
    """
    if registry.get(folder_id) is not None:
        return WarmupResult(WarmupOutcome.READY)
    if documents:
        LOGGER.info("Rebuilding index for %s from %d inline documents", folder_id, len(documents))
        registry.put(folder_id, builder.build_basic(documents))
        return WarmupResult(WarmupOutcome.READY, rebuilt=True)
    return WarmupResult(WarmupOutcome.PENDING, detail="index not yet available")


def snapshot(index: VectorIndex) -> List[Dict[str, Any]]:
    return [document.to_payload() for document in index.documents]


class WarmupCoordinator:
    """Exercise the chat path right after a build. Never raises."""

    def __init__(
        self,
        registry: IndexRegistry,
        builder: IndexBuilder,
        *,
        base_url: Optional[str] = None,
        include_documents: bool = True,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.registry = registry
        self.builder = builder
        self.base_url = base_url.rstrip("/") if base_url else None
        self.include_documents = include_documents
        self.timeout = timeout
        self._client = client

    def warm(
        self,
        folder_id: str,
        index: VectorIndex,
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> WarmupResult:
        try:
            if self.base_url is None:
                documents = list(index.documents) if self.include_documents else None
                result = handle_warmup(self.registry, self.builder, folder_id, documents)
            else:
                result = self._warm_remote(folder_id, index, headers or {})
        except Exception as exc:
            LOGGER.warning("Chat warmup failed (non-critical): %s", exc)
            return WarmupResult(WarmupOutcome.FAILED, detail=str(exc))

        LOGGER.info("Warmup for %s: %s", folder_id, result.outcome.value)
        return result

    def _warm_remote(
        self, folder_id: str, index: VectorIndex, headers: Mapping[str, str]
    ) -> WarmupResult:
        payload: Dict[str, Any] = {"message": WARMUP_MESSAGE, "folder_id": folder_id, "history": []}
        if self.include_documents:
            payload["documents"] = snapshot(index)

        url = f"{self.base_url}{CHAT_PATH}"
        if self._client is not None:
            response = self._client.post(url, json=payload, headers=dict(headers))
        else:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(url, json=payload, headers=dict(headers))

        if response.status_code == 200:
            body = response.json() if response.content else {}
            return WarmupResult(WarmupOutcome.READY, rebuilt=bool(body.get("rebuilt")))
        if response.status_code == 404:
            return WarmupResult(WarmupOutcome.PENDING, detail="index not yet available")
        return WarmupResult(
            WarmupOutcome.FAILED, detail=f"unexpected status {response.status_code}"
        )
