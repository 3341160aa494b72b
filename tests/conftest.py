"""Shared fakes: deterministic embeddings, canned generation, in-memory sources."""

from __future__ import annotations

import zlib
from typing import Dict, List, Sequence

import numpy as np
import pytest

from folderchat.errors import SourceError
from folderchat.index.registry import default_registry
from folderchat.models import FileDescriptor, RetrievedNode
from folderchat.progress import default_bus


class FakeEmbedder:
    """Hashed bag-of-words embeddings, L2-normalised."""

    dimension = 64

    def embed(self, texts: Sequence[str]) -> np.ndarray:
        rows = []
        for text in texts:
            vector = np.zeros(self.dimension, dtype="float32")
            for token in text.lower().split():
                vector[zlib.crc32(token.encode("utf-8")) % self.dimension] += 1.0
            norm = np.linalg.norm(vector)
            rows.append(vector / norm if norm else vector)
        if not rows:
            return np.zeros((0, self.dimension), dtype="float32")
        return np.vstack(rows).astype("float32")

    def embed_query(self, text: str) -> np.ndarray:
        return self.embed([text])[0]


class FakeGenerator:
    def __init__(self, reply: str = "generated answer", fail: Exception | None = None) -> None:
        self.reply = reply
        self.fail = fail
        self.prompts: List[str] = []

    def complete(self, prompt: str, *, system: str | None = None) -> str:
        self.prompts.append(prompt)
        if self.fail is not None:
            raise self.fail
        return self.reply


class StaticIndex:
    """Index double returning preset nodes, recording the queries it receives."""

    def __init__(self, nodes: Sequence[RetrievedNode], response: str = "the answer") -> None:
        self.nodes = list(nodes)
        self.response = response
        self.retrieve_queries: List[str] = []
        self.response_queries: List[str] = []
        self.documents = ()

    def retrieve(self, query: str, *, top_k: int | None = None) -> List[RetrievedNode]:
        self.retrieve_queries.append(query)
        return self.nodes[: top_k or len(self.nodes)]

    def query(self, query: str, *, top_k: int | None = None) -> str:
        self.response_queries.append(query)
        return self.response


class FakeConnector:
    """In-memory source connector.

    ``contents`` maps file id to either bytes (download) or str (export).
    """

    def __init__(
        self,
        files: Sequence[FileDescriptor],
        contents: Dict[str, bytes | str] | None = None,
        *,
        folder_name: str = "Test Folder",
    ) -> None:
        self.files = list(files)
        self.contents = contents or {}
        self.folder_name = folder_name
        self.exports: List[tuple[str, str]] = []
        self.downloads: List[str] = []

    def get_folder_name(self, folder_id: str) -> str:
        return self.folder_name

    def list_files(self, folder_id: str, *, page_size: int = 100) -> List[FileDescriptor]:
        return self.files[:page_size]

    def export(self, file_id: str, mime_type: str) -> str:
        self.exports.append((file_id, mime_type))
        content = self.contents.get(file_id)
        if content is None:
            raise SourceError(f"File not found: {file_id}", status_code=404)
        return content if isinstance(content, str) else content.decode("utf-8")

    def download(self, file_id: str) -> bytes:
        self.downloads.append(file_id)
        content = self.contents.get(file_id)
        if content is None:
            raise SourceError(f"File not found: {file_id}", status_code=404)
        return content if isinstance(content, bytes) else content.encode("utf-8")


def make_node(
    node_id: str, score: float, file_name: str | None = None, text: str = "chunk text"
) -> RetrievedNode:
    metadata = {"fileName": file_name} if file_name else {}
    return RetrievedNode(node_id=node_id, text=text, metadata=metadata, relevance_score=score)


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture(autouse=True)
def clean_process_state():
    """Keep the process-wide registry and progress bus isolated between tests."""
    for folder_id in default_registry.list_ids():
        default_registry.delete(folder_id)
    yield
    for folder_id in default_registry.list_ids():
        default_registry.delete(folder_id)
    default_bus._logs.clear()
    default_bus._seq.clear()
