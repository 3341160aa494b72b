"""Core FolderChat data models."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(slots=True)
class FileDescriptor:
    """A file as listed by a source connector."""

    id: str
    name: str
    mime_type: str
    size: int = 0


@dataclass(slots=True)
class Document:
    """Normalized unit of extracted text plus metadata."""

    id: str
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "metadata": dict(self.metadata)}

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Document":
        return cls(
            id=str(payload.get("id") or ""),
            text=str(payload.get("text") or ""),
            metadata=dict(payload.get("metadata") or {}),
        )


@dataclass(slots=True)
class Chunk:
    """Sub-document unit produced by splitting a document for indexing."""

    id: str
    text: str
    ref_doc_id: str
    index: int
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class RetrievedNode:
    node_id: str
    text: str
    metadata: Dict[str, Any]
    relevance_score: float


@dataclass(slots=True)
class Citation:
    """Numbered reference to a source file backing an answer."""

    number: int
    file_name: str
    relevance_score: float

    @property
    def label(self) -> str:
        return f"[{self.number}] {self.file_name} (relevance: {self.relevance_score * 100:.1f}%)"


@dataclass(slots=True)
class ChatTurn:
    role: str
    content: str

    def render(self) -> str:
        speaker = "User" if self.role == "user" else "Assistant"
        return f"{speaker}: {self.content}"


@dataclass(slots=True)
class ChatAnswer:
    response: str
    citations: List[Citation] = field(default_factory=list)


@dataclass(slots=True)
class ProgressEvent:
    message: str
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))
    seq: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "timestamp": self.timestamp}


@dataclass(slots=True)
class JobResult:
    folder_name: str
    documents_processed: int
    total_files: int
    supported_file_types: List[Dict[str, str]] = field(default_factory=list)
    success: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "folder_name": self.folder_name,
            "documents_processed": self.documents_processed,
            "total_files": self.total_files,
            "supported_file_types": list(self.supported_file_types),
        }
