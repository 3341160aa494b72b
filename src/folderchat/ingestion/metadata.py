"""Filename alias handling for document metadata.

Downstream consumers look up different key names for a document's file name, so
the same value is written under every alias once, at the ingestion boundary.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

from folderchat.models import Document, FileDescriptor

CANONICAL_NAME_KEY = "fileName"

# Lookup order used when resolving a display name.
FILENAME_ALIASES = (
    CANONICAL_NAME_KEY,
    "file_name",
    "filename",
    "name",
    "source",
    "title",
    "originalFileName",
)


def fallback_name(doc_id: str) -> str:
    return f"Document {(doc_id or 'Unknown')[:8]}"


def resolve_file_name(metadata: Mapping[str, Any] | None) -> str | None:
    """Return the first non-empty alias value, or None."""
    if not metadata:
        return None
    for key in FILENAME_ALIASES:
        value = metadata.get(key)
        if value:
            return str(value)
    return None


def new_document_id() -> str:
    return f"doc_{uuid.uuid4().hex}"


def file_metadata(file: FileDescriptor) -> Dict[str, Any]:
    """Metadata for a document extracted from ``file``, with every alias set."""
    name = file.name or "Unknown"
    metadata: Dict[str, Any] = {
        "fileId": file.id or "unknown",
        "mimeType": file.mime_type or "unknown",
        "fileSize": str(file.size or "0"),
    }
    metadata.update({key: name for key in FILENAME_ALIASES})
    return metadata


def normalize_metadata(document: Document) -> Document:
    """Return a copy of ``document`` with a stable id and the full alias set.

    If any alias is known, all aliases get that value; otherwise all get the
    generated ``"Document <id[:8]>"`` label. Other metadata is preserved.
    """
    doc_id = document.id or new_document_id()
    metadata = dict(document.metadata)
    name = resolve_file_name(metadata) or fallback_name(doc_id)

    metadata.setdefault("fileId", "unknown")
    metadata.setdefault("mimeType", "unknown")
    metadata.setdefault("fileSize", "0")
    metadata.setdefault("documentType", "processed_file")
    metadata.setdefault("processedAt", datetime.now(timezone.utc).isoformat())
    for key in FILENAME_ALIASES:
        metadata[key] = name

    return Document(id=doc_id, text=document.text, metadata=metadata)
