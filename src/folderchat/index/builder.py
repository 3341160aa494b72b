"""Document indexing with best-effort enrichment."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from llama_index.core.ingestion import IngestionPipeline

from folderchat.errors import IndexBuildError
from folderchat.index.engine import VectorIndex, VectorIndexEngine
from folderchat.index.enrichment import to_chunks, to_text_nodes
from folderchat.ingestion.metadata import normalize_metadata
from folderchat.models import Document

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


def _ignore(message: str) -> None:
    return None


class IndexBuilder:
    """Turn extracted documents into a :class:`VectorIndex`.

    The enrichment pipeline is optional and never required for success: any
    exception raised while enriching falls back to indexing the
    metadata-normalised documents directly.
    """

    def __init__(
        self,
        engine: VectorIndexEngine,
        pipeline: Optional[IngestionPipeline] = None,
    ) -> None:
        self.engine = engine
        self.pipeline = pipeline

    def prepare(self, documents: Sequence[Document]) -> List[Document]:
        return [normalize_metadata(document) for document in documents]

    def build(
        self,
        documents: Sequence[Document],
        progress: Optional[ProgressCallback] = None,
    ) -> VectorIndex:
        notify = progress or _ignore
        prepared = self.prepare(documents)
        notify("🔍 Preparing documents with enhanced metadata...")

        if self.pipeline is not None:
            try:
                notify("📋 Setting up metadata extraction transformations...")
                notify(f"🔄 Processing {len(prepared)} documents with metadata extraction...")
                split = self.engine.splitter.split_documents(prepared)
                nodes = self.pipeline.run(nodes=to_text_nodes(split), show_progress=False)
                chunks = to_chunks(nodes)
                notify(f"✅ Created {len(chunks)} enhanced nodes")
                index = self.engine.from_chunks(chunks, prepared)
                notify("✅ Vector index created successfully with metadata extraction")
                return index
            except Exception as exc:
                LOGGER.warning("Enhanced pipeline failed, falling back to basic indexing: %s", exc)
                notify("⚠️ Falling back to basic indexing...")

        index = self.build_basic(prepared)
        notify("✅ Fallback index created successfully" if self.pipeline else "✅ Vector index created")
        return index

    def build_basic(self, documents: Sequence[Document]) -> VectorIndex:
        """Index documents without enrichment."""
        prepared = self.prepare(documents)
        try:
            return self.engine.from_documents(prepared)
        except Exception as exc:
            LOGGER.error("Basic indexing failed: %s", exc)
            raise IndexBuildError(f"Could not build index: {exc}") from exc
