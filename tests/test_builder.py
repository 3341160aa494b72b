"""Tests for IndexBuilder and its enrichment fallback."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from llama_index.core.llms import MockLLM

from conftest import FakeEmbedder, FakeGenerator

from folderchat.errors import IndexBuildError
from folderchat.index.builder import IndexBuilder
from folderchat.index.engine import VectorIndexEngine
from folderchat.index.enrichment import QUESTIONS_KEY, TITLE_KEY, default_pipeline
from folderchat.models import Document


def _documents() -> list[Document]:
    return [
        Document(id="doc_a", text="revenue grew in the third quarter", metadata={"source": "q3.pdf"}),
        Document(id="doc_b", text="hiring plan for next year", metadata={}),
    ]


class TestIndexBuilder:
    """Test IndexBuilder."""

    def test_enriched_build(self, embedder: FakeEmbedder, generator: FakeGenerator) -> None:
        builder = IndexBuilder(
            VectorIndexEngine(embedder, generator), default_pipeline(MockLLM(max_tokens=1))
        )
        messages: list[str] = []

        index = builder.build(_documents(), messages.append)

        assert len(index) == 2
        assert all(chunk.metadata[TITLE_KEY] for chunk in index.chunks)
        assert all(chunk.metadata[QUESTIONS_KEY] for chunk in index.chunks)
        assert [chunk.id for chunk in index.chunks] == ["doc_a:0", "doc_b:0"]
        assert index.chunks[0].metadata["fileName"] == "q3.pdf"
        assert "✅ Vector index created successfully with metadata extraction" in messages
        assert "⚠️ Falling back to basic indexing..." not in messages

    def test_metadata_normalized(self, embedder: FakeEmbedder, generator: FakeGenerator) -> None:
        index = IndexBuilder(VectorIndexEngine(embedder, generator)).build(_documents())

        names = [doc.metadata["fileName"] for doc in index.documents]
        assert names == ["q3.pdf", "Document doc_b"]
        assert index.chunks[0].metadata["title"] == "q3.pdf"

    def test_falls_back_when_enrichment_fails(
        self, embedder: FakeEmbedder, generator: FakeGenerator
    ) -> None:
        """An enrichment failure still produces an index."""
        pipeline = MagicMock()
        pipeline.run.side_effect = RuntimeError("rate limited")
        builder = IndexBuilder(VectorIndexEngine(embedder, generator), pipeline)
        messages: list[str] = []

        index = builder.build(_documents(), messages.append)

        assert len(index) == 2
        assert "⚠️ Falling back to basic indexing..." in messages
        assert messages[-1] == "✅ Fallback index created successfully"
        assert all(TITLE_KEY not in chunk.metadata for chunk in index.chunks)
        assert index.chunks[0].metadata["fileName"] == "q3.pdf"

    def test_without_pipeline(self, embedder: FakeEmbedder, generator: FakeGenerator) -> None:
        messages: list[str] = []

        IndexBuilder(VectorIndexEngine(embedder, generator)).build(_documents(), messages.append)

        assert messages[-1] == "✅ Vector index created"

    def test_basic_failure_raises(self, generator: FakeGenerator) -> None:
        broken = MagicMock()
        broken.embed.side_effect = RuntimeError("model missing")
        builder = IndexBuilder(VectorIndexEngine(broken, generator))

        with pytest.raises(IndexBuildError):
            builder.build(_documents())
