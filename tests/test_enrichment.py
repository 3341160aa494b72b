"""Tests for the llama-index chunk enrichment pipeline."""

from __future__ import annotations

from llama_index.core.extractors import QuestionsAnsweredExtractor, TitleExtractor
from llama_index.core.llms import MockLLM

from folderchat.index.enrichment import (
    QUESTIONS_KEY,
    TITLE_KEY,
    default_pipeline,
    to_chunks,
    to_text_nodes,
)
from folderchat.models import Chunk


def _chunks(doc_id: str, count: int) -> list[Chunk]:
    return [
        Chunk(
            id=f"{doc_id}:{i}",
            text=f"text {i}",
            ref_doc_id=doc_id,
            index=i,
            metadata={"fileName": f"{doc_id}.txt", "chunk_index": i},
        )
        for i in range(count)
    ]


class TestNodeConversion:
    """Test the Chunk <-> TextNode helpers."""

    def test_nodes_keep_source_document(self) -> None:
        nodes = to_text_nodes(_chunks("doc_a", 2))

        assert [node.node_id for node in nodes] == ["doc_a:0", "doc_a:1"]
        assert all(node.ref_doc_id == "doc_a" for node in nodes)
        assert nodes[1].metadata["fileName"] == "doc_a.txt"

    def test_round_trip(self) -> None:
        chunks = _chunks("doc_a", 3)

        assert to_chunks(to_text_nodes(chunks)) == chunks

    def test_metadata_is_copied(self) -> None:
        chunks = _chunks("doc_a", 1)
        nodes = to_text_nodes(chunks)
        nodes[0].metadata[TITLE_KEY] = "changed"

        assert TITLE_KEY not in chunks[0].metadata


class TestDefaultPipeline:
    """Test default_pipeline."""

    def test_transformations(self) -> None:
        pipeline = default_pipeline(MockLLM(max_tokens=1), questions=3)

        title, questions = pipeline.transformations
        assert isinstance(title, TitleExtractor)
        assert title.nodes == 5
        assert isinstance(questions, QuestionsAnsweredExtractor)
        assert questions.questions == 3

    def test_enriches_every_chunk(self) -> None:
        """Each chunk gets a derived title and its answerable questions."""
        pipeline = default_pipeline(MockLLM(max_tokens=1))

        nodes = pipeline.run(nodes=to_text_nodes(_chunks("a", 2) + _chunks("b", 1)))
        chunks = to_chunks(nodes)

        assert len(chunks) == 3
        assert all(chunk.metadata[TITLE_KEY] for chunk in chunks)
        assert all(chunk.metadata[QUESTIONS_KEY] for chunk in chunks)
        assert [chunk.ref_doc_id for chunk in chunks] == ["a", "a", "b"]
        assert chunks[0].metadata["fileName"] == "a.txt"
