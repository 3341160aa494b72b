"""In-memory vector index: embeddings, similarity search and answer generation."""

from __future__ import annotations

import logging
from typing import List, Protocol, Sequence, Tuple

import numpy as np

from folderchat.index.splitter import SentenceSplitter
from folderchat.models import Chunk, Document, RetrievedNode

LOGGER = logging.getLogger(__name__)

ANSWER_SYSTEM_PROMPT = (
    "You answer questions about a user's documents. Use only the context "
    "provided. If the context does not contain the answer, say so plainly."
)

ANSWER_TEMPLATE = """Context information is below.
---------------------
{context}
---------------------
Given the context information and not prior knowledge, answer the query.
Query: {query}
Answer:"""


class Embedder(Protocol):
    dimension: int

    def embed(self, texts: Sequence[str]) -> np.ndarray: ...

    def embed_query(self, text: str) -> np.ndarray: ...


class Generator(Protocol):
    def complete(self, prompt: str, *, system: str | None = None) -> str: ...


def embedding_text(chunk: Chunk) -> str:
    """Text that gets embedded: the chunk plus its derived title and questions."""
    parts = []
    title = chunk.metadata.get("document_title")
    if title:
        parts.append(f"Title: {title}")
    questions = chunk.metadata.get("questions_this_excerpt_can_answer")
    if questions:
        parts.append(f"Questions: {questions}")
    parts.append(chunk.text)
    return "\n".join(parts)


class VectorIndex:
    """Searchable representation of one folder's content.

    Never mutated after construction; rebuilding a folder produces a new index.
    """

    def __init__(
        self,
        chunks: Sequence[Chunk],
        embeddings: np.ndarray,
        documents: Sequence[Document],
        *,
        embedder: Embedder,
        generator: Generator,
        top_k: int = 5,
    ) -> None:
        if embeddings.shape[0] != len(chunks):
            raise ValueError("Embeddings and chunks length mismatch")
        self._chunks: Tuple[Chunk, ...] = tuple(chunks)
        self._embeddings = np.asarray(embeddings, dtype="float32")
        self._embeddings.setflags(write=False)
        self._documents: Tuple[Document, ...] = tuple(documents)
        self._embedder = embedder
        self._generator = generator
        self.top_k = top_k

    @property
    def documents(self) -> Tuple[Document, ...]:
        return self._documents

    @property
    def chunks(self) -> Tuple[Chunk, ...]:
        return self._chunks

    def __len__(self) -> int:
        return len(self._chunks)

    def retrieve(self, query: str, *, top_k: int | None = None) -> List[RetrievedNode]:
        """Return the most similar chunks, best first, scores clipped to [0, 1]."""
        k = top_k or self.top_k
        if not self._chunks:
            return []

        vector = np.asarray(self._embedder.embed_query(query), dtype="float32")
        scores = self._embeddings @ vector

        if k < len(scores):
            top_indices = np.argpartition(scores, -k)[-k:]
            top_indices = top_indices[np.argsort(scores[top_indices])[::-1]]
        else:
            top_indices = np.argsort(scores)[::-1]

        results: List[RetrievedNode] = []
        for idx in top_indices:
            chunk = self._chunks[idx]
            results.append(
                RetrievedNode(
                    node_id=chunk.id,
                    text=chunk.text,
                    metadata=dict(chunk.metadata),
                    relevance_score=float(min(1.0, max(0.0, scores[idx]))),
                )
            )
        return results

    def query(self, query: str, *, top_k: int | None = None) -> str:
        """Generate an answer grounded in the chunks most similar to ``query``."""
        nodes = self.retrieve(query, top_k=top_k)
        context = "\n\n".join(
            f"[{node.metadata.get('fileName', node.node_id)}]\n{node.text}" for node in nodes
        )
        prompt = ANSWER_TEMPLATE.format(context=context, query=query)
        return self._generator.complete(prompt, system=ANSWER_SYSTEM_PROMPT)


class VectorIndexEngine:
    """Builds :class:`VectorIndex` handles from documents or prepared chunks."""

    def __init__(
        self,
        embedder: Embedder,
        generator: Generator,
        *,
        chunk_size: int = 512,
        chunk_overlap: int = 50,
        top_k: int = 5,
    ) -> None:
        self.embedder = embedder
        self.generator = generator
        self.splitter = SentenceSplitter(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        self.top_k = top_k

    def from_documents(self, documents: Sequence[Document]) -> VectorIndex:
        """Split documents with the default splitter and index the chunks."""
        return self.from_chunks(self.splitter.split_documents(documents), documents)

    def from_chunks(self, chunks: Sequence[Chunk], documents: Sequence[Document]) -> VectorIndex:
        if chunks:
            embeddings = self.embedder.embed([embedding_text(chunk) for chunk in chunks])
            embeddings = np.asarray(embeddings, dtype="float32").reshape(len(chunks), -1)
        else:
            embeddings = np.zeros((0, self.embedder.dimension), dtype="float32")
        LOGGER.info("Indexed %d chunks from %d documents", len(chunks), len(documents))
        return VectorIndex(
            chunks,
            embeddings,
            documents,
            embedder=self.embedder,
            generator=self.generator,
            top_k=self.top_k,
        )
