"""Best-effort chunk enrichment: derived titles and answerable questions.

Enrichment runs through a llama-index ingestion pipeline. Chunks are produced
by our own splitter and handed over as ``TextNode`` objects, so the only
conversion needed is at this module's two helpers.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from llama_index.core.extractors import QuestionsAnsweredExtractor, TitleExtractor
from llama_index.core.ingestion import IngestionPipeline
from llama_index.core.llms import LLM
from llama_index.core.schema import BaseNode, NodeRelationship, RelatedNodeInfo, TextNode
from llama_index.llms.openai import OpenAI

from folderchat.models import Chunk

LOGGER = logging.getLogger(__name__)

TITLE_KEY = "document_title"
QUESTIONS_KEY = "questions_this_excerpt_can_answer"


def enrichment_llm(model: str, api_key: Optional[str] = None) -> LLM:
    return OpenAI(model=model, api_key=api_key, temperature=0.0)


def to_text_nodes(chunks: Sequence[Chunk]) -> List[TextNode]:
    """Wrap chunks as nodes whose source relationship points at their document."""
    return [
        TextNode(
            id_=chunk.id,
            text=chunk.text,
            metadata=dict(chunk.metadata),
            relationships={NodeRelationship.SOURCE: RelatedNodeInfo(node_id=chunk.ref_doc_id)},
        )
        for chunk in chunks
    ]


def to_chunks(nodes: Sequence[BaseNode]) -> List[Chunk]:
    chunks: List[Chunk] = []
    for position, node in enumerate(nodes):
        metadata = dict(node.metadata)
        chunks.append(
            Chunk(
                id=node.node_id,
                text=node.get_content(),
                ref_doc_id=node.ref_doc_id or "",
                index=int(metadata.get("chunk_index", position)),
                metadata=metadata,
            )
        )
    return chunks


def default_pipeline(llm: LLM, *, questions: int = 3, title_nodes: int = 5) -> IngestionPipeline:
    """Title extraction over the first ``title_nodes`` chunks of each document,
    then ``questions`` answerable questions per chunk."""
    LOGGER.debug("Creating enrichment pipeline (questions=%d)", questions)
    return IngestionPipeline(
        transformations=[
            TitleExtractor(llm=llm, nodes=title_nodes),
            QuestionsAnsweredExtractor(llm=llm, questions=questions),
        ],
        disable_cache=True,
    )
