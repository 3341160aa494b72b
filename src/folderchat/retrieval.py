"""Question answering over a registered index, with numbered source citations.

Two queries are issued per question. The retrieval query is the bare question
and only feeds citation selection, so conversation drift cannot skew
similarity. The response query prefixes recent history and only feeds answer
generation.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Sequence, Union

from folderchat.errors import IndexUnavailable
from folderchat.index.registry import IndexRegistry
from folderchat.ingestion.metadata import fallback_name, resolve_file_name
from folderchat.models import ChatAnswer, ChatTurn, Citation, RetrievedNode

LOGGER = logging.getLogger(__name__)

DEFAULT_TOP_K = 5
DEFAULT_RELEVANCE_THRESHOLD = 0.70
DEFAULT_HISTORY_TURNS = 4
DEFAULT_MAX_CITATIONS = 5

HistoryItem = Union[ChatTurn, Mapping[str, Any]]


def _as_turn(item: HistoryItem) -> ChatTurn:
    if isinstance(item, ChatTurn):
        return item
    return ChatTurn(role=str(item.get("role", "")), content=str(item.get("content", "")))


def build_response_query(
    question: str,
    history: Iterable[HistoryItem] = (),
    *,
    turns: int = DEFAULT_HISTORY_TURNS,
) -> str:
    """Prefix the last ``turns`` history entries to the question."""
    recent = [_as_turn(item) for item in history][-turns:] if turns > 0 else []
    if not recent:
        return question
    conversation = "\n".join(turn.render() for turn in recent)
    return f"Previous conversation:\n{conversation}\n\nCurrent question: {question}"


def display_name(node: RetrievedNode) -> str:
    return resolve_file_name(node.metadata) or fallback_name(node.node_id)


def select_citations(
    nodes: Sequence[RetrievedNode],
    *,
    threshold: float = DEFAULT_RELEVANCE_THRESHOLD,
    limit: int = DEFAULT_MAX_CITATIONS,
) -> List[Citation]:
    """Filter, deduplicate by file name and number nodes in acceptance order."""
    citations: List[Citation] = []
    seen: set[str] = set()
    for node in nodes:
        if node.relevance_score < threshold:
            LOGGER.debug(
                "Skipping node %s with low relevance: %.1f%%",
                node.node_id,
                node.relevance_score * 100,
            )
            continue
        name = display_name(node)
        if name in seen:
            LOGGER.debug("Skipping duplicate source: %s", name)
            continue
        seen.add(name)
        citations.append(
            Citation(number=len(citations) + 1, file_name=name, relevance_score=node.relevance_score)
        )
    return citations[:limit]


class CitationEngine:
    def __init__(
        self,
        registry: IndexRegistry,
        *,
        top_k: int = DEFAULT_TOP_K,
        relevance_threshold: float = DEFAULT_RELEVANCE_THRESHOLD,
        history_turns: int = DEFAULT_HISTORY_TURNS,
        max_citations: int = DEFAULT_MAX_CITATIONS,
    ) -> None:
        self.registry = registry
        self.top_k = top_k
        self.relevance_threshold = relevance_threshold
        self.history_turns = history_turns
        self.max_citations = max_citations

    def answer(
        self,
        folder_id: str,
        question: str,
        history: Iterable[HistoryItem] = (),
    ) -> ChatAnswer:
        """Answer ``question`` from the folder's index.

        Raises:
            IndexUnavailable: no index is registered for ``folder_id``.
        """
        index = self.registry.get(folder_id)
        if index is None:
            raise IndexUnavailable(folder_id)

        response_query = build_response_query(question, history, turns=self.history_turns)
        nodes = index.retrieve(question, top_k=self.top_k)
        response = index.query(response_query, top_k=self.top_k)
        LOGGER.info("Retrieved %d nodes for folder %s", len(nodes), folder_id)

        citations = select_citations(
            nodes, threshold=self.relevance_threshold, limit=self.max_citations
        )
        return ChatAnswer(response=response, citations=citations)
