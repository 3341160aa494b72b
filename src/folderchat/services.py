"""Wiring of the long-lived components for one process."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from folderchat.config import AppConfig
from folderchat.embedding.encoder import EmbeddingConfig, EmbeddingModel
from folderchat.index.builder import IndexBuilder
from folderchat.index.engine import VectorIndexEngine
from folderchat.index.enrichment import default_pipeline, enrichment_llm
from folderchat.index.registry import IndexRegistry, default_registry
from folderchat.ingestion.connectors import SourceConnector
from folderchat.jobs import FolderProcessor
from folderchat.llm.client import LLMClient, LLMConfig
from folderchat.progress import ProgressBus, default_bus
from folderchat.retrieval import CitationEngine
from folderchat.warmup import WarmupCoordinator

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Services:
    config: AppConfig
    registry: IndexRegistry
    bus: ProgressBus
    builder: IndexBuilder
    citations: CitationEngine
    warmup: WarmupCoordinator

    def processor(self, connector: SourceConnector) -> FolderProcessor:
        return FolderProcessor(
            connector,
            self.builder,
            registry=self.registry,
            bus=self.bus,
            warmup=self.warmup,
            max_files=self.config.max_files,
            file_delay=self.config.file_delay,
            between_files_delay=self.config.between_files_delay,
        )


def build_services(
    config: AppConfig | None = None,
    *,
    registry: IndexRegistry | None = None,
    bus: ProgressBus | None = None,
) -> Services:
    """Load models and assemble the pipeline. Slow: loads the embedding model."""
    config = config or AppConfig.from_env()
    registry = registry if registry is not None else default_registry
    bus = bus if bus is not None else default_bus

    embedder = EmbeddingModel(EmbeddingConfig(model_name=config.model_name))
    generator = LLMClient(LLMConfig(model=config.llm_model, api_key=config.openai_api_key))
    engine = VectorIndexEngine(
        embedder,
        generator,
        chunk_size=config.chunk_size,
        chunk_overlap=config.chunk_overlap,
        top_k=config.top_k,
    )
    pipeline = default_pipeline(
        enrichment_llm(config.llm_model, config.openai_api_key),
        questions=config.questions_per_chunk,
    )
    builder = IndexBuilder(engine, pipeline)
    citations = CitationEngine(
        registry,
        top_k=config.top_k,
        relevance_threshold=config.relevance_threshold,
        history_turns=config.history_turns,
        max_citations=config.max_citations,
    )
    warmup = WarmupCoordinator(
        registry,
        builder,
        base_url=config.warmup_url,
        include_documents=config.warmup_include_documents,
        timeout=config.warmup_timeout,
    )
    LOGGER.info("Services ready (embedding: %s, llm: %s)", config.model_name, config.llm_model)
    return Services(config, registry, bus, builder, citations, warmup)
