"""End-to-end folder processing job."""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Mapping, Optional

from folderchat.errors import JobInputError, NoReadableContentError, NoSupportedFilesError
from folderchat.index.builder import IndexBuilder
from folderchat.index.registry import IndexRegistry
from folderchat.ingestion.connectors import SourceConnector
from folderchat.ingestion.extractor import (
    SUPPORTED_FORMATS_HINT,
    ContentExtractor,
    filter_supported,
)
from folderchat.models import Document, JobResult
from folderchat.progress import COMPLETED_MESSAGE, ProgressBus
from folderchat.warmup import WarmupCoordinator, WarmupOutcome
from folderchat.web.errors import classify_job_error

LOGGER = logging.getLogger(__name__)

FAILED_MESSAGE = "❌ Folder processing completed with errors"


def failure_message(exc: Exception) -> str:
    """Text shown to progress subscribers when a job fails."""
    if isinstance(exc, JobInputError):
        return str(exc)
    return classify_job_error(exc)[1]["error"]


class FolderProcessor:
    """Process one folder: list, extract, index, register, warm up.

    Files are handled one after another. Short sleeps before each file and
    between files give polling progress subscribers a chance to observe
    intermediate states.
    """

    def __init__(
        self,
        connector: SourceConnector,
        builder: IndexBuilder,
        *,
        registry: IndexRegistry,
        bus: ProgressBus,
        warmup: Optional[WarmupCoordinator] = None,
        extractor: Optional[ContentExtractor] = None,
        max_files: int = 100,
        file_delay: float = 0.1,
        between_files_delay: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.connector = connector
        self.builder = builder
        self.registry = registry
        self.bus = bus
        self.warmup = warmup
        self.extractor = extractor or ContentExtractor(connector)
        self.max_files = max_files
        self.file_delay = file_delay
        self.between_files_delay = between_files_delay
        self._sleep = sleep

    def process(
        self,
        folder_id: str,
        *,
        warmup_headers: Optional[Mapping[str, str]] = None,
    ) -> JobResult:
        self.bus.clear(folder_id)
        try:
            return self._process(folder_id, warmup_headers)
        except Exception as exc:
            LOGGER.error("Error processing folder %s: %s", folder_id, exc)
            self.bus.append(folder_id, f"{FAILED_MESSAGE}: {failure_message(exc)}")
            raise

    def _process(self, folder_id: str, warmup_headers: Optional[Mapping[str, str]]) -> JobResult:
        progress = self.bus.append
        progress(folder_id, "🚀 Starting folder processing...")

        progress(folder_id, "🔐 Connecting to document source...")
        progress(folder_id, "📋 Fetching folder information...")
        folder_name = self.connector.get_folder_name(folder_id)
        progress(folder_id, f'📁 Found folder: "{folder_name}"')

        progress(folder_id, "📋 Scanning files in folder...")
        files = self.connector.list_files(folder_id, page_size=self.max_files)
        progress(folder_id, f"📄 Found {len(files)} total files")

        supported = filter_supported(files)
        progress(folder_id, f"✅ Found {len(supported)} supported files to process")
        if not supported:
            progress(folder_id, "❌ No supported files found in folder")
            raise NoSupportedFilesError(
                "No supported files found in folder. "
                f"Supported formats: {SUPPORTED_FORMATS_HINT}."
            )

        progress(folder_id, "🔄 Starting document processing...")
        documents: List[Document] = []
        for position, file in enumerate(supported, start=1):
            progress(folder_id, f"📄 Processing file {position}/{len(supported)}: {file.name}")
            self._sleep(self.file_delay)

            document = self.extractor.extract(file)
            if document is not None and document.text.strip():
                documents.append(document)
                progress(folder_id, f"  ✅ Successfully processed: {file.name}")
            else:
                progress(folder_id, f"  ⚠️ Skipped (no content): {file.name}")

            if position < len(supported):
                self._sleep(self.between_files_delay)

        LOGGER.info("Processed %d/%d files for %s", len(documents), len(supported), folder_id)
        if not documents:
            progress(folder_id, "❌ No readable content found")
            raise NoReadableContentError("No readable content found in the supported files.")

        progress(folder_id, "🧠 Creating enhanced metadata extraction pipeline...")
        index = self.builder.build(documents, lambda message: progress(folder_id, message))

        self.registry.put(folder_id, index)
        progress(folder_id, "💾 Storing index for chat queries...")

        if self.warmup is not None:
            progress(folder_id, "🔥 Warming chat function to eliminate cold starts...")
            result = self.warmup.warm(folder_id, index, headers=warmup_headers)
            if result.outcome is WarmupOutcome.READY:
                progress(folder_id, "✅ Chat function warmed successfully! Ready for instant chat.")
            elif result.outcome is WarmupOutcome.PENDING:
                progress(folder_id, "✅ Chat function warmed; index will be available shortly.")
            else:
                progress(
                    folder_id,
                    "⚠️ Chat warmup skipped - chat may need brief pause before first use",
                )

        result = JobResult(
            folder_name=folder_name,
            documents_processed=len(documents),
            total_files=len(supported),
            supported_file_types=[{"name": f.name, "type": f.mime_type} for f in supported],
        )
        progress(folder_id, f"📊 Processed {len(documents)} documents, ready for chat!")
        progress(folder_id, COMPLETED_MESSAGE)
        return result
