"""Turn listed files into normalized documents, one file at a time."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from folderchat.ingestion.connectors import SourceConnector
from folderchat.ingestion.decoders import FormatDecoder, PdfMarkdownDecoder
from folderchat.ingestion.metadata import file_metadata, new_document_id
from folderchat.models import Document, FileDescriptor
from folderchat.utils.text import format_csv

LOGGER = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
WORKSPACE_PREFIX = "application/vnd.google-apps."
GOOGLE_DOC = "application/vnd.google-apps.document"
GOOGLE_SHEET = "application/vnd.google-apps.spreadsheet"
GOOGLE_SLIDES = "application/vnd.google-apps.presentation"

SUPPORTED_MIME_TYPES = (
    PDF_MIME_TYPE,
    "text/plain",
    "text/csv",
    GOOGLE_DOC,
    GOOGLE_SHEET,
    GOOGLE_SLIDES,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/msword",
)

SUPPORTED_FORMATS_HINT = "PDF, TXT, CSV, Google Docs/Sheets/Slides, Word documents"

CSV_MIME_TYPES = frozenset({"text/csv", "application/vnd.ms-excel"})

EXPORT_MIME_TYPES = {
    GOOGLE_DOC: "text/plain",
    GOOGLE_SHEET: "text/csv",
    GOOGLE_SLIDES: "text/plain",
}


def filter_supported(files: Iterable[FileDescriptor]) -> List[FileDescriptor]:
    """Keep only files whose mime type is on the allow-list."""
    return [file for file in files if file.mime_type in SUPPORTED_MIME_TYPES]


def export_mime_type(mime_type: str) -> str:
    return EXPORT_MIME_TYPES.get(mime_type, "text/plain")


class ContentExtractor:
    """Dispatch a file to the right extraction path by mime type.

    ``extract`` never raises: a file that cannot be read either yields a
    placeholder document (so it can still be cited) or ``None``.
    """

    def __init__(self, connector: SourceConnector, decoder: FormatDecoder | None = None) -> None:
        self.connector = connector
        self.decoder = decoder or PdfMarkdownDecoder()

    def extract(self, file: FileDescriptor) -> Optional[Document]:
        try:
            if file.mime_type.startswith(WORKSPACE_PREFIX):
                return self._extract_workspace(file)
            if file.mime_type == PDF_MIME_TYPE:
                return self._extract_pdf(file)
            return self._extract_text(file)
        except Exception as exc:
            LOGGER.error("Fatal error processing file %s: %s", file.name, exc)
            return None

    def _document(self, file: FileDescriptor, text: str, extra: dict | None = None) -> Document:
        metadata = dict(extra or {})
        metadata.update(file_metadata(file))
        return Document(id=new_document_id(), text=text, metadata=metadata)

    def _extract_workspace(self, file: FileDescriptor) -> Document:
        target = export_mime_type(file.mime_type)
        LOGGER.info("Exporting workspace file %s as %s", file.name, target)
        content = self.connector.export(file.id, target)
        if target == "text/csv":
            content = format_csv(content)
        return self._document(file, content)

    def _extract_pdf(self, file: FileDescriptor) -> Optional[Document]:
        try:
            data = self.connector.download(file.id)
            LOGGER.info("Downloaded %s (%d bytes)", file.name, len(data))
            records = self.decoder.decode(data)
        except Exception as exc:
            LOGGER.error("Error decoding PDF %s: %s", file.name, exc)
            return self._document(
                file, f"PDF file: {file.name} (could not extract content - decoder failed)"
            )

        if not records:
            LOGGER.warning("No documents generated from PDF %s", file.name)
            return None
        first = records[0]
        return self._document(file, first.text, first.metadata)

    def _extract_text(self, file: FileDescriptor) -> Document:
        try:
            content = self.connector.download(file.id).decode("utf-8", errors="replace")
        except Exception as exc:
            LOGGER.error("Error processing %s: %s", file.name, exc)
            return self._document(file, f"File: {file.name} (could not extract content)")

        if file.mime_type in CSV_MIME_TYPES:
            content = format_csv(content)
        return self._document(file, content)
