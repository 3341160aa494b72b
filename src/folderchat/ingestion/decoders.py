"""Format decoders turning binary documents into text records.

Uses PyMuPDF (fitz) to render PDFs as lightweight markdown: pages become
``## Page N`` sections and text set noticeably larger than the body font is
promoted to a heading, which keeps paragraph boundaries visible to the
splitter downstream.
"""

from __future__ import annotations

import logging
import statistics
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol

import fitz  # PyMuPDF

from folderchat.errors import DecoderError
from folderchat.utils.text import normalize_whitespace

LOGGER = logging.getLogger(__name__)

HEADING_RATIO = 1.25


@dataclass(slots=True)
class DecodedRecord:
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class FormatDecoder(Protocol):
    def decode(self, data: bytes) -> List[DecodedRecord]: ...


def _block_lines(block: dict) -> tuple[str, float]:
    texts = []
    sizes = []
    for line in block.get("lines", []):
        spans = line.get("spans", [])
        texts.append("".join(span.get("text", "") for span in spans))
        sizes.extend(span.get("size", 0.0) for span in spans if span.get("text", "").strip())
    return normalize_whitespace(texts), max(sizes, default=0.0)


def _page_blocks(page) -> List[tuple[str, float]]:
    layout = page.get_text("dict") or {}
    blocks = []
    for block in layout.get("blocks", []):
        if block.get("type", 0) != 0:
            continue
        text, size = _block_lines(block)
        if text:
            blocks.append((text, size))
    return blocks


class PdfMarkdownDecoder:
    """Decode PDF bytes into a single markdown-flavoured text record."""

    def decode(self, data: bytes) -> List[DecodedRecord]:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise DecoderError(f"Unable to open PDF: {exc}") from exc

        try:
            pages: List[List[tuple[str, float]]] = []
            for index in range(len(doc)):
                try:
                    pages.append(_page_blocks(doc[index]))
                except Exception as exc:
                    LOGGER.warning("Failed to read page %s: %s", index + 1, exc)
                    pages.append([])

            sizes = [size for blocks in pages for _, size in blocks if size > 0]
            body_size = statistics.median(sizes) if sizes else 0.0

            sections = []
            for number, blocks in enumerate(pages, start=1):
                if not blocks:
                    continue
                parts = [f"## Page {number}"]
                for text, size in blocks:
                    if body_size and size >= body_size * HEADING_RATIO and "\n" not in text:
                        parts.append(f"### {text}")
                    else:
                        parts.append(text)
                sections.append("\n\n".join(parts))

            if not sections:
                return []

            metadata = doc.metadata or {}
            return [
                DecodedRecord(
                    text="\n\n".join(sections),
                    metadata={
                        "page_count": str(len(doc)),
                        "pdf_title": metadata.get("title") or "",
                    },
                )
            ]
        finally:
            doc.close()
