"""Text helpers including paragraph-aware token chunking."""

from __future__ import annotations

from typing import Iterable, List

CSV_FIELD_SEPARATOR = " | "


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())


def format_csv(content: str) -> str:
    """Rejoin each line's comma-separated fields with a visible separator."""
    return "\n".join(CSV_FIELD_SEPARATOR.join(line.split(",")) for line in content.split("\n"))


def _tokens(paragraph: str, separator: str) -> List[str]:
    if not separator or separator.isspace():
        return paragraph.split()
    return [token for token in paragraph.split(separator) if token.strip()]


def split_text(
    text: str,
    *,
    chunk_size: int = 512,
    overlap: int = 50,
    separator: str = " ",
    paragraph_separator: str = "\n\n",
) -> List[str]:
    """Split text into chunks of at most ``chunk_size`` tokens.

    Chunks end at paragraph boundaries where possible and fall back to token
    boundaries inside paragraphs that do not fit. Each chunk after the first
    starts with the last ``overlap`` tokens of the previous one.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if not 0 <= overlap < chunk_size:
        raise ValueError("overlap must be smaller than chunk_size")

    joiner = " " if not separator or separator.isspace() else separator
    paragraphs = [p for p in (_tokens(part, separator) for part in text.split(paragraph_separator)) if p]

    chunks: List[str] = []
    current: List[List[str]] = []
    count = 0
    carried = 0
    # The carried tail belongs to a paragraph that continues in the next chunk.
    open_tail = False

    def flush(mid_paragraph: bool) -> None:
        nonlocal current, count, carried, open_tail
        chunks.append(paragraph_separator.join(joiner.join(p) for p in current))
        tail = [token for p in current for token in p][-overlap:] if overlap else []
        current = [tail] if tail else []
        count = carried = len(tail)
        open_tail = mid_paragraph and bool(tail)

    def add(words: List[str]) -> None:
        nonlocal count, open_tail
        if open_tail:
            current[-1] = current[-1] + words
            open_tail = False
        else:
            current.append(words)
        count += len(words)

    for words in paragraphs:
        while words:
            room = chunk_size - count
            if len(words) <= room:
                add(words)
                break
            if count > carried:
                flush(mid_paragraph=False)
                continue
            add(words[:room])
            words = words[room:]
            flush(mid_paragraph=True)

    if count > carried:
        chunks.append(paragraph_separator.join(joiner.join(p) for p in current))

    return chunks
