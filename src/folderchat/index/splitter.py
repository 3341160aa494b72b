"""Document to chunk splitting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from folderchat.models import Chunk, Document
from folderchat.utils.text import split_text


@dataclass(slots=True)
class SentenceSplitter:
    """Split documents at paragraph boundaries first, then at spaces.

    Sizes are counted in separator-delimited tokens.
    """

    chunk_size: int = 512
    chunk_overlap: int = 50
    separator: str = " "
    paragraph_separator: str = "\n\n"

    def split_documents(self, documents: Sequence[Document]) -> List[Chunk]:
        chunks: List[Chunk] = []
        for document in documents:
            pieces = split_text(
                document.text,
                chunk_size=self.chunk_size,
                overlap=self.chunk_overlap,
                separator=self.separator,
                paragraph_separator=self.paragraph_separator,
            )
            for index, text in enumerate(pieces):
                metadata = dict(document.metadata)
                metadata["chunk_index"] = index
                chunks.append(
                    Chunk(
                        id=f"{document.id}:{index}",
                        text=text,
                        ref_doc_id=document.id,
                        index=index,
                        metadata=metadata,
                    )
                )
        return chunks
