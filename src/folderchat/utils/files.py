"""Utility helpers for working with local files."""

from __future__ import annotations

import hashlib
import mimetypes
from pathlib import Path
from typing import Iterator

DEFAULT_MIME_TYPE = "application/octet-stream"


def iter_folder_files(folder: Path) -> Iterator[Path]:
    """Yield the regular, non-hidden files directly inside ``folder``, sorted by name."""
    for child in sorted(folder.iterdir()):
        if child.is_file() and not child.name.startswith("."):
            yield child


def guess_mime_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or DEFAULT_MIME_TYPE


def compute_sha256(path: Path) -> str:
    """Compute SHA256 hash for a file."""
    sha = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1 << 20), b""):
            sha.update(chunk)
    return sha.hexdigest()
