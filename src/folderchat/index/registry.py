"""Process-wide cache of built indices, keyed by folder id.

Entries live until they are deleted or the process is recycled. A missing entry
is an expected outcome: callers must treat it as "reprocess the folder", not as
an internal fault. Swapping in a durable backing store only requires another
class with the same four methods.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from folderchat.index.engine import VectorIndex

LOGGER = logging.getLogger(__name__)


class IndexRegistry:
    def __init__(self) -> None:
        self._indices: Dict[str, VectorIndex] = {}
        self._lock = threading.Lock()

    def put(self, folder_id: str, index: VectorIndex) -> None:
        """Register ``index`` for ``folder_id``, replacing any previous one."""
        with self._lock:
            replaced = folder_id in self._indices
            self._indices[folder_id] = index
            total = len(self._indices)
        LOGGER.info(
            "Index %s for folder %s (%d indices stored)",
            "replaced" if replaced else "stored",
            folder_id,
            total,
        )

    def get(self, folder_id: str) -> Optional[VectorIndex]:
        with self._lock:
            index = self._indices.get(folder_id)
        if index is None:
            LOGGER.info("No index registered for folder %s", folder_id)
        return index

    def delete(self, folder_id: str) -> bool:
        with self._lock:
            removed = self._indices.pop(folder_id, None) is not None
        if removed:
            LOGGER.info("Index evicted for folder %s", folder_id)
        return removed

    def list_ids(self) -> List[str]:
        with self._lock:
            return list(self._indices)

    def __contains__(self, folder_id: object) -> bool:
        with self._lock:
            return folder_id in self._indices


default_registry = IndexRegistry()
