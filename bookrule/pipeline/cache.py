"""Chapter-content cache contract and an in-memory implementation."""

from __future__ import annotations

from collections import OrderedDict
from typing import Optional, Protocol

from bookrule.pipeline.models import ChapterText


class ChapterCache(Protocol):
    def get(self, chapter_id: str) -> Optional[ChapterText]:
        """Return cached content for *chapter_id*, or ``None``."""

    def put(self, chapter_id: str, content: ChapterText) -> None:
        """Store *content* under *chapter_id*."""


class MemoryChapterCache:
    """Least-recently-used cache bounded to *max_entries* chapters."""

    def __init__(self, max_entries: int = 200) -> None:
        self.max_entries = max_entries
        self._entries: OrderedDict[str, ChapterText] = OrderedDict()

    def get(self, chapter_id: str) -> Optional[ChapterText]:
        content = self._entries.get(chapter_id)
        if content is not None:
            self._entries.move_to_end(chapter_id)
        return content

    def put(self, chapter_id: str, content: ChapterText) -> None:
        self._entries[chapter_id] = content
        self._entries.move_to_end(chapter_id)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def __contains__(self, chapter_id: object) -> bool:
        return chapter_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
