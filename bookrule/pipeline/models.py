"""Records produced by the extraction stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

from bookrule.pipeline.trace import PipelineTrace

T = TypeVar("T")


@dataclass
class BookItem:
    """One entry of a search or explore result list."""

    name: str = ""
    author: str = ""
    url: str = ""
    intro: str = ""
    kind: str = ""
    cover_url: str = ""
    last_chapter: str = ""
    word_count: str = ""

    def is_empty(self) -> bool:
        """``True`` when no identifying field resolved (decorative/ad blocks)."""
        return not (self.name or self.author or self.url or self.intro)


@dataclass
class BookDetail:
    name: str = ""
    author: str = ""
    intro: str = ""
    kind: str = ""
    toc_url: str = ""
    cover_url: str = ""
    last_chapter: str = ""
    word_count: str = ""


@dataclass
class ChapterItem:
    name: str = ""
    url: str = ""

    def is_empty(self) -> bool:
        return not (self.name or self.url)


@dataclass
class ChapterText:
    title: str = ""
    content: str = ""


@dataclass
class ListExtraction(Generic[T]):
    """Items that survived a list pass plus the counts needed to diagnose it."""

    items: list[T] = field(default_factory=list)
    raw_count: int = 0
    failed_count: int = 0

    @property
    def discarded_count(self) -> int:
        return self.raw_count - self.failed_count - len(self.items)


@dataclass
class PipelineResult:
    """Everything a debug run produced, stage by stage."""

    trace: PipelineTrace
    search: list[BookItem] = field(default_factory=list)
    detail: Optional[BookDetail] = None
    chapters: list[ChapterItem] = field(default_factory=list)
    content: Optional[ChapterText] = None
    stopped: bool = False
    aborted_at: Optional[str] = None

    @property
    def completed(self) -> bool:
        return not self.stopped and self.aborted_at is None and self.content is not None
