"""Pipeline package — stage extraction, the debug runner and the live client."""

from bookrule.pipeline.cache import ChapterCache, MemoryChapterCache
from bookrule.pipeline.client import BookClient
from bookrule.pipeline.models import (
    BookDetail,
    BookItem,
    ChapterItem,
    ChapterText,
    PipelineResult,
)
from bookrule.pipeline.runner import SourceDebugger
from bookrule.pipeline.trace import ListSink, PipelineTrace, PrintSink

__all__ = [
    "BookClient",
    "BookDetail",
    "BookItem",
    "ChapterCache",
    "ChapterItem",
    "ChapterText",
    "ListSink",
    "MemoryChapterCache",
    "PipelineResult",
    "PipelineTrace",
    "PrintSink",
    "SourceDebugger",
]
