"""Source package — per-source rule groups and their JSON format."""

from bookrule.source.defaults import demo_source
from bookrule.source.models import (
    BookInfoRule,
    BookListRule,
    BookSource,
    ContentRule,
    ExploreRule,
    SearchRule,
    TocRule,
    load_sources,
)

__all__ = [
    "BookInfoRule",
    "BookListRule",
    "BookSource",
    "ContentRule",
    "ExploreRule",
    "SearchRule",
    "TocRule",
    "demo_source",
    "load_sources",
]
