"""Fallback rule groups and the built-in demonstration source.

The fallbacks apply only when a source omits a whole rule group; they
describe the markup of a conventional server-rendered novel site.
"""

from __future__ import annotations

from bookrule.source.models import (
    BookInfoRule,
    BookSource,
    ContentRule,
    SearchRule,
    TocRule,
)

DEFAULT_SEARCH_URL = "/search?key={key}"

DEFAULT_SEARCH_RULE = SearchRule(
    book_list="class.book-item@tag.li",
    name="text",
    author="class.author@text",
    intro="class.intro@text",
    book_url="tag.a@href",
)

DEFAULT_BOOK_INFO_RULE = BookInfoRule(
    name="text",
    author="class.author@text",
    intro="class.intro@text",
    kind="class.category@text",
    toc_url="class.chapter@href",
    cover_url="class.cover@src",
)

DEFAULT_TOC_RULE = TocRule(
    chapter_list="class.chapter@tag.a",
    chapter_name="text",
    chapter_url="href",
)

DEFAULT_CONTENT_RULE = ContentRule(
    content="id.content@textNodes",
    title="class.chapter-title@text",
)


def demo_source(last_update_time: int = 0) -> BookSource:
    """Return a complete example source rule authors can copy from."""
    return BookSource(
        book_source_url="https://www.example.com",
        book_source_name="演示书源",
        book_source_group="演示",
        last_update_time=last_update_time,
        search_url=DEFAULT_SEARCH_URL,
        rule_search=SearchRule(
            book_list="class.book-item@tag.li",
            name="text",
            author="class.author@text",
            book_url="tag.a@href",
        ),
        rule_book_info=DEFAULT_BOOK_INFO_RULE,
        rule_toc=DEFAULT_TOC_RULE,
        rule_content=DEFAULT_CONTENT_RULE,
    )


# ---------------------------------------------------------------------------
# Effective rule groups
# ---------------------------------------------------------------------------

def search_rule_for(source: BookSource) -> SearchRule:
    return source.rule_search or DEFAULT_SEARCH_RULE


def explore_rule_for(source: BookSource):
    """Explore falls back to the search rules, then to the default search rules."""
    return source.rule_explore or source.rule_search or DEFAULT_SEARCH_RULE


def book_info_rule_for(source: BookSource) -> BookInfoRule:
    return source.rule_book_info or DEFAULT_BOOK_INFO_RULE


def toc_rule_for(source: BookSource) -> TocRule:
    return source.rule_toc or DEFAULT_TOC_RULE


def content_rule_for(source: BookSource) -> ContentRule:
    return source.rule_content or DEFAULT_CONTENT_RULE
