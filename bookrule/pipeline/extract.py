"""Per-stage record extraction from a parsed response.

Each function maps one rule group onto a :class:`RuleParser`.  List passes
evaluate item fields scoped to the item, skip items whose identifying fields
are all empty, and survive items that blow up: the failure is counted,
reported through *on_error*, and the pass continues.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from bookrule.pipeline.models import (
    BookDetail,
    BookItem,
    ChapterItem,
    ChapterText,
    ListExtraction,
)
from bookrule.rules.parser import RuleParser
from bookrule.source.models import BookInfoRule, BookListRule, ContentRule, TocRule

ItemErrorHandler = Callable[[int, Exception], None]


def _field(parser: RuleParser, rule: str | None, context: Any = None) -> str:
    return parser.select_string(rule, context=context).strip()


def _run_list_pass(
    parser: RuleParser,
    list_rule: str | None,
    build: Callable[[Any], Any],
    on_error: Optional[ItemErrorHandler],
) -> ListExtraction:
    contexts = parser.select_list(list_rule)
    result: ListExtraction = ListExtraction(raw_count=len(contexts))
    for index, context in enumerate(contexts):
        try:
            item = build(context)
        except Exception as exc:
            result.failed_count += 1
            if on_error is not None:
                on_error(index, exc)
            continue
        if not item.is_empty():
            result.items.append(item)
    return result


def extract_book_list(
    parser: RuleParser,
    rule: BookListRule,
    on_error: Optional[ItemErrorHandler] = None,
) -> ListExtraction[BookItem]:
    """Apply a search/explore rule group to a result page."""

    def build(item: Any) -> BookItem:
        return BookItem(
            name=_field(parser, rule.name, item),
            author=_field(parser, rule.author, item),
            url=_field(parser, rule.book_url, item),
            intro=_field(parser, rule.intro, item),
            kind=_field(parser, rule.kind, item),
            cover_url=_field(parser, rule.cover_url, item),
            last_chapter=_field(parser, rule.last_chapter, item),
            word_count=_field(parser, rule.word_count, item),
        )

    return _run_list_pass(parser, rule.book_list, build, on_error)


def extract_detail(parser: RuleParser, rule: BookInfoRule) -> BookDetail:
    """Apply a detail rule group to the whole page (a single record)."""
    return BookDetail(
        name=_field(parser, rule.name),
        author=_field(parser, rule.author),
        intro=_field(parser, rule.intro),
        kind=_field(parser, rule.kind),
        toc_url=_field(parser, rule.toc_url),
        cover_url=_field(parser, rule.cover_url),
        last_chapter=_field(parser, rule.last_chapter),
        word_count=_field(parser, rule.word_count),
    )


def extract_chapter_list(
    parser: RuleParser,
    rule: TocRule,
    on_error: Optional[ItemErrorHandler] = None,
) -> ListExtraction[ChapterItem]:
    """Apply a table-of-contents rule group to a chapter index page."""

    def build(item: Any) -> ChapterItem:
        return ChapterItem(
            name=_field(parser, rule.chapter_name, item),
            url=_field(parser, rule.chapter_url, item),
        )

    return _run_list_pass(parser, rule.chapter_list, build, on_error)


def extract_content(parser: RuleParser, rule: ContentRule) -> ChapterText:
    return ChapterText(
        title=_field(parser, rule.title),
        content=_field(parser, rule.content),
    )
