"""Single-stage calls for a live reader: search, explore, detail, toc, content.

Unlike :class:`~bookrule.pipeline.runner.SourceDebugger`, each call here is
independent and raises on failure so the caller can decide what to show.
Returned URLs are absolute.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from bookrule.errors import SourceConfigError, SourceParseError
from bookrule.pipeline.cache import ChapterCache
from bookrule.pipeline.extract import (
    extract_book_list,
    extract_chapter_list,
    extract_content,
    extract_detail,
)
from bookrule.pipeline.models import BookDetail, BookItem, ChapterItem, ChapterText
from bookrule.rules.parser import RuleParser
from bookrule.scraper.fetcher import Fetcher
from bookrule.scraper.models import RawResponse
from bookrule.scraper.urls import (
    build_explore_url,
    build_full_url,
    build_search_url,
    parse_explore_entries,
)
from bookrule.source.defaults import (
    book_info_rule_for,
    content_rule_for,
    explore_rule_for,
    search_rule_for,
    toc_rule_for,
)
from bookrule.source.models import BookSource


def _ensure_source(source: BookSource) -> None:
    if not source.book_source_url.strip():
        raise SourceConfigError("Source has no bookSourceUrl")


def _report_item_error(index: int, exc: Exception) -> None:
    print(f"[client] item {index + 1} skipped: {exc!r:.120}")


class BookClient:
    """Rule-driven access to one source at a time.

    Args:
        fetcher: Fetch policy; a default :class:`Fetcher` if ``None``.
        cache: Optional chapter cache consulted by :meth:`content`.
    """

    def __init__(
        self,
        fetcher: Fetcher | None = None,
        cache: Optional[ChapterCache] = None,
    ) -> None:
        self.fetcher = fetcher or Fetcher()
        self.cache = cache

    def _load(self, source: BookSource, url: str) -> tuple[RawResponse, RuleParser]:
        response = self.fetcher.fetch_ok(url, headers=source.request_headers())
        return response, RuleParser.from_body(response.content)

    def _book_list(self, source: BookSource, url: str, rule) -> list[BookItem]:
        response, parser = self._load(source, url)
        extraction = extract_book_list(parser, rule, _report_item_error)
        books = [
            replace(book, url=build_full_url(response.url, book.url) if book.url else "")
            for book in extraction.items
        ]
        print(f"[client] {url} → {len(books)} of {extraction.raw_count} item(s) usable")
        return books

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def search(self, source: BookSource, keyword: str, page: int = 1) -> list[BookItem]:
        """Search *source* for *keyword*.

        Returns ``[]`` for a blank keyword.

        Raises:
            SourceConfigError: If the source has no base URL or search URL.
            HttpStatusError / TransportError / SourceParseError: On fetch or
                parse failure.
        """
        _ensure_source(source)
        keyword = keyword.strip()
        if not keyword:
            return []
        template = (source.search_url or "").strip()
        if not template:
            raise SourceConfigError("Source has no searchUrl", url=source.book_source_url)
        url = build_search_url(source.book_source_url, template, keyword, page)
        return self._book_list(source, url, search_rule_for(source))

    def explore_entries(self, source: BookSource) -> list[tuple[str, str]]:
        """Return the source's explore pages as ordered ``(title, url)`` pairs.

        Empty when the source has explore disabled or declares no entries.
        """
        if not source.enabled_explore:
            return []
        return parse_explore_entries(source.explore_url)

    def explore(self, source: BookSource, url: str, page: int = 1) -> list[BookItem]:
        """Load one explore (category/ranking) page.

        *url* is one entry of the source's ``exploreUrl`` field and may carry
        a ``{page}`` placeholder.
        """
        _ensure_source(source)
        request_url = build_explore_url(source.book_source_url, url, page)
        return self._book_list(source, request_url, explore_rule_for(source))

    def book_detail(self, source: BookSource, book_url: str) -> BookDetail:
        """Fetch a book's detail page.

        An empty ``tocUrl`` result resolves to the detail page itself.
        """
        _ensure_source(source)
        if not book_url.strip():
            raise SourceConfigError("Book URL must not be empty")
        url = build_full_url(source.book_source_url, book_url)
        response, parser = self._load(source, url)
        detail = extract_detail(parser, book_info_rule_for(source))
        toc_url = build_full_url(response.url, detail.toc_url) if detail.toc_url else response.url
        cover_url = build_full_url(response.url, detail.cover_url) if detail.cover_url else ""
        return replace(detail, toc_url=toc_url, cover_url=cover_url)

    def chapters(self, source: BookSource, toc_url: str) -> list[ChapterItem]:
        """Fetch the chapter list.

        Raises:
            SourceParseError: If no chapter survives extraction.
        """
        _ensure_source(source)
        if not toc_url.strip():
            raise SourceConfigError("Table of contents URL must not be empty")
        url = build_full_url(source.book_source_url, toc_url)
        response, parser = self._load(source, url)
        extraction = extract_chapter_list(parser, toc_rule_for(source), _report_item_error)
        if not extraction.items:
            raise SourceParseError(
                f"No chapters extracted ({extraction.raw_count} matched, "
                f"{extraction.failed_count} failed)",
                url=url,
            )
        if extraction.failed_count:
            print(
                f"[client] chapter list: {len(extraction.items)} ok, "
                f"{extraction.failed_count} failed"
            )
        return [
            replace(ch, url=build_full_url(response.url, ch.url) if ch.url else "")
            for ch in extraction.items
        ]

    def content(self, source: BookSource, chapter_url: str) -> ChapterText:
        """Fetch a chapter's text, served from the cache when present.

        The cache key is the absolute chapter URL.
        """
        _ensure_source(source)
        if not chapter_url.strip():
            raise SourceConfigError("Chapter URL must not be empty")
        url = build_full_url(source.book_source_url, chapter_url)
        if self.cache is not None:
            cached = self.cache.get(url)
            if cached is not None:
                return cached

        _, parser = self._load(source, url)
        chapter = extract_content(parser, content_rule_for(source))
        if self.cache is not None and chapter.content:
            self.cache.put(url, chapter)
        return chapter
