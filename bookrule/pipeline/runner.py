"""Four-stage resolution pipeline used to debug a source's rules.

``SourceDebugger.run`` chains search → detail → table of contents → content,
feeding the first usable item of each stage into the next request.  Every
stage writes the URL it built, the response status, raw vs. usable item
counts and a short preview to the run's :class:`PipelineTrace`, so a broken
rule set can be diagnosed from the trace alone.

A stage that raises (:class:`~bookrule.errors.BookRuleError`) or ends with no
usable items aborts the run.  ``stop()`` is cooperative: it is honoured at the
next stage boundary.
"""

from __future__ import annotations

import threading

from bookrule.config import settings
from bookrule.errors import BookRuleError, HttpStatusError
from bookrule.pipeline.extract import (
    extract_book_list,
    extract_chapter_list,
    extract_content,
    extract_detail,
)
from bookrule.pipeline.models import (
    BookDetail,
    BookItem,
    ChapterItem,
    ChapterText,
    PipelineResult,
)
from bookrule.pipeline.trace import LogSink, PipelineTrace
from bookrule.rules.parser import RuleParser
from bookrule.scraper.fetcher import Fetcher
from bookrule.scraper.models import RawResponse
from bookrule.scraper.urls import build_full_url, build_search_url
from bookrule.source.defaults import (
    DEFAULT_SEARCH_URL,
    book_info_rule_for,
    content_rule_for,
    search_rule_for,
    toc_rule_for,
)
from bookrule.source.models import BookSource

NO_INPUT = "no usable input for next stage"


def _one_line(text: str) -> str:
    return " ".join(text.split())


def _clip(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "…"


def _or_missing(value: str) -> str:
    return value if value else "(not resolved)"


def _is_absolute(url: str) -> bool:
    return url.startswith("http://") or url.startswith("https://")


class SourceDebugger:
    """Run the resolution pipeline for one source at a time.

    Separate instances share nothing, so independent runs can proceed
    concurrently on different threads.

    Args:
        fetcher: Fetch policy to use; a default :class:`Fetcher` if ``None``.
        sink: Optional log sink receiving each trace line as it is written.
    """

    def __init__(self, fetcher: Fetcher | None = None, sink: LogSink | None = None) -> None:
        self.fetcher = fetcher or Fetcher()
        self._sink = sink
        self._lock = threading.Lock()
        self._running = False
        self._stop = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Ask the current run to end at the next stage boundary."""
        if self._running:
            self._stop.set()

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def run(self, source: BookSource, keyword: str) -> PipelineResult:
        """Debug *source* with *keyword* (or a detail-page URL).

        Never raises for stage failures; inspect ``result.aborted_at`` and
        ``result.trace`` instead.
        """
        trace = PipelineTrace(self._sink)
        result = PipelineResult(trace=trace)

        with self._lock:
            if self._running:
                trace.log("⚠ A debug run is already in progress; wait for it to finish")
                result.aborted_at = "busy"
                return result
            self._running = True
            self._stop.clear()

        try:
            self._run_stages(source, keyword.strip(), result)
        finally:
            self._running = False
        return result

    def _run_stages(self, source: BookSource, keyword: str, result: PipelineResult) -> None:
        trace = result.trace
        trace.log(f"▶ Debugging source: {source.display_name()}")
        trace.log(f"  Base URL: {source.book_source_url}")

        stage = "search"
        try:
            if _is_absolute(keyword):
                trace.log("Keyword is a URL; skipping search and using it as the detail page")
                detail_url = keyword
            else:
                result.search, search_page = self._search(source, keyword, trace)
                if not result.search or not result.search[0].url:
                    self._abort(result, stage)
                    return
                detail_url = build_full_url(search_page, result.search[0].url)

            if self._stop_requested(result):
                return
            stage = "detail"
            result.detail, detail_response, detail_parser = self._detail(
                source, detail_url, trace
            )

            if self._stop_requested(result):
                return
            stage = "toc"
            if result.detail.toc_url:
                toc_url = build_full_url(detail_response.url, result.detail.toc_url)
                result.chapters, toc_page = self._toc(source, toc_url, trace)
            else:
                result.chapters, toc_page = self._toc_from_detail(
                    source, detail_response, detail_parser, trace
                )
            if not result.chapters or not result.chapters[0].url:
                self._abort(result, stage)
                return

            if self._stop_requested(result):
                return
            stage = "content"
            content_url = build_full_url(toc_page, result.chapters[0].url)
            result.content = self._content(source, content_url, trace)
        except BookRuleError as exc:
            trace.log(f"✗ {stage} stage failed: {exc}")
            result.aborted_at = stage
            trace.log("✗ Run aborted")
            return

        trace.log("")
        trace.log("✓ Debug run complete")

    def _abort(self, result: PipelineResult, stage: str) -> None:
        result.aborted_at = stage
        result.trace.log(f"✗ {stage}: {NO_INPUT}")
        result.trace.log("✗ Run aborted")

    def _stop_requested(self, result: PipelineResult) -> bool:
        if self._stop.is_set():
            result.stopped = True
            result.trace.log("⏹ Stop requested; ending run")
            return True
        return False

    # ------------------------------------------------------------------
    # Shared request step
    # ------------------------------------------------------------------
    def _request(
        self, source: BookSource, url: str, trace: PipelineTrace
    ) -> tuple[RawResponse, RuleParser]:
        trace.log(f"  → GET {url}")
        response = self.fetcher.fetch(url, headers=source.request_headers())
        trace.log(f"  ← HTTP {response.status_code}, {len(response.content)} bytes")
        if not response.ok:
            raise HttpStatusError("Request failed", status_code=response.status_code, url=url)
        trace.log(f"  Body: {_one_line(response.preview(settings.preview_chars))}")
        parser = RuleParser.from_body(response.content)
        trace.log(f"  Parsed as {'JSON' if parser.is_json else 'HTML'}")
        return response, parser

    @staticmethod
    def _item_error_logger(trace: PipelineTrace):
        def on_error(index: int, exc: Exception) -> None:
            trace.log(f"  ⚠ item {index + 1} skipped: {exc!r}")

        return on_error

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def _search(
        self, source: BookSource, keyword: str, trace: PipelineTrace
    ) -> tuple[list[BookItem], str]:
        trace.log("")
        trace.log("📋 Stage 1: search")
        rule = search_rule_for(source)
        trace.log(
            f"  Rules: bookList={rule.book_list!r} name={rule.name!r} "
            f"author={rule.author!r} bookUrl={rule.book_url!r} intro={rule.intro!r}"
        )
        template = (source.search_url or "").strip() or DEFAULT_SEARCH_URL
        url = build_search_url(source.book_source_url, template, keyword, page=1)
        trace.log(f"  Keyword: {keyword}")
        response, parser = self._request(source, url, trace)

        extraction = extract_book_list(parser, rule, self._item_error_logger(trace))
        trace.log(
            f"  Items: {extraction.raw_count} matched, {len(extraction.items)} usable "
            f"({extraction.failed_count} failed, {extraction.discarded_count} empty)"
        )
        for i, item in enumerate(extraction.items[: settings.preview_items], start=1):
            trace.log(f"  [{i}] {_or_missing(item.name)} / {_or_missing(item.author)}")
            trace.log(f"      url: {_or_missing(item.url)}")
        return extraction.items, response.url

    def _detail(
        self, source: BookSource, url: str, trace: PipelineTrace
    ) -> tuple[BookDetail, RawResponse, RuleParser]:
        trace.log("")
        trace.log("📋 Stage 2: detail")
        response, parser = self._request(source, url, trace)

        detail = extract_detail(parser, book_info_rule_for(source))
        trace.log(f"  name:   {_or_missing(detail.name)}")
        trace.log(f"  author: {_or_missing(detail.author)}")
        trace.log(f"  kind:   {_or_missing(detail.kind)}")
        trace.log(f"  intro:  {_or_missing(_clip(_one_line(detail.intro), 100))}")
        trace.log(f"  cover:  {_or_missing(detail.cover_url)}")
        trace.log(f"  tocUrl: {_or_missing(detail.toc_url)}")
        return detail, response, parser

    def _log_chapters(self, extraction, trace: PipelineTrace) -> None:
        trace.log(
            f"  Chapters: {extraction.raw_count} matched, {len(extraction.items)} usable "
            f"({extraction.failed_count} failed, {extraction.discarded_count} empty)"
        )
        for i, chapter in enumerate(extraction.items[: settings.preview_items], start=1):
            trace.log(f"  [{i}] {_or_missing(chapter.name)}")
            trace.log(f"      url: {_or_missing(chapter.url)}")

    def _toc(
        self, source: BookSource, url: str, trace: PipelineTrace
    ) -> tuple[list[ChapterItem], str]:
        trace.log("")
        trace.log("📋 Stage 3: table of contents")
        response, parser = self._request(source, url, trace)
        extraction = extract_chapter_list(
            parser, toc_rule_for(source), self._item_error_logger(trace)
        )
        self._log_chapters(extraction, trace)
        return extraction.items, response.url

    def _toc_from_detail(
        self,
        source: BookSource,
        response: RawResponse,
        parser: RuleParser,
        trace: PipelineTrace,
    ) -> tuple[list[ChapterItem], str]:
        trace.log("")
        trace.log("📋 Stage 3: table of contents")
        trace.log(f"  tocUrl empty; reading chapters from the detail page {response.url}")
        trace.log(f"  ← HTTP {response.status_code} (reused)")
        extraction = extract_chapter_list(
            parser, toc_rule_for(source), self._item_error_logger(trace)
        )
        self._log_chapters(extraction, trace)
        return extraction.items, response.url

    def _content(self, source: BookSource, url: str, trace: PipelineTrace) -> ChapterText:
        trace.log("")
        trace.log("📋 Stage 4: content")
        _, parser = self._request(source, url, trace)
        chapter = extract_content(parser, content_rule_for(source))
        trace.log(f"  title:  {_or_missing(chapter.title)}")
        if not chapter.content:
            trace.log("  ⚠ content resolved empty")
            return chapter
        preview = _clip(_one_line(chapter.content), settings.content_preview_chars)
        trace.log(f"  content: {preview}")
        trace.log(f"  length: {len(chapter.content)} characters")
        return chapter
