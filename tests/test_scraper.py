"""Tests for the fetch layer — retry, redirects, status handling, URL templating.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made.
- ``time.sleep`` is patched so retry backoff does not slow the suite down and
  so the backoff delays can be asserted.
"""

from __future__ import annotations

from unittest.mock import call, patch

import httpx
import pytest
import respx

from bookrule.errors import HttpStatusError, SourceConfigError, TransportError
from bookrule.scraper.fetcher import Fetcher, redirect_target
from bookrule.scraper.models import RawResponse
from bookrule.scraper.transport import HttpxTransport
from bookrule.scraper.urls import (
    build_explore_url,
    build_full_url,
    build_search_url,
    fill_template,
    parse_explore_entries,
)


def _fetcher(**overrides) -> Fetcher:
    options = {"retries": 2, "base_delay": 0.5, "timeout": 5.0, "max_redirects": 3}
    options.update(overrides)
    return Fetcher(HttpxTransport(), **options)


# ---------------------------------------------------------------------------
# RawResponse
# ---------------------------------------------------------------------------

class TestRawResponse:
    def test_ok_range(self) -> None:
        assert RawResponse("u", 200, b"").ok
        assert RawResponse("u", 204, b"").ok
        assert not RawResponse("u", 302, b"").ok
        assert not RawResponse("u", 404, b"").ok

    def test_preview_truncates(self) -> None:
        response = RawResponse("u", 200, "0123456789".encode())
        assert response.preview(4) == "0123…"
        assert response.preview(20) == "0123456789"

    def test_text_replaces_undecodable_bytes(self) -> None:
        assert RawResponse("u", 200, b"ok\xff").text == "ok\ufffd"


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------

class TestFetcher:
    def test_successful_fetch(self) -> None:
        with respx.mock:
            respx.get("https://novel.test/page").mock(
                return_value=httpx.Response(200, text="<p>hi</p>")
            )
            response = _fetcher().fetch("https://novel.test/page")

        assert response.status_code == 200
        assert response.content == b"<p>hi</p>"
        assert response.url == "https://novel.test/page"

    def test_sends_user_agent_and_extra_headers(self) -> None:
        with respx.mock:
            route = respx.get("https://novel.test/").mock(return_value=httpx.Response(200))
            _fetcher().fetch("https://novel.test/", headers={"Referer": "https://r.test/"})

        request = route.calls.last.request
        assert request.headers["referer"] == "https://r.test/"
        assert "Mozilla" in request.headers["user-agent"]

    def test_blank_url_is_rejected(self) -> None:
        with pytest.raises(SourceConfigError):
            _fetcher().fetch("   ")

    def test_relative_url_is_a_config_error(self) -> None:
        with pytest.raises(SourceConfigError):
            _fetcher().fetch("/search?key=x")

    def test_malformed_url_is_a_config_error(self) -> None:
        with patch("bookrule.scraper.fetcher.time.sleep") as mock_sleep:
            with pytest.raises(SourceConfigError) as excinfo:
                _fetcher().fetch("http://novel.test:abc/b")

        assert "Invalid URL" in str(excinfo.value)
        assert excinfo.value.url == "http://novel.test:abc/b"
        mock_sleep.assert_not_called()

    def test_transport_error_is_retried_with_linear_backoff(self) -> None:
        with respx.mock:
            route = respx.get("https://novel.test/flaky").mock(
                side_effect=[
                    httpx.ConnectError("refused"),
                    httpx.ReadTimeout("slow"),
                    httpx.Response(200, text="ok"),
                ]
            )
            with patch("bookrule.scraper.fetcher.time.sleep") as mock_sleep:
                response = _fetcher().fetch("https://novel.test/flaky")

        assert response.content == b"ok"
        assert route.call_count == 3
        assert mock_sleep.call_args_list == [call(0.5), call(1.0)]

    def test_retries_exhausted_raises_transport_error(self) -> None:
        with respx.mock:
            route = respx.get("https://novel.test/down").mock(
                side_effect=httpx.ConnectError("refused")
            )
            with patch("bookrule.scraper.fetcher.time.sleep"):
                with pytest.raises(TransportError) as excinfo:
                    _fetcher().fetch("https://novel.test/down")

        assert route.call_count == 3
        assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
        assert excinfo.value.url == "https://novel.test/down"

    def test_error_status_is_not_retried(self) -> None:
        with respx.mock:
            route = respx.get("https://novel.test/broken").mock(
                return_value=httpx.Response(500, text="oops")
            )
            with patch("bookrule.scraper.fetcher.time.sleep") as mock_sleep:
                response = _fetcher().fetch("https://novel.test/broken")

        assert response.status_code == 500
        assert route.call_count == 1
        mock_sleep.assert_not_called()

    def test_fetch_ok_raises_on_error_status(self) -> None:
        with respx.mock:
            respx.get("https://novel.test/missing").mock(
                return_value=httpx.Response(404, text="Not Found")
            )
            with pytest.raises(HttpStatusError) as excinfo:
                _fetcher().fetch_ok("https://novel.test/missing")

        assert excinfo.value.status_code == 404

    def test_relative_redirect_keeps_original_query(self) -> None:
        with respx.mock:
            respx.get("https://novel.test/old").mock(
                return_value=httpx.Response(302, headers={"Location": "/new"})
            )
            new = respx.get(url__startswith="https://novel.test/new").mock(
                return_value=httpx.Response(200, text="moved")
            )
            response = _fetcher().fetch("https://novel.test/old?key=abc&page=2")

        assert response.content == b"moved"
        assert str(new.calls.last.request.url) == "https://novel.test/new?key=abc&page=2"

    def test_redirect_with_own_query_replaces_original(self) -> None:
        with respx.mock:
            respx.get("https://novel.test/old").mock(
                return_value=httpx.Response(301, headers={"Location": "/new?id=7"})
            )
            new = respx.get(url__startswith="https://novel.test/new").mock(
                return_value=httpx.Response(200)
            )
            _fetcher().fetch("https://novel.test/old?key=abc")

        assert str(new.calls.last.request.url) == "https://novel.test/new?id=7"

    def test_absolute_redirect_is_followed_as_is(self) -> None:
        with respx.mock:
            respx.get("https://a.test/x").mock(
                return_value=httpx.Response(302, headers={"Location": "https://b.test/y"})
            )
            target = respx.get("https://b.test/y").mock(return_value=httpx.Response(200))
            response = _fetcher().fetch("https://a.test/x?q=1")

        assert target.call_count == 1
        assert str(target.calls.last.request.url) == "https://b.test/y"
        assert response.url == "https://b.test/y"

    def test_redirect_loop_is_bounded(self) -> None:
        with respx.mock:
            route = respx.get("https://novel.test/loop").mock(
                return_value=httpx.Response(302, headers={"Location": "/loop"})
            )
            with pytest.raises(TransportError):
                _fetcher(max_redirects=2).fetch("https://novel.test/loop")

        assert route.call_count == 3

    def test_redirect_without_location_is_returned(self) -> None:
        with respx.mock:
            respx.get("https://novel.test/r").mock(return_value=httpx.Response(302))
            response = _fetcher().fetch("https://novel.test/r")

        assert response.status_code == 302

    def test_context_manager_closes_transport(self) -> None:
        class _Transport:
            closed = 0

            def get(self, url, headers, timeout):
                return RawResponse(url, 200, b"")

            def close(self) -> None:
                self.closed += 1

        transport = _Transport()
        with Fetcher(transport) as fetcher:
            assert fetcher.fetch("https://novel.test/").ok

        assert transport.closed == 1

    def test_close_tolerates_transport_without_close(self) -> None:
        class _Transport:
            def get(self, url, headers, timeout):
                return RawResponse(url, 200, b"")

        Fetcher(_Transport()).close()


class TestRedirectTarget:
    def test_relative_path(self) -> None:
        assert redirect_target("https://h.test/a/b?x=1", "c") == "https://h.test/a/c?x=1"

    def test_protocol_relative(self) -> None:
        assert redirect_target("https://h.test/a", "//cdn.test/p") == "https://cdn.test/p"


# ---------------------------------------------------------------------------
# URL templating
# ---------------------------------------------------------------------------

class TestUrls:
    def test_search_url_scenario(self) -> None:
        url = build_search_url("https://x.com", "/search?key={key}&page={page}", "斗破", 2)
        assert url == "https://x.com/search?key=%E6%96%97%E7%A0%B4&page=2"

    def test_keyword_placeholder_is_a_synonym(self) -> None:
        url = build_search_url("https://x.com", "/s?q={keyword}", "a b&c")
        assert url == "https://x.com/s?q=a%20b%26c"

    def test_page_is_at_least_one(self) -> None:
        assert fill_template("/p/{page}", page=0) == "/p/1"

    def test_absolute_template_ignores_base(self) -> None:
        url = build_search_url("https://x.com", "https://api.y.com/s?k={key}", "k")
        assert url == "https://api.y.com/s?k=k"

    def test_full_url_resolution(self) -> None:
        assert build_full_url("https://x.com/book/1/", "2.html") == "https://x.com/book/1/2.html"
        assert build_full_url("https://x.com/book/1/", "/c/2") == "https://x.com/c/2"
        assert build_full_url("https://x.com", "http://y.com/z") == "http://y.com/z"
        assert build_full_url("", "/rel") == "/rel"

    def test_explore_url(self) -> None:
        assert build_explore_url("https://x.com", "/rank/{page}", 3) == "https://x.com/rank/3"


class TestExploreEntries:
    def test_title_url_pairs(self) -> None:
        text = "Hot::/rank/hot\nNew::/rank/new&&/rank/plain"
        assert parse_explore_entries(text) == [
            ("Hot", "/rank/hot"),
            ("New", "/rank/new"),
            ("/rank/plain", "/rank/plain"),
        ]

    def test_json_array(self) -> None:
        text = '[{"title": "Hot", "url": "/hot"}, {"title": "x"}, {"url": "/u"}]'
        assert parse_explore_entries(text) == [("Hot", "/hot"), ("/u", "/u")]

    def test_empty(self) -> None:
        assert parse_explore_entries(None) == []
        assert parse_explore_entries("  ") == []
