"""Scraper package — HTTP fetch, retry/redirect policy and URL templating."""

from bookrule.scraper.fetcher import Fetcher
from bookrule.scraper.models import RawResponse
from bookrule.scraper.transport import HttpTransport, HttpxTransport
from bookrule.scraper.urls import build_full_url, build_search_url

__all__ = [
    "Fetcher",
    "RawResponse",
    "HttpTransport",
    "HttpxTransport",
    "build_full_url",
    "build_search_url",
]
