"""HTTP transport contract and its httpx implementation.

The fetcher only needs ``get(url, headers, timeout) -> RawResponse``; tests and
alternative clients can supply anything with that method.  Redirects are left
to :class:`~bookrule.scraper.fetcher.Fetcher`, so the transport must not
follow them itself.
"""

from __future__ import annotations

from typing import Protocol

import httpx

from bookrule.config import settings
from bookrule.scraper.models import RawResponse


class HttpTransport(Protocol):
    def get(self, url: str, headers: dict[str, str], timeout: float) -> RawResponse:
        """Issue a GET.  May raise ``httpx.TransportError`` on network failure."""


class HttpxTransport:
    """``httpx.Client``-backed transport with redirects disabled."""

    def __init__(self, client: httpx.Client | None = None) -> None:
        self._client = client or httpx.Client(
            timeout=settings.request_timeout,
            follow_redirects=False,
        )

    def get(self, url: str, headers: dict[str, str], timeout: float) -> RawResponse:
        response = self._client.get(url, headers=headers, timeout=timeout)
        return RawResponse(
            url=str(response.url),
            status_code=response.status_code,
            content=response.content,
            headers={k.lower(): v for k, v in response.headers.items()},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
