"""HTTP fetcher with bounded retry and manual redirect handling.

Transport failures are retried with a linear backoff (``base_delay × attempt``).
Non-2xx statuses are never retried.  301/302 responses are followed by
reissuing the GET against ``Location``; a relative redirect without its own
query string keeps the original request's query.
"""

from __future__ import annotations

import time
from urllib.parse import urljoin, urlsplit, urlunsplit

import httpx

from bookrule.config import settings
from bookrule.errors import HttpStatusError, SourceConfigError, TransportError
from bookrule.scraper.models import RawResponse
from bookrule.scraper.transport import HttpTransport, HttpxTransport

_REDIRECT_STATUSES = (301, 302)


def redirect_target(current_url: str, location: str) -> str:
    """Return the URL to request after a redirect from *current_url*."""
    location = location.strip()
    if urlsplit(location).scheme:
        return location
    current = urlsplit(current_url)
    target = urlsplit(urljoin(current_url, location))
    query = target.query or current.query
    return urlunsplit((target.scheme, target.netloc, target.path, query, ""))


class Fetcher:
    """Fetch URLs through an :class:`HttpTransport`.

    All knobs default to ``settings`` so callers normally construct it bare.
    """

    def __init__(
        self,
        transport: HttpTransport | None = None,
        *,
        retries: int | None = None,
        base_delay: float | None = None,
        timeout: float | None = None,
        max_redirects: int | None = None,
    ) -> None:
        self.transport = transport or HttpxTransport()
        self.retries = settings.fetch_retries if retries is None else retries
        self.base_delay = settings.retry_base_delay if base_delay is None else base_delay
        self.timeout = settings.request_timeout if timeout is None else timeout
        self.max_redirects = (
            settings.max_redirects if max_redirects is None else max_redirects
        )

    def close(self) -> None:
        """Release the transport (its connection pool, for httpx)."""
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> Fetcher:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _headers(self, extra: dict[str, str] | None) -> dict[str, str]:
        headers = {"User-Agent": settings.user_agent}
        if extra:
            headers.update(extra)
        return headers

    def _get_with_retry(self, url: str, headers: dict[str, str]) -> RawResponse:
        attempt = 0
        while True:
            try:
                return self.transport.get(url, headers, self.timeout)
            except httpx.UnsupportedProtocol as exc:
                raise SourceConfigError(f"Unsupported URL: {exc}", url=url) from exc
            except httpx.InvalidURL as exc:
                raise SourceConfigError(f"Invalid URL: {exc}", url=url) from exc
            except httpx.TransportError as exc:
                attempt += 1
                if attempt > self.retries:
                    print(f"[fetch] {url} failed after {attempt} attempt(s): {exc!r:.120}")
                    raise TransportError(f"Network request failed: {exc}", url=url) from exc
                delay = self.base_delay * attempt
                print(
                    f"[fetch] {url} failed (attempt {attempt}/{self.retries + 1}); "
                    f"retrying in {delay:.1f}s …"
                )
                time.sleep(delay)

    def fetch(self, url: str, headers: dict[str, str] | None = None) -> RawResponse:
        """GET *url*, retrying transport errors and following 301/302.

        Returns the final response whatever its status.

        Raises:
            SourceConfigError: If *url* is blank, malformed or not an http(s)
                URL.
            TransportError: If every retry failed or the redirect chain is
                longer than ``max_redirects``.
        """
        url = url.strip()
        if not url:
            raise SourceConfigError("URL must not be empty")

        request_headers = self._headers(headers)
        current = url
        for _ in range(self.max_redirects + 1):
            response = self._get_with_retry(current, request_headers)
            location = response.headers.get("location")
            if response.status_code not in _REDIRECT_STATUSES or not location:
                return response
            current = redirect_target(current, location)

        raise TransportError(
            f"Too many redirects (more than {self.max_redirects})", url=url
        )

    def fetch_ok(self, url: str, headers: dict[str, str] | None = None) -> RawResponse:
        """Like :meth:`fetch` but raise :class:`HttpStatusError` on non-2xx."""
        response = self.fetch(url, headers)
        if not response.ok:
            raise HttpStatusError(
                "Request failed", status_code=response.status_code, url=response.url
            )
        return response
