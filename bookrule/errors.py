"""Exception taxonomy for fetch and extraction failures.

A rule that matches nothing is *not* an error anywhere in this package; these
exceptions cover the cases that make a whole stage unusable.
"""

from __future__ import annotations


class BookRuleError(Exception):
    """Base class for every error raised by the engine."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.url = url

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} ({self.url})"
        return self.message


class TransportError(BookRuleError):
    """Network failure (timeout, DNS, connection) after all retries."""


class HttpStatusError(BookRuleError):
    """The server answered with a non-2xx status.  Never retried."""

    def __init__(self, message: str, status_code: int, url: str | None = None) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code

    def __str__(self) -> str:
        return f"{super().__str__()} [HTTP {self.status_code}]"


class SourceParseError(BookRuleError):
    """The response body could not be turned into a tree at all."""


class SourceConfigError(BookRuleError):
    """The rule set cannot drive the requested stage (missing base URL, etc.)."""
