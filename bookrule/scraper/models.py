"""Data models for the fetch layer."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RawResponse:
    """The raw HTTP response for a single GET."""

    url: str
    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 for previews; undecodable bytes are replaced."""
        return self.content.decode("utf-8", errors="replace")

    def preview(self, limit: int) -> str:
        body = self.text
        if len(body) <= limit:
            return body
        return body[:limit] + "…"
