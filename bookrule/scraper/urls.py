"""URL templating and resolution for source requests."""

from __future__ import annotations

import json
import re
from urllib.parse import quote, urljoin

_ENTRY_SPLIT = re.compile(r"\n|&&")


def build_full_url(base_url: str, url: str) -> str:
    """Resolve *url* against *base_url* unless it is already absolute http(s)."""
    url = url.strip()
    if url.startswith("http://") or url.startswith("https://"):
        return url
    if not base_url:
        return url
    return urljoin(base_url, url)


def fill_template(template: str, keyword: str | None = None, page: int = 1) -> str:
    """Substitute ``{key}``/``{keyword}`` (percent-encoded) and ``{page}``."""
    page = max(page, 1)
    url = template
    if keyword is not None:
        encoded = quote(keyword, safe="")
        url = url.replace("{key}", encoded).replace("{keyword}", encoded)
    return url.replace("{page}", str(page))


def build_search_url(base_url: str, template: str, keyword: str, page: int = 1) -> str:
    """Build the absolute search URL for *keyword* on 1-based *page*.

    >>> build_search_url("https://x.com", "/search?key={key}&page={page}", "斗破", 2)
    'https://x.com/search?key=%E6%96%97%E7%A0%B4&page=2'
    """
    return build_full_url(base_url, fill_template(template.strip(), keyword, page))


def build_explore_url(base_url: str, template: str, page: int = 1) -> str:
    return build_full_url(base_url, fill_template(template.strip(), page=page))


def parse_explore_entries(explore_url: str | None) -> list[tuple[str, str]]:
    """Split an ``exploreUrl`` field into ordered ``(title, url)`` pairs.

    Accepts either ``title::url`` entries separated by newlines or ``&&``, or a
    JSON array of ``{"title": ..., "url": ...}`` objects.  An entry without
    ``::`` uses its URL as the title.
    """
    if not explore_url or not explore_url.strip():
        return []
    text = explore_url.strip()

    if text.startswith("["):
        try:
            items = json.loads(text)
        except json.JSONDecodeError:
            items = None
        if isinstance(items, list):
            pairs = []
            for item in items:
                if isinstance(item, dict) and item.get("url"):
                    url = str(item["url"]).strip()
                    pairs.append((str(item.get("title") or url).strip(), url))
            return pairs

    pairs = []
    for entry in _ENTRY_SPLIT.split(text):
        entry = entry.strip()
        if not entry:
            continue
        title, sep, url = entry.partition("::")
        if not sep:
            title, url = entry, entry
        url = url.strip()
        if url:
            pairs.append((title.strip() or url, url))
    return pairs
