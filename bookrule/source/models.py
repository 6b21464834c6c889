"""Rule set data model for a book source.

Mirrors the community JSON format: camelCase keys on the wire, snake_case
attributes here.  Every rule is an optional raw rule string; a missing rule
means "this field cannot be populated", never an error.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from typing import Any, ClassVar, Optional


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _json_key(f) -> str:
    return f.metadata.get("key") or _camel(f.name)


def _rule_value(value: Any) -> str | None:
    """Rule strings only; numbers, objects and nulls are treated as absent."""
    return value if isinstance(value, str) else None


class _RuleGroup:
    """Shared (de)serialisation for the five rule groups."""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None):
        data = data or {}
        kwargs = {f.name: _rule_value(data.get(_json_key(f))) for f in fields(cls)}
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {_json_key(f): getattr(self, f.name) for f in fields(self)}

    def rule(self, name: str) -> str | None:
        """Return the raw rule for field *name*, or ``None`` if unset."""
        return getattr(self, name, None)


@dataclass(frozen=True)
class BookListRule(_RuleGroup):
    book_list: Optional[str] = None
    name: Optional[str] = None
    author: Optional[str] = None
    intro: Optional[str] = None
    kind: Optional[str] = None
    last_chapter: Optional[str] = None
    update_time: Optional[str] = None
    book_url: Optional[str] = None
    cover_url: Optional[str] = None
    word_count: Optional[str] = None


@dataclass(frozen=True)
class SearchRule(BookListRule):
    check_key_word: Optional[str] = None


@dataclass(frozen=True)
class ExploreRule(BookListRule):
    pass


@dataclass(frozen=True)
class BookInfoRule(_RuleGroup):
    init: Optional[str] = None
    name: Optional[str] = None
    author: Optional[str] = None
    intro: Optional[str] = None
    kind: Optional[str] = None
    last_chapter: Optional[str] = None
    update_time: Optional[str] = None
    cover_url: Optional[str] = None
    toc_url: Optional[str] = None
    word_count: Optional[str] = None
    can_rename: Optional[str] = field(default=None, metadata={"key": "canReName"})
    download_urls: Optional[str] = None


@dataclass(frozen=True)
class TocRule(_RuleGroup):
    pre_update_js: Optional[str] = None
    chapter_list: Optional[str] = None
    chapter_name: Optional[str] = None
    chapter_url: Optional[str] = None
    format_js: Optional[str] = None
    is_volume: Optional[str] = None
    is_vip: Optional[str] = None
    is_pay: Optional[str] = None
    update_time: Optional[str] = None
    next_toc_url: Optional[str] = None


@dataclass(frozen=True)
class ContentRule(_RuleGroup):
    content: Optional[str] = None
    title: Optional[str] = None
    next_content_url: Optional[str] = None
    web_js: Optional[str] = None
    source_regex: Optional[str] = None
    replace_regex: Optional[str] = None
    image_style: Optional[str] = None
    image_decode: Optional[str] = None
    pay_action: Optional[str] = None


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _as_bool(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _split_groups(groups: str | None) -> list[str]:
    if not groups:
        return []
    return [g.strip() for g in groups.split(",") if g.strip()]


@dataclass(frozen=True, eq=False)
class BookSource:
    """A complete source: base URL, URL templates and the five rule groups.

    Identity is the base URL (``bookSourceUrl``), matching how sources are
    keyed when imported.  Script and login fields are carried through
    untouched; they are never evaluated.
    """

    book_source_url: str
    book_source_name: str = "未命名书源"
    book_source_group: Optional[str] = None
    book_source_type: int = 0
    book_url_pattern: Optional[str] = None
    custom_order: int = 0
    enabled: bool = True
    enabled_explore: bool = True
    book_source_comment: Optional[str] = None
    js_lib: Optional[str] = None
    enabled_cookie_jar: Optional[bool] = True
    concurrent_rate: Optional[str] = None
    header: Optional[str] = None
    login_url: Optional[str] = None
    login_ui: Optional[str] = None
    login_check_js: Optional[str] = None
    cover_decode_js: Optional[str] = None
    variable_comment: Optional[str] = None
    last_update_time: int = 0
    respond_time: int = 180000
    weight: int = 0
    explore_url: Optional[str] = None
    explore_screen: Optional[str] = None
    search_url: Optional[str] = None
    rule_search: Optional[SearchRule] = None
    rule_explore: Optional[ExploreRule] = None
    rule_book_info: Optional[BookInfoRule] = None
    rule_toc: Optional[TocRule] = None
    rule_content: Optional[ContentRule] = None

    _GROUPS: ClassVar[dict[str, type]] = {
        "rule_search": SearchRule,
        "rule_explore": ExploreRule,
        "rule_book_info": BookInfoRule,
        "rule_toc": TocRule,
        "rule_content": ContentRule,
    }
    _INTS: ClassVar[dict[str, int]] = {
        "book_source_type": 0,
        "custom_order": 0,
        "last_update_time": 0,
        "respond_time": 180000,
        "weight": 0,
    }
    _BOOLS: ClassVar[dict[str, bool]] = {"enabled": True, "enabled_explore": True}

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BookSource:
        """Build a source from its community JSON object.

        Unknown keys are ignored; wrongly-typed values fall back to defaults.
        """
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            value = data.get(_camel(f.name))
            if f.name in cls._GROUPS:
                if isinstance(value, dict):
                    kwargs[f.name] = cls._GROUPS[f.name].from_dict(value)
            elif f.name in cls._INTS:
                kwargs[f.name] = _as_int(value, cls._INTS[f.name])
            elif f.name in cls._BOOLS:
                kwargs[f.name] = _as_bool(value, cls._BOOLS[f.name])
            elif f.name == "enabled_cookie_jar":
                kwargs[f.name] = value if isinstance(value, bool) else None
            elif isinstance(value, str):
                kwargs[f.name] = value
        kwargs["book_source_url"] = kwargs.get("book_source_url") or ""
        if not kwargs.get("book_source_name"):
            kwargs.pop("book_source_name", None)
        return cls(**kwargs)

    @classmethod
    def from_json(cls, text: str) -> BookSource:
        return cls.from_dict(json.loads(text))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in self._GROUPS and value is not None:
                value = value.to_dict()
            out[_camel(f.name)] = value
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------
    def request_headers(self) -> dict[str, str]:
        """Decode the ``header`` field (a JSON object string).

        Invalid or non-object values yield no headers.
        """
        if not self.header:
            return {}
        try:
            raw = json.loads(self.header)
        except json.JSONDecodeError:
            return {}
        if not isinstance(raw, dict):
            return {}
        return {str(k): str(v) for k, v in raw.items() if v is not None}

    def display_name(self) -> str:
        if not self.book_source_group:
            return self.book_source_name
        return f"{self.book_source_name} ({self.book_source_group})"

    def has_group(self, group: str) -> bool:
        return group in _split_groups(self.book_source_group)

    def with_groups_added(self, groups: str) -> BookSource:
        merged = list(dict.fromkeys(
            _split_groups(self.book_source_group) + _split_groups(groups)
        ))
        return replace(self, book_source_group=",".join(merged))

    def with_groups_removed(self, groups: str) -> BookSource:
        if not self.book_source_group:
            return self
        drop = set(_split_groups(groups))
        remaining = [g for g in _split_groups(self.book_source_group) if g not in drop]
        return replace(self, book_source_group=",".join(remaining))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BookSource):
            return NotImplemented
        return other.book_source_url == self.book_source_url

    def __hash__(self) -> int:
        return hash(self.book_source_url)


def load_sources(text: str) -> list[BookSource]:
    """Parse an exported source file: a single object or an array of them.

    Array entries that are not objects are skipped.
    """
    data = json.loads(text)
    if isinstance(data, dict):
        return [BookSource.from_dict(data)]
    if isinstance(data, list):
        return [BookSource.from_dict(item) for item in data if isinstance(item, dict)]
    raise ValueError("Source file must contain a JSON object or array")
