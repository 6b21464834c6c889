"""Rule evaluation against a decoded JSON value tree.

Rules are used as plain keys first and as JSONPath expressions second, so
both ``"data.book_list"`` and ``"$..chapters[*]"`` work.  Dotted paths with
non-ASCII member names, which the JSONPath lexer rejects, are walked key by
key; any other path that fails to parse matches nothing.

Only a *trailing* reserved attribute keyword after an ``@`` is stripped; a bare
keyword such as ``"text"`` is looked up as an ordinary key.  HTML evaluation
treats the same bare keyword as "read the context", so one rule group is not
fully format-agnostic.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any

from jsonpath_ng.ext import parse as parse_jsonpath
from jsonpath_ng.lexer import JsonPathLexerError

from bookrule.rules.compiler import RESERVED_ATTRS


def rule_key(rule: str) -> str:
    """Return the lookup key for *rule*, dropping a trailing ``@attr``."""
    parts = rule.split("@")
    if len(parts) > 1 and parts[-1].strip() in RESERVED_ATTRS:
        parts.pop()
    return "@".join(parts).strip()


@lru_cache(maxsize=512)
def _compile_path(key: str):
    if key.startswith("$"):
        path = key
    elif key.startswith("["):
        path = "$" + key
    else:
        path = "$." + key
    return parse_jsonpath(path)


def _walk_members(root: Any, key: str) -> list[Any]:
    """Follow a plain ``a.b.0`` path by direct key and index lookups."""
    if key.startswith("$"):
        key = key[1:].lstrip(".")
    value = root
    for part in key.split("."):
        if isinstance(value, dict) and part in value:
            value = value[part]
            continue
        index = _index(value, part) if isinstance(value, list) else None
        if index is None:
            return []
        value = value[index]
    return [value]


def query_path(root: Any, key: str) -> list[Any]:
    """Run *key* as a JSONPath query and return the matched values in order."""
    if not key:
        return []
    try:
        expr = _compile_path(key)
    except JsonPathLexerError:
        # The lexer only accepts ASCII member names (``数据.书名``).
        return _walk_members(root, key)
    except Exception:
        # The parser raises bare Exception for malformed paths, which match
        # nothing.
        return []
    try:
        return [match.value for match in expr.find(root)]
    except Exception:
        return []


def _index(root: list, key: str) -> int | None:
    if not (key.isascii() and key.isdigit()):
        return None
    index = int(key)
    if index < len(root):
        return index
    return None


def select_value(root: Any, rule: str) -> Any:
    """Return the first value *rule* selects from *root*, or ``None``."""
    key = rule_key(rule)
    if isinstance(root, dict) and key in root:
        return root[key]
    if isinstance(root, list):
        index = _index(root, key)
        if index is not None:
            return root[index]
    matches = query_path(root, key)
    if not matches:
        return None
    return matches[0]


def select_list(root: Any, rule: str) -> list[Any]:
    """Return every value *rule* selects from *root*.

    Matched lists are spliced into the result, so a rule that points at a key
    holding a list yields the list's items rather than a one-element list.
    """
    key = rule_key(rule)
    if isinstance(root, dict) and isinstance(root.get(key), list):
        return list(root[key])
    if isinstance(root, list):
        index = _index(root, key)
        if index is not None and isinstance(root[index], list):
            return list(root[index])

    results: list[Any] = []
    for value in query_path(root, key):
        if isinstance(value, list):
            results.extend(value)
        elif value is not None:
            results.append(value)
    return results


def stringify(value: Any) -> str:
    """Render a JSON value as text.

    Lists become newline-joined paragraphs (empty entries dropped); objects
    are re-serialised compactly.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        parts = (stringify(item) for item in value)
        return "\n".join(part for part in parts if part)
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


class JsonTree:
    """A decoded JSON document exposing the two rule operations."""

    is_json = True

    def __init__(self, root: Any) -> None:
        self.root = root

    def select_list(self, rule: str, context: Any = None) -> list[Any]:
        target = self.root if context is None else context
        if not rule:
            return list(target) if isinstance(target, list) else []
        return select_list(target, rule)

    def select_string(self, rule: str, context: Any = None) -> str:
        if not rule:
            return ""
        target = self.root if context is None else context
        return stringify(select_value(target, rule))
