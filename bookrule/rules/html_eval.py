"""Rule evaluation against a parsed HTML document (BeautifulSoup)."""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag
from bs4.element import NavigableString, PreformattedString
from soupsieve import SelectorSyntaxError

from bookrule.rules.compiler import CompiledRule, compile_rule


def select_elements(context: Tag, rule: CompiledRule) -> list[Tag]:
    """Return every element under *context* matching *rule*, in document order.

    An empty rule selects nothing; use :func:`select_string` with an empty
    rule to read the context element itself.
    """
    if not rule.selector_steps:
        return []
    try:
        return context.select(rule.css)
    except SelectorSyntaxError:
        return []


def _first(context: Tag, rule: CompiledRule) -> Tag | None:
    if not rule.selector_steps:
        if isinstance(context, BeautifulSoup):
            return context.html or context
        return context
    try:
        return context.select_one(rule.css)
    except SelectorSyntaxError:
        return None


def own_text(element: Tag) -> str:
    """Concatenate only the text nodes that are direct children of *element*.

    Text inside nested tags (inline ads, decorations) is excluded, as are
    comments and other non-text string nodes.
    """
    return "".join(
        str(node)
        for node in element.children
        if isinstance(node, NavigableString)
        and not isinstance(node, PreformattedString)
    )


def read_attribute(element: Tag, attribute: str | None) -> str:
    """Read *attribute* (a reserved keyword or a literal attribute name)."""
    if attribute is None or attribute == "text":
        return element.get_text().strip()
    if attribute == "html":
        return element.decode_contents().strip()
    if attribute == "textNodes":
        return own_text(element).strip()
    value = element.get(attribute)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return value


def select_string(context: Tag, rule: CompiledRule) -> str:
    """Return the text/markup/attribute of the first match, or ``""``."""
    target = _first(context, rule)
    if target is None:
        return ""
    return read_attribute(target, rule.attribute)


class HtmlTree:
    """A parsed HTML document exposing the two rule operations."""

    is_json = False

    def __init__(self, document: BeautifulSoup) -> None:
        self.document = document

    def _scope(self, context: Tag | None) -> Tag:
        if context is None:
            return self.document
        if not isinstance(context, Tag):
            raise TypeError(
                f"HTML rules need an element context, got {type(context).__name__}"
            )
        return context

    def select_list(self, rule: str, context: Tag | None = None) -> list[Tag]:
        if not rule or not rule.strip():
            return []
        return select_elements(self._scope(context), compile_rule(rule))

    def select_string(self, rule: str, context: Tag | None = None) -> str:
        if not rule or not rule.strip():
            return ""
        return select_string(self._scope(context), compile_rule(rule))
