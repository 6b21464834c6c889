"""Format-dispatching façade over the JSON and HTML evaluators.

:class:`RuleParser` sniffs a response body once, builds the matching tree and
routes every ``select_list`` / ``select_string`` call to it.  Neither call
raises when a rule finds nothing; absence is ``[]`` or ``""``.
"""

from __future__ import annotations

import json
from typing import Any, Union

from bs4 import BeautifulSoup

from bookrule.errors import SourceParseError
from bookrule.rules.html_eval import HtmlTree
from bookrule.rules.json_eval import JsonTree

ParsedSource = Union[JsonTree, HtmlTree]

_BOM = "\ufeff"


def looks_like_json(body: bytes | str) -> bool:
    """Return ``True`` when the first non-whitespace character is ``{`` or ``[``."""
    if isinstance(body, bytes):
        head = body.lstrip(b"\xef\xbb\xbf").lstrip()
        return head[:1] in (b"{", b"[")
    head = body.lstrip(_BOM).lstrip()
    return head[:1] in ("{", "[")


def parse_source(body: bytes | str) -> ParsedSource:
    """Decode *body* as JSON or HTML, decided by :func:`looks_like_json`.

    Raises:
        SourceParseError: If a JSON-looking body fails to decode, or the HTML
            parser rejects the input.  There is no HTML fallback for broken
            JSON.
    """
    if looks_like_json(body):
        text = body.lstrip(_BOM) if isinstance(body, str) else body
        try:
            return JsonTree(json.loads(text))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SourceParseError(f"Response looks like JSON but failed to decode: {exc}") from exc

    try:
        document = BeautifulSoup(body, "html.parser")
    except Exception as exc:
        raise SourceParseError(f"HTML parser rejected the response: {exc}") from exc
    return HtmlTree(document)


class RuleParser:
    """Evaluate rule strings against one response body.

    Example::

        parser = RuleParser.from_body(response.content)
        for item in parser.select_list(rule.book_list):
            name = parser.select_string(rule.name, context=item)
    """

    def __init__(self, tree: ParsedSource) -> None:
        self.tree = tree

    @classmethod
    def from_body(cls, body: bytes | str) -> RuleParser:
        return cls(parse_source(body))

    @property
    def is_json(self) -> bool:
        return self.tree.is_json

    @property
    def root(self) -> Any:
        if isinstance(self.tree, JsonTree):
            return self.tree.root
        return self.tree.document

    def select_list(self, rule: str | None, context: Any = None) -> list[Any]:
        """Return the items *rule* selects, scoped to *context* when given.

        For JSON an empty rule returns the context itself when it is a list.
        """
        return self.tree.select_list((rule or "").strip(), context)

    def select_string(self, rule: str | None, context: Any = None) -> str:
        """Return the string *rule* selects, scoped to *context* when given."""
        return self.tree.select_string((rule or "").strip(), context)
