"""Rule compiler: turns a raw rule string into a :class:`CompiledRule`.

Grammar (community "book source" default rules)::

    rule    := segment ('@' segment)*
    segment := 'class.' IDENT | 'id.' IDENT | 'tag.' IDENT | IDENT | ATTR
    ATTR    := text | html | href | src | textNodes

A trailing ATTR segment selects *what* to read from the matched node; the
remaining segments select *which* node, joined as a descendant CSS query.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

RESERVED_ATTRS = frozenset({"text", "html", "href", "src", "textNodes"})

_PREFIXES = (
    ("class.", "."),
    ("id.", "#"),
    ("tag.", ""),
)


@dataclass(frozen=True)
class CompiledRule:
    """Normalised form of a rule string.

    ``attribute`` is ``None`` when the rule has no reserved trailing segment;
    HTML evaluation reads that as ``text``, JSON evaluation ignores it.
    """

    selector_steps: tuple[str, ...] = ()
    attribute: str | None = None

    @property
    def css(self) -> str:
        """Selector steps joined into a single descendant-combinator query."""
        return " ".join(self.selector_steps)


def normalize_segment(segment: str) -> str:
    """Translate the ``class.``/``id.``/``tag.`` shorthands into CSS."""
    segment = segment.strip()
    for prefix, replacement in _PREFIXES:
        if segment.startswith(prefix):
            return replacement + segment[len(prefix):]
    return segment


@lru_cache(maxsize=1024)
def compile_rule(rule: str | None) -> CompiledRule:
    """Compile *rule*.  An empty or ``None`` rule compiles to the empty rule,
    which evaluators read as "the current context itself"."""
    segments = [part.strip() for part in (rule or "").split("@")]
    segments = [part for part in segments if part]
    if not segments:
        return CompiledRule()

    attribute = None
    if segments[-1] in RESERVED_ATTRS:
        attribute = segments.pop()

    steps = tuple(s for s in (normalize_segment(seg) for seg in segments) if s)
    return CompiledRule(selector_steps=steps, attribute=attribute)
