"""Rule engine — compile rule strings and evaluate them against JSON or HTML."""

from bookrule.rules.compiler import RESERVED_ATTRS, CompiledRule, compile_rule
from bookrule.rules.parser import ParsedSource, RuleParser, looks_like_json, parse_source

__all__ = [
    "RESERVED_ATTRS",
    "CompiledRule",
    "compile_rule",
    "ParsedSource",
    "RuleParser",
    "looks_like_json",
    "parse_source",
]
