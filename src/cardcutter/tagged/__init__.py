"""Tagged-document grammar: nodes, parser, serialiser and tag repair."""

from cardcutter.tagged.blocks import CARD_SEPARATOR, card_block, join_card_blocks
from cardcutter.tagged.nodes import Citation, Link, Node, Run, RunKind, Tagline, Text
from cardcutter.tagged.parser import (
    parse,
    parse_runs,
    serialize,
    serialize_runs,
    split_lines,
)
from cardcutter.tagged.repair import (
    count_close,
    count_open,
    is_balanced,
    is_well_formed,
    normalize_tags,
    repair,
    sanitize,
    strip_tags,
)

__all__ = [
    "CARD_SEPARATOR",
    "Citation",
    "Link",
    "Node",
    "Run",
    "RunKind",
    "Tagline",
    "Text",
    "card_block",
    "count_close",
    "count_open",
    "is_balanced",
    "is_well_formed",
    "join_card_blocks",
    "normalize_tags",
    "parse",
    "parse_runs",
    "repair",
    "sanitize",
    "serialize",
    "serialize_runs",
    "split_lines",
    "strip_tags",
]
