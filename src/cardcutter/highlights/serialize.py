"""Serialise an edited fragment back to the ``<HL>`` tag grammar.

Walks the same events as the position model. Highlight containers open
``<HL>`` only when entering from depth 0 and close it only when depth
returns to 0, so nested containers never nest tags. Each line break closes
the open run and reopens it on the next line so every line stays balanced
on its own.
"""

# Pattern: Functional Core (pure functions, no I/O)

from __future__ import annotations

import re

from cardcutter.highlights.fragment import iter_fragment
from cardcutter.tagged.grammar import HL_CLOSE, HL_OPEN
from cardcutter.tagged.repair import sanitize

_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def serialize_to_tagged(fragment_html: str) -> str:
    """Convert a rendered fragment to stored tagged content.

    Runs of three or more newlines collapse to a blank line and the result
    is sanitised and trimmed.

    Examples:
        >>> serialize_to_tagged('he<span class="highlight">llo</span>')
        'he<HL>llo</HL>'
        >>> serialize_to_tagged('<span class="highlight">a<br>b</span>')
        '<HL>a</HL>\\n<HL>b</HL>'
    """
    parts: list[str] = []
    depth = 0

    for event in iter_fragment(fragment_html):
        if event.kind == "text":
            parts.append(event.text)
        elif event.kind == "open":
            if depth == 0:
                parts.append(HL_OPEN)
            depth += 1
        elif event.kind == "close":
            if depth == 0:
                continue
            depth -= 1
            if depth == 0:
                parts.append(HL_CLOSE)
        elif depth > 0:
            parts.append(f"{HL_CLOSE}\n{HL_OPEN}")
        else:
            parts.append("\n")

    if depth > 0:
        parts.append(HL_CLOSE)

    result = sanitize("".join(parts))
    result = _EXCESS_NEWLINES.sub("\n\n", result)
    return sanitize(result.strip())
