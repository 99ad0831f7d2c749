"""Highlight tag normalisation and balance repair.

Text arrives from two unreliable sources: LLM output and hand editing. Both
produce ``<HL>`` markup that may be unbalanced, nested, oddly cased,
carrying attributes, or entity-encoded. This module turns any string into
one whose ``<HL>`` and ``</HL>`` tags alternate, so counts are equal and
runs never nest, without ever deleting or reordering a non-tag character.

Pipeline (fixed rule order):

1. ``normalize_tags`` - tag-format noise:
   a. decode entity-encoded tags (``&lt;HL&gt;``)
   b. map legacy aliases (``<mark>``, ``<highlight>``, ``[HL]``)
   c. canonicalise case, whitespace and attributes (``< hl x="1">``)
   d. collapse immediately adjacent ``</HL><HL>``
   e. drop empty ``<HL></HL>``
2. ``repair`` - depth-tracking balance rewrite
3. ``normalize_tags`` again, since repair may leave adjacent pairs

``sanitize`` runs the whole pipeline to a fixpoint and is idempotent.
"""

# Pattern: Functional Core (pure functions, no I/O)

from __future__ import annotations

import logging
import re

from cardcutter.tagged.grammar import (
    HL_CLOSE,
    HL_CLOSE_PATTERN,
    HL_OPEN,
    HL_OPEN_PATTERN,
    HL_TAG_PATTERN,
)

logger = logging.getLogger(__name__)

_ENTITY_LT = r"(?:&lt;|&#0*60;|&#x0*3c;)"
_ENTITY_GT = r"(?:&gt;|&#0*62;|&#x0*3e;)"
_ENTITY_TAG = re.compile(
    _ENTITY_LT + r"\s*(/?)\s*HL\s*" + _ENTITY_GT, re.IGNORECASE
)
_ALIAS_TAG = re.compile(r"<\s*(/?)\s*(?:mark|highlight)\b[^>]*>", re.IGNORECASE)
_BRACKET_TAG = re.compile(r"\[(/?)HL\]", re.IGNORECASE)
_NOISY_TAG = re.compile(r"<\s*(/?)\s*HL\b[^>]*>", re.IGNORECASE)
_ADJACENT = re.compile(r"</HL><HL>")
_EMPTY = re.compile(r"<HL></HL>")

# normalize -> repair -> normalize converges in one or two passes; the bound
# only guards against pathological entity nesting
_MAX_PASSES = 8


def count_open(text: str) -> int:
    """Number of ``<HL>`` tags (case-insensitive)."""
    return len(HL_OPEN_PATTERN.findall(text))


def count_close(text: str) -> int:
    """Number of ``</HL>`` tags (case-insensitive)."""
    return len(HL_CLOSE_PATTERN.findall(text))


def strip_tags(text: str) -> str:
    """Remove every ``<HL>``/``</HL>`` tag, leaving the plain text."""
    return HL_TAG_PATTERN.sub("", text)


def is_balanced(text: str) -> bool:
    return count_open(text) == count_close(text)


def is_well_formed(text: str) -> bool:
    """True when tags alternate open, close, open, ... and end closed.

    Such text is balanced and its highlight runs never nest.
    """
    open_run = False
    for match in HL_TAG_PATTERN.finditer(text):
        closing = bool(match.group(1))
        if closing != open_run:
            return False
        open_run = not closing
    return not open_run


def _canonical(match: re.Match[str]) -> str:
    return HL_CLOSE if match.group(1) else HL_OPEN


def _drop_orphan_closes(text: str) -> str:
    """Remove every ``</HL>`` seen at depth 0; keep all ``<HL>``."""
    out: list[str] = []
    depth = 0
    last = 0
    for match in HL_TAG_PATTERN.finditer(text):
        out.append(text[last : match.start()])
        last = match.end()
        if match.group(1):
            if depth == 0:
                continue
            depth -= 1
        else:
            depth += 1
        out.append(match.group(0))
    out.append(text[last:])
    return "".join(out)


def _close_open_runs(text: str) -> str:
    """Rewrite with a binary depth so highlight runs never nest.

    A second ``<HL>`` while a run is open auto-closes the previous run; a
    run still open at the end of input is closed. A ``</HL>`` with no open
    run has nothing to close and is dropped.
    """
    out: list[str] = []
    open_run = False
    last = 0
    for match in HL_TAG_PATTERN.finditer(text):
        out.append(text[last : match.start()])
        last = match.end()
        if match.group(1):
            if not open_run:
                continue
            open_run = False
        else:
            if open_run:
                out.append(HL_CLOSE)
            open_run = True
        out.append(match.group(0))
    out.append(text[last:])
    if open_run:
        out.append(HL_CLOSE)
    return "".join(out)


def repair(text: str) -> str:
    """Balance ``<HL>``/``</HL>`` counts with minimal edits.

    - Well-formed input (balanced, never nested) is returned unchanged.
    - More closes than opens: orphan closes (seen at depth 0) are dropped.
    - More opens than closes: a synthetic ``</HL>`` is inserted before any
      ``<HL>`` that arrives while a run is open, and one is appended if a
      run is still open at the end.

    Whatever is still nested or out of order afterwards (balanced nesting
    such as ``<HL>a <HL>b</HL> c</HL>``, or ``</HL>a<HL>``) goes through
    the surplus-open rewrite, which flattens it to non-overlapping runs.

    Examples:
        >>> repair("<HL>a<HL>b</HL>")
        '<HL>a</HL><HL>b</HL>'
        >>> repair("x</HL>y")
        'xy'
    """
    if is_well_formed(text):
        return text

    opens = count_open(text)
    closes = count_close(text)

    result = text
    if closes > opens:
        result = _drop_orphan_closes(result)
    if not is_well_formed(result):
        result = _close_open_runs(result)

    logger.debug(
        "Repaired highlight tags: %d open / %d close -> %d / %d",
        opens,
        closes,
        count_open(result),
        count_close(result),
    )
    return result


def normalize_tags(text: str) -> str:
    """Clean tag-format noise without touching plain text.

    Applies the rule sequence documented at module level, repeating until
    nothing changes.
    """
    result = text
    while True:
        previous = result
        result = _ENTITY_TAG.sub(_canonical, result)
        result = _ALIAS_TAG.sub(_canonical, result)
        result = _BRACKET_TAG.sub(_canonical, result)
        result = _NOISY_TAG.sub(_canonical, result)
        result = _ADJACENT.sub("", result)
        result = _EMPTY.sub("", result)
        if result == previous:
            return result


def sanitize(text: str) -> str:
    """Normalise and balance ``text``; safe to call any number of times.

    Run before persisting LLM-sourced or edited content and again before
    rendering.
    """
    result = text
    for _ in range(_MAX_PASSES):
        cleaned = normalize_tags(repair(normalize_tags(result)))
        if cleaned == result:
            return result
        result = cleaned
    logger.warning("Tag sanitisation did not converge; forcing balance")
    return repair(result)
