"""Parser and serialiser for the tagged-document grammar.

Grammar, applied left to right (block tags never nest)::

    [TAGLINE]<runs>[/TAGLINE]\\n?          -> Tagline
    [LINK href="<url>"]<text>[/LINK]\\n?   -> Link
    [CITE]<text>[/CITE]\\n?                -> Citation
    anything else up to the next block    -> Text

``<runs>`` is plain text interleaved with ``<HL>...</HL>`` spans.

The parser is total: unclosed block tags are consumed as ordinary text and
every loop iteration advances by at least one character. Block patterns are
only tried where a matching closing tag still lies ahead, so unclosed tags
cost no rescans and parsing stays linear in the input length.
"""

# Pattern: Functional Core (pure functions, no I/O)

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from cardcutter.tagged.grammar import (
    BLOCK_CLOSE_PATTERN,
    BLOCK_START_PATTERN,
    CITE_PATTERN,
    HL_CLOSE,
    HL_OPEN,
    HL_TAG_PATTERN,
    LINK_PATTERN,
    TAGLINE_PATTERN,
)
from cardcutter.tagged.nodes import Citation, Link, Node, Run, Tagline, Text

if TYPE_CHECKING:
    from collections.abc import Iterable

# Blank lines at the start of a body text block are structural spacing
_LEADING_BLANK_LINES = re.compile(r"^(?:[ \t]*\n)+")


def parse_runs(text: str) -> list[Run]:
    """Split ``text`` into plain and highlight runs.

    Empty runs are not emitted, so the runs concatenate to exactly the
    visible text.

    Examples:
        >>> [(r.kind, r.text) for r in parse_runs("a <hl>b</hl> c")]
        [('plain', 'a '), ('highlight', 'b'), ('plain', ' c')]
    """
    runs: list[Run] = []
    last = 0
    # (tag start, body start) of the run waiting for its close
    open_at: tuple[int, int] | None = None
    for match in HL_TAG_PATTERN.finditer(text):
        if not match.group(1):
            if open_at is None:
                open_at = (match.start(), match.end())
            continue
        if open_at is None:
            continue
        tag_start, body_start = open_at
        if tag_start > last:
            runs.append(Run("plain", text[last:tag_start]))
        if match.start() > body_start:
            runs.append(Run("highlight", text[body_start : match.start()]))
        last = match.end()
        open_at = None
    if last < len(text):
        runs.append(Run("plain", text[last:]))
    return runs


def _last_closes(text: str) -> dict[str, int]:
    """Start of the last closing tag of each block kind; -1 when absent."""
    last = {"TAGLINE": -1, "LINK": -1, "CITE": -1}
    for match in BLOCK_CLOSE_PATTERN.finditer(text):
        last[match.group(1).upper()] = match.start()
    return last


def _match_block(
    text: str,
    pos: int,
    default_highlight_color: str | None,
    last_closes: dict[str, int],
) -> tuple[Node, int] | None:
    """Try each block pattern at ``pos``; return the node and end position.

    A pattern is skipped when no closing tag of its kind follows ``pos``.
    """
    m = TAGLINE_PATTERN.match(text, pos) if last_closes["TAGLINE"] > pos else None
    if m:
        return (
            Tagline(
                runs=parse_runs(m.group(1).strip()),
                highlight_color=default_highlight_color,
            ),
            m.end(),
        )

    m = LINK_PATTERN.match(text, pos) if last_closes["LINK"] > pos else None
    if m:
        href = (m.group(1) or "").strip()
        label = (m.group(2) or "").strip()
        # Either half stands in for the other when missing
        return Link(href=href or label, text=label or href), m.end()

    m = CITE_PATTERN.match(text, pos) if last_closes["CITE"] > pos else None
    if m:
        return Citation(text=m.group(1).strip()), m.end()

    return None


def _next_block_start(text: str, pos: int, last_closes: dict[str, int]) -> int:
    """Position of the next *complete* block tag after ``pos``, or len(text)."""
    search_from = pos
    while True:
        candidate = BLOCK_START_PATTERN.search(text, search_from)
        if candidate is None:
            return len(text)
        start = candidate.start()
        if start > pos and _match_block(text, start, None, last_closes) is not None:
            return start
        # Not a full block (e.g. unclosed [TAGLINE]); keep scanning
        search_from = start + 1


def parse(raw: str, default_highlight_color: str | None = None) -> list[Node]:
    """Parse tagged text into an ordered list of nodes.

    Args:
        raw: Tagged document text. CRLF line endings are normalised.
        default_highlight_color: Colour recorded on every Tagline/Text node.

    Returns:
        Nodes in document order. Whitespace-only stretches between blocks
        produce no node.
    """
    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    nodes: list[Node] = []
    last_closes = _last_closes(text)
    pos = 0

    while pos < len(text):
        block = _match_block(text, pos, default_highlight_color, last_closes)
        if block is not None:
            node, end = block
            nodes.append(node)
            pos = max(end, pos + 1)
            continue

        end = _next_block_start(text, pos, last_closes)
        chunk = text[pos:end]
        if chunk.strip():
            body = _LEADING_BLANK_LINES.sub("", chunk)
            nodes.append(
                Text(runs=parse_runs(body), highlight_color=default_highlight_color)
            )
        pos = max(end, pos + 1)

    return nodes


def serialize_runs(runs: Iterable[Run]) -> str:
    """Render runs back to inline ``<HL>`` markup."""
    parts: list[str] = []
    for run in runs:
        if run.highlighted:
            parts.append(f"{HL_OPEN}{run.text}{HL_CLOSE}")
        else:
            parts.append(run.text)
    return "".join(parts)


def serialize(nodes: Iterable[Node]) -> str:
    """Render nodes to the canonical wire format.

    Taglines end with one newline; links and citations are followed by a
    blank line; body text is emitted verbatim.
    """
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, Tagline):
            parts.append(f"[TAGLINE]{serialize_runs(node.runs)}[/TAGLINE]\n")
        elif isinstance(node, Link):
            parts.append(f'[LINK href="{node.href}"]{node.text}[/LINK]\n\n')
        elif isinstance(node, Citation):
            parts.append(f"[CITE]{node.text}[/CITE]\n\n")
        else:
            parts.append(serialize_runs(node.runs))
    return "".join(parts)


def split_lines(runs: Iterable[Run]) -> list[list[Run]]:
    """Split runs at embedded newlines.

    A run spanning a line break becomes two runs of the same kind on
    consecutive lines. Lines with no text come back as empty lists.

    Examples:
        >>> split_lines([Run("highlight", "a\\nb")])
        [[Run(kind='highlight', text='a')], [Run(kind='highlight', text='b')]]
    """
    lines: list[list[Run]] = [[]]
    for run in runs:
        pieces = run.text.split("\n")
        for i, piece in enumerate(pieces):
            if i > 0:
                lines.append([])
            if piece:
                lines[-1].append(Run(run.kind, piece))
    return lines
