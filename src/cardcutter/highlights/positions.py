"""Position-based highlight model.

Highlight edits never patch a rendered tree in place. Instead the fragment
is flattened to ``text`` plus absolute ``[start, end)`` ranges, the ranges
are mutated as plain values, and a fresh fragment is rebuilt::

    to_position_data(html) -> add_highlight / remove_highlight -> rebuild(...)

Range invariants after every public function: sorted by ``start``,
non-overlapping, no zero-length ranges, adjacent or overlapping ranges of
the same colour merged.

Where ranges of *different* colours overlap, the one later in the input
list wins the overlapping characters (so a newly added range repaints
whatever was under it).
"""

# Pattern: Functional Core (pure functions, no I/O)

from __future__ import annotations

import html as html_module
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from cardcutter.highlights.fragment import DEFAULT_COLOR, HIGHLIGHT_CLASS, iter_fragment
from cardcutter.tagged.grammar import HL_CLOSE, HL_OPEN, HL_TAG_PATTERN
from cardcutter.tagged.repair import sanitize

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HighlightRange:
    """An absolute ``[start, end)`` character interval with a colour."""

    start: int
    end: int
    color: str = DEFAULT_COLOR

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and start < self.end


@dataclass(frozen=True)
class PositionData:
    """Flat text of one editable node plus its highlight ranges."""

    text: str
    highlights: tuple[HighlightRange, ...] = ()


@dataclass(frozen=True)
class Segment:
    """A maximal stretch of text that is either plain or one colour."""

    text: str
    color: str | None = None

    @property
    def highlighted(self) -> bool:
        return self.color is not None


@dataclass(frozen=True)
class SelectionAnchor:
    """A selection expressed as (text-node index, offset) pairs.

    Indices count text nodes of the fragment in document order, matching a
    browser TreeWalker over ``SHOW_TEXT``.
    """

    start_node: int
    start_offset: int
    end_node: int
    end_offset: int


# ---------------------------------------------------------------------------
# Range algebra
# ---------------------------------------------------------------------------


def _without(
    ranges: Iterable[HighlightRange], sel_start: int, sel_end: int
) -> list[HighlightRange]:
    """Cut ``[sel_start, sel_end)`` out of every range, keeping the rest."""
    result: list[HighlightRange] = []
    for hl in ranges:
        if not hl.overlaps(sel_start, sel_end):
            result.append(hl)
            continue
        # Partial overlap keeps the part(s) outside the selection;
        # full containment keeps nothing
        if hl.start < sel_start:
            result.append(replace(hl, end=sel_start))
        if hl.end > sel_end:
            result.append(replace(hl, start=sel_end))
    return result


def merge_ranges(ranges: Iterable[HighlightRange]) -> list[HighlightRange]:
    """Sort by start and merge same-colour ranges that touch or overlap.

    Zero-length ranges are dropped.

    Examples:
        >>> merge_ranges([HighlightRange(5, 10), HighlightRange(0, 5)])
        [HighlightRange(start=0, end=10, color='#00FF00')]
    """
    ordered = sorted((r for r in ranges if r.start < r.end), key=lambda r: r.start)
    merged: list[HighlightRange] = []
    for hl in ordered:
        if merged:
            last = merged[-1]
            if last.end >= hl.start and last.color == hl.color:
                merged[-1] = replace(last, end=max(last.end, hl.end))
                continue
        merged.append(hl)
    return merged


def normalize_ranges(
    ranges: Iterable[HighlightRange], text_length: int | None = None
) -> list[HighlightRange]:
    """Bring arbitrary ranges back to the model invariants.

    Ranges are clamped to ``[0, text_length]`` (or just to ``>= 0`` when no
    length is given), degenerate ranges are dropped, overlapping ranges of
    different colours are resolved in favour of the later range, and the
    survivors are merged.
    """
    painted: list[HighlightRange] = []
    for hl in ranges:
        start = max(0, hl.start)
        end = hl.end if text_length is None else min(hl.end, text_length)
        if text_length is not None:
            start = min(start, text_length)
        if start >= end:
            continue
        hl = replace(hl, start=start, end=end)
        if any(p.color != hl.color and p.overlaps(start, end) for p in painted):
            painted = _without(painted, start, end)
        painted.append(hl)
    return merge_ranges(painted)


def add_highlight(
    ranges: Iterable[HighlightRange], new_range: HighlightRange
) -> list[HighlightRange]:
    """Add ``new_range`` and re-establish the invariants.

    Examples:
        >>> add_highlight([HighlightRange(0, 5)], HighlightRange(5, 10))
        [HighlightRange(start=0, end=10, color='#00FF00')]
    """
    return normalize_ranges([*ranges, new_range])


def remove_highlight(
    ranges: Iterable[HighlightRange], sel_start: int, sel_end: int
) -> list[HighlightRange]:
    """Remove highlighting from ``[sel_start, sel_end)``.

    Ranges outside the selection are kept, ranges inside it are dropped,
    and ranges straddling an edge are split.

    Examples:
        >>> kept = remove_highlight([HighlightRange(0, 10)], 3, 7)
        >>> [(r.start, r.end) for r in kept]
        [(0, 3), (7, 10)]
    """
    if sel_start > sel_end:
        sel_start, sel_end = sel_end, sel_start
    return merge_ranges(_without(ranges, sel_start, sel_end))


def selection_has_highlight(
    ranges: Iterable[HighlightRange], sel_start: int, sel_end: int
) -> bool:
    """True when any character of the selection is highlighted.

    The editor's toggle removes highlighting in that case, and adds it
    otherwise.
    """
    if sel_start > sel_end:
        sel_start, sel_end = sel_end, sel_start
    return any(hl.overlaps(sel_start, sel_end) for hl in ranges)


def recolor(ranges: Iterable[HighlightRange], color: str) -> list[HighlightRange]:
    """Give every range the same colour (the card's colour changed)."""
    return merge_ranges(replace(hl, color=color) for hl in ranges)


# ---------------------------------------------------------------------------
# Fragment <-> positions
# ---------------------------------------------------------------------------


def to_position_data(
    fragment_html: str, default_color: str = DEFAULT_COLOR
) -> PositionData:
    """Flatten a rendered fragment to text plus highlight ranges.

    Walks the fragment depth-first with a running offset, opening a range
    on entering a highlight container and closing it on leaving.
    """
    chars: list[str] = []
    offset = 0
    open_stack: list[tuple[int, str]] = []
    ranges: list[HighlightRange] = []

    for event in iter_fragment(fragment_html, default_color):
        if event.kind == "text":
            chars.append(event.text)
            offset += len(event.text)
        elif event.kind == "break":
            chars.append("\n")
            offset += 1
        elif event.kind == "open":
            open_stack.append((offset, event.color or default_color))
        elif open_stack:
            start, color = open_stack.pop()
            ranges.append(HighlightRange(start, offset, color))

    text = "".join(chars)
    return PositionData(text, tuple(normalize_ranges(ranges, len(text))))


def segments(text: str, ranges: Iterable[HighlightRange]) -> list[Segment]:
    """Alternating plain/highlighted segments covering ``text`` exactly once."""
    result: list[Segment] = []
    last = 0
    for hl in normalize_ranges(ranges, len(text)):
        start = max(hl.start, last)
        if start >= hl.end:
            continue
        if start > last:
            result.append(Segment(text[last:start]))
        result.append(Segment(text[start : hl.end], hl.color))
        last = hl.end
    if last < len(text):
        result.append(Segment(text[last:]))
    return result


def _span(text: str, color: str) -> str:
    colour = html_module.escape(color)
    return (
        f'<span class="{HIGHLIGHT_CLASS}" data-color="{colour}" '
        f'style="background-color: {colour}">'
        f"{html_module.escape(text, quote=False)}</span>"
    )


def rebuild(text: str, ranges: Iterable[HighlightRange]) -> str:
    """Build a fragment from flat text and ranges.

    Plain segments become escaped text, highlighted segments become
    ``<span class="highlight">`` elements.
    """
    parts: list[str] = []
    for seg in segments(text, ranges):
        if seg.color is None:
            parts.append(html_module.escape(seg.text, quote=False))
        else:
            parts.append(_span(seg.text, seg.color))
    return "".join(parts)


def restore_selection(
    fragment_html: str, start_pos: int, end_pos: int
) -> SelectionAnchor | None:
    """Locate absolute offsets as text-node anchors in a fragment.

    Returns ``None`` when either position cannot be resolved (the text
    shrank, or the positions are negative or reversed).
    """
    if start_pos < 0 or end_pos < start_pos:
        return None

    offset = 0
    node_index = 0
    start: tuple[int, int] | None = None
    end: tuple[int, int] | None = None

    for event in iter_fragment(fragment_html):
        if event.kind == "text":
            node_end = offset + len(event.text)
            if start is None and offset <= start_pos <= node_end:
                start = (node_index, start_pos - offset)
            if end is None and offset <= end_pos <= node_end:
                end = (node_index, end_pos - offset)
            offset = node_end
            node_index += 1
            if start is not None and end is not None:
                return SelectionAnchor(start[0], start[1], end[0], end[1])
        elif event.kind == "break":
            offset += 1

    logger.debug("Selection %d-%d not found in fragment", start_pos, end_pos)
    return None


# ---------------------------------------------------------------------------
# Stored tagged content <-> positions
# ---------------------------------------------------------------------------


def position_data_from_tagged(
    content: str, color: str = DEFAULT_COLOR
) -> PositionData:
    """Flatten stored ``<HL>`` content to text plus ranges of one colour."""
    content = sanitize(content)
    chars: list[str] = []
    offset = 0
    depth = 0
    run_start = 0
    ranges: list[HighlightRange] = []
    last = 0

    for match in HL_TAG_PATTERN.finditer(content):
        piece = content[last : match.start()]
        chars.append(piece)
        offset += len(piece)
        last = match.end()
        if match.group(1):
            if depth == 1:
                ranges.append(HighlightRange(run_start, offset, color))
            depth = max(0, depth - 1)
        else:
            if depth == 0:
                run_start = offset
            depth += 1
    tail = content[last:]
    chars.append(tail)
    offset += len(tail)
    if depth > 0:
        ranges.append(HighlightRange(run_start, offset, color))

    text = "".join(chars)
    return PositionData(text, tuple(normalize_ranges(ranges, len(text))))


def tagged_from_position_data(data: PositionData) -> str:
    """Serialise text and ranges to ``<HL>`` content.

    The tag grammar has a single highlight layer, so colours are dropped.
    """
    parts: list[str] = []
    for seg in segments(data.text, data.highlights):
        if seg.highlighted:
            parts.append(f"{HL_OPEN}{seg.text}{HL_CLOSE}")
        else:
            parts.append(seg.text)
    return sanitize("".join(parts))


def render_fragment(content: str, color: str = DEFAULT_COLOR) -> str:
    """Render stored content as the editor fragment."""
    data = position_data_from_tagged(content, color)
    return rebuild(data.text, data.highlights)


def apply_edit(
    data: PositionData,
    sel_start: int,
    sel_end: int,
    color: str,
) -> PositionData:
    """Toggle highlighting over a selection.

    Removes highlighting when any selected character is highlighted,
    otherwise highlights the whole selection in ``color``.
    """
    if sel_start > sel_end:
        sel_start, sel_end = sel_end, sel_start
    ranges: Sequence[HighlightRange] = data.highlights
    if selection_has_highlight(ranges, sel_start, sel_end):
        new_ranges = remove_highlight(ranges, sel_start, sel_end)
    else:
        new_ranges = add_highlight(ranges, HighlightRange(sel_start, sel_end, color))
    return PositionData(data.text, tuple(normalize_ranges(new_ranges, len(data.text))))
