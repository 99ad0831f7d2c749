"""Depth-first walk over a rendered content fragment.

A rendered fragment is the HTML the editor shows for one card's content:
plain text nodes (newlines kept, ``white-space: pre-wrap``), highlight
containers (any element whose class list contains ``highlight``), block
elements, and ``<br>``.

Every consumer (flattening to positions, serialising back to tags,
restoring a selection) walks the fragment through ``iter_fragment`` so
they agree on character offsets:

- text nodes contribute their decoded text verbatim
- ``<br>`` contributes one ``\\n``
- the end of a ``<p>``/``<div>``/``<li>`` contributes one ``\\n``
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from selectolax.lexbor import LexborHTMLParser

from cardcutter.config import normalise_hex_colour

if TYPE_CHECKING:
    from collections.abc import Iterator

HIGHLIGHT_CLASS = "highlight"
DEFAULT_COLOR = "#00FF00"

# Wrapper so leading whitespace survives HTML parsing (it would be dropped
# before <body> is opened)
_ROOT_ATTR = "data-cc-root"

_BLOCK_TAGS = frozenset(("p", "div", "li"))
_SKIP_TAGS = frozenset(("script", "style", "noscript", "template"))
_STYLE_COLOUR = re.compile(
    r"background(?:-color)?\s*:[^;]*?(#[0-9A-Fa-f]{6})", re.IGNORECASE
)

EventKind = Literal["text", "open", "close", "break"]


@dataclass(frozen=True)
class FragmentEvent:
    """One step of the fragment walk.

    Attributes:
        kind: ``text`` (a text node), ``open``/``close`` (entering/leaving
            a highlight container) or ``break`` (one newline from ``<br>``
            or a block boundary).
        text: Text node content (``text`` events only).
        color: Highlight colour (``open`` events only).
    """

    kind: EventKind
    text: str = ""
    color: str | None = None


def _canonical_colour(value: str) -> str:
    try:
        return normalise_hex_colour(value)
    except ValueError:
        return value


def _classes(node: Any) -> list[str]:
    return (node.attributes.get("class") or "").split()


def _highlight_colour(node: Any, default: str) -> str:
    attrs = node.attributes
    colour = attrs.get("data-color")
    if colour:
        return _canonical_colour(colour)
    match = _STYLE_COLOUR.search(attrs.get("style") or "")
    if match:
        return _canonical_colour(match.group(1))
    return default


def _parse_root(html: str) -> Any:
    tree = LexborHTMLParser(f"<div {_ROOT_ATTR}>{html}</div>")
    return tree.css_first(f"div[{_ROOT_ATTR}]")


def _walk_children(node: Any, default: str) -> Iterator[FragmentEvent]:
    child = node.child
    while child is not None:
        yield from _walk_node(child, default)
        child = child.next


def _walk_node(node: Any, default: str) -> Iterator[FragmentEvent]:
    tag = node.tag

    # Text node: selectolax reports "-text" as the tag
    if tag == "-text":
        text = node.text_content
        if text:
            yield FragmentEvent("text", text=text)
        return

    # Comments and other non-element nodes
    if tag.startswith(("-", "_")) or tag in _SKIP_TAGS:
        return

    if tag == "br":
        yield FragmentEvent("break")
        return

    is_highlight = HIGHLIGHT_CLASS in _classes(node)
    if is_highlight:
        yield FragmentEvent("open", color=_highlight_colour(node, default))

    yield from _walk_children(node, default)

    if is_highlight:
        yield FragmentEvent("close")
    if tag in _BLOCK_TAGS:
        yield FragmentEvent("break")


def iter_fragment(
    html: str, default_color: str = DEFAULT_COLOR
) -> Iterator[FragmentEvent]:
    """Yield walk events for ``html`` in document order."""
    if not html:
        return
    root = _parse_root(html)
    if root is None:
        return
    yield from _walk_children(root, default_color)
