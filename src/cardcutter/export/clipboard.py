"""Clipboard payloads for copying cards into a word processor.

The HTML payload uses inline styles only (paste targets drop stylesheets)
and is wrapped in ``StartFragment``/``EndFragment`` markers so Word and
Google Docs keep the formatting. The plain-text payload drops all markup.
"""

from __future__ import annotations

import html
import re
from typing import TYPE_CHECKING

from cardcutter.export.styles import (
    BODY_SIZE,
    CITE_SIZE,
    HIGHLIGHT_SIZE,
    LINK_COLOR,
    LINK_SIZE,
    TAGLINE_SIZE,
    resolve_highlight_color,
)
from cardcutter.tagged import parse_runs, sanitize, split_lines, strip_tags

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cardcutter.cards.models import EvidenceCard
    from cardcutter.tagged import Run

_FONT_STACK = "font-family:'Times New Roman', Times, serif"
_BLACK = "color:#000000"
_HORIZONTAL_SPACE = re.compile(r"[ \t\u00a0]+")
_BLANK_LINES = re.compile(r"\n\s*\n")


def _style(*parts: str) -> str:
    return "; ".join(p for p in parts if p) + ";"


_CARD_STYLE = _style(_FONT_STACK, _BLACK, "margin:0")
_TAGLINE_P = _style(
    "margin:0", _FONT_STACK, f"font-size:{TAGLINE_SIZE:g}pt", "font-weight:700", _BLACK
)
_LINK_P = _style(
    "margin:0", _FONT_STACK, f"font-size:{LINK_SIZE:g}pt", f"color:{LINK_COLOR}"
)
_LINK_A = _style(
    _FONT_STACK,
    f"font-size:{LINK_SIZE:g}pt",
    f"color:{LINK_COLOR}",
    "text-decoration:none",
)
_CITE_P = _style(
    "margin:0",
    _FONT_STACK,
    f"font-size:{CITE_SIZE:g}pt",
    "font-weight:700",
    "font-style:italic",
    _BLACK,
)
_SPACER_P = _style("margin:0", _FONT_STACK, f"font-size:{BODY_SIZE:g}pt", _BLACK)
_CONTENT_P = _style(
    "margin:0", _FONT_STACK, f"font-size:{BODY_SIZE:g}pt", "line-height:1.3", _BLACK
)
_CONTENT_BLANK_P = _style(
    "margin:0",
    _FONT_STACK,
    f"font-size:{BODY_SIZE:g}pt",
    "line-height:1.3",
    _BLACK,
    "height:1em",
)


def _base_style(size: float, bold: bool) -> str:
    return _style(
        _FONT_STACK,
        f"font-size:{size:g}pt",
        "font-weight:700" if bold else "font-weight:400",
        _BLACK,
    )


def _highlight_style(color: str) -> str:
    return _style(
        _FONT_STACK,
        f"font-size:{HIGHLIGHT_SIZE:g}pt",
        "font-weight:700",
        _BLACK,
        f"background-color:{color}",
        "padding:0 1px",
    )


def _cite_span_style(color: str) -> str:
    return _style(
        _FONT_STACK,
        f"font-size:{CITE_SIZE:g}pt",
        "font-weight:700",
        "font-style:italic",
        _BLACK,
        f"background-color:{color}",
    )


def _runs_to_html(runs: Iterable[Run], base: str, highlight: str) -> str:
    return "".join(
        f'<span style="{highlight if run.highlighted else base}">'
        f"{html.escape(run.text)}</span>"
        for run in runs
    )


def _card_html(card: EvidenceCard, default_color: str | None) -> str:
    color = resolve_highlight_color(card.highlight_color, default_color)
    highlight = _highlight_style(color)

    tagline = _runs_to_html(
        parse_runs(sanitize(card.tagline)), _base_style(TAGLINE_SIZE, True), highlight
    )
    link = html.escape(card.link)
    cite = html.escape(card.cite)

    paragraphs = []
    for line in split_lines(parse_runs(sanitize(card.content))):
        if not line:
            paragraphs.append(f'<p style="{_CONTENT_BLANK_P}"><br/></p>')
            continue
        inner = _runs_to_html(line, _base_style(BODY_SIZE, False), highlight)
        paragraphs.append(f'<p style="{_CONTENT_P}">{inner}</p>')

    spacer = f'<p style="{_SPACER_P}"><br/></p>'
    cite_span = f'<span style="{_cite_span_style(color)}">{cite}</span>'
    return (
        f'<div style="{_CARD_STYLE}">'
        f'<p style="{_TAGLINE_P}">{tagline}</p>'
        f'<p style="{_LINK_P}"><a href="{link}" style="{_LINK_A}">{link}</a></p>'
        f"{spacer}"
        f'<p style="{_CITE_P}">{cite_span}</p>'
        f"{spacer}"
        f'<div style="{_style(_FONT_STACK, _BLACK)}">{"".join(paragraphs)}</div>'
        f"{spacer}"
        "</div>"
    )


def build_clipboard_html(
    cards: Iterable[EvidenceCard], default_color: str | None = None
) -> str:
    """Inline-styled HTML document for the ``text/html`` clipboard flavour."""
    fragment = "".join(_card_html(card, default_color) for card in cards)
    return (
        "<!DOCTYPE html>\n"
        '<html><head><meta charset="utf-8"></head>\n'
        f"<body><!--StartFragment-->{fragment}<!--EndFragment--></body>\n"
        "</html>"
    )


def plain_content(content: str) -> str:
    """Content without highlight markup and with tidied whitespace."""
    text = html.unescape(strip_tags(sanitize(content)))
    text = _HORIZONTAL_SPACE.sub(" ", text)
    text = _BLANK_LINES.sub("\n", text)
    return "\n".join(line.strip() for line in text.split("\n")).strip()


def build_clipboard_plain(cards: Iterable[EvidenceCard]) -> str:
    """Plain-text rendering for the ``text/plain`` clipboard flavour."""
    lines: list[str] = []
    for card in cards:
        lines.extend(
            [
                strip_tags(card.tagline),
                card.link,
                "",
                card.cite,
                "",
                plain_content(card.content),
                "",
            ]
        )
    return "\n".join(lines).rstrip("\n")
