"""PDF renderer for evidence cards using PyMuPDF.

Layout is manual: every card is drawn top to bottom on Letter pages with
fixed margins (tagline, link, citation, then content). Content is split
into plain and highlighted segments and word-wrapped by hand, because a
highlighted segment uses a larger bold face than the text around it and
needs a painted background rectangle under exactly its glyphs.

Each output line is laid out completely before anything is drawn, so the
line advance is the largest line height of any segment on that line and
every highlight rectangle on the line spans that height. Rectangles are
painted before the glyphs so the text sits on top.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pymupdf

from cardcutter.config import ExportConfig
from cardcutter.errors import ExportError
from cardcutter.export.styles import (
    BODY_STYLE,
    LINK_STYLE,
    TAGLINE_STYLE,
    RunStyle,
    cite_style,
    hex_to_unit_rgb,
    highlight_style,
    resolve_highlight_color,
)
from cardcutter.tagged import parse_runs, sanitize

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from cardcutter.cards.models import EvidenceCard

logger = logging.getLogger(__name__)

# US Letter in points
PAGE_WIDTH = 612.0
PAGE_HEIGHT = 792.0

HIGHLIGHT_PAD_X = 1.5
HIGHLIGHT_MIN_PAD_Y = 2.0
HIGHLIGHT_PAD_Y_RATIO = 0.15

# Vertical gaps after each card part, in lines of that part's font
TAGLINE_GAP = 0.3
LINK_GAP = 0.5
CITE_GAP = 0.5
CONTENT_GAP = 0.5

BLACK = (0.0, 0.0, 0.0)


def fit_text_to_width(
    text: str,
    available: float,
    char_width: Callable[[str], float],
    *,
    allow_split: bool = True,
) -> tuple[str, str]:
    """Split ``text`` into the longest prefix that fits and the rest.

    Prefers to break after the last whitespace that fits. Without one, a
    word is split mid-way only when ``allow_split`` is set (the caller is
    at the start of a line); otherwise nothing is fitted so the caller can
    wrap first. Returns ``("", text)`` when not even one character fits.

    Deterministic: the same input always gives the same split.

    Examples:
        >>> fit_text_to_width("aaa bbb", 5, lambda c: 1.0)
        ('aaa ', 'bbb')
        >>> fit_text_to_width("aaaaaa", 3, lambda c: 1.0)
        ('aaa', 'aaa')
    """
    if available <= 0 or not text:
        return "", text

    width = 0.0
    last_whitespace = -1
    for i, char in enumerate(text):
        width += char_width(char)
        if width > available:
            if last_whitespace > 0:
                return text[:last_whitespace], text[last_whitespace:]
            if allow_split and i > 0:
                return text[:i], text[i:]
            return "", text
        if char.isspace():
            last_whitespace = i + 1
    return text, ""


@dataclass
class _Piece:
    text: str
    style: RunStyle
    width: float
    link: str | None = None


@dataclass
class _Line:
    pieces: list[_Piece] = field(default_factory=list)

    @property
    def width(self) -> float:
        return sum(p.width for p in self.pieces)


class _PdfLayout:
    """Cursor over a growing PyMuPDF document."""

    def __init__(self, doc: pymupdf.Document, config: ExportConfig) -> None:
        self.doc = doc
        self.config = config
        self.margin = config.page_margin_pt
        self.left = self.margin
        self.content_width = PAGE_WIDTH - 2 * self.margin
        self.bottom = PAGE_HEIGHT - self.margin
        self._fonts: dict[str, pymupdf.Font] = {}
        self._char_widths: dict[tuple[str, float, str], float] = {}
        self.page = self._new_page()

    def _new_page(self) -> pymupdf.Page:
        self.page = self.doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        self.y = self.margin
        return self.page

    # -- metrics -----------------------------------------------------------

    def font(self, style: RunStyle) -> pymupdf.Font:
        name = style.pdf_font
        if name not in self._fonts:
            self._fonts[name] = pymupdf.Font(name)
        return self._fonts[name]

    def char_width(self, char: str, style: RunStyle) -> float:
        key = (style.pdf_font, style.size, char)
        if key not in self._char_widths:
            self._char_widths[key] = self.font(style).text_length(
                char, fontsize=style.size
            )
        return self._char_widths[key]

    def text_width(self, text: str, style: RunStyle) -> float:
        return sum(self.char_width(c, style) for c in text)

    def line_height(self, style: RunStyle) -> float:
        font = self.font(style)
        return (font.ascender - font.descender) * style.size

    def ascent(self, style: RunStyle) -> float:
        return self.font(style).ascender * style.size

    def move_down(self, lines: float, style: RunStyle) -> None:
        self.y += lines * self.line_height(style)

    # -- line flow ---------------------------------------------------------

    def _emit(self, line: _Line) -> None:
        multiplier = self.config.line_height_multiplier
        if not line.pieces:
            self.y += self.line_height(BODY_STYLE) * multiplier
            return

        line_height = max(self.line_height(p.style) for p in line.pieces)
        if self.y + line_height > self.bottom:
            self._new_page()

        top = self.y
        baseline = top + max(self.ascent(p.style) for p in line.pieces)
        pad_y = max(HIGHLIGHT_MIN_PAD_Y, line_height * HIGHLIGHT_PAD_Y_RATIO)

        x = self.left
        for piece in line.pieces:
            if piece.style.shading:
                rect = pymupdf.Rect(
                    x - HIGHLIGHT_PAD_X,
                    top - pad_y,
                    x + piece.width + HIGHLIGHT_PAD_X,
                    top + line_height + pad_y,
                )
                self.page.draw_rect(
                    rect,
                    color=None,
                    fill=hex_to_unit_rgb(piece.style.shading),
                    width=0,
                )
            x += piece.width

        x = self.left
        for piece in line.pieces:
            self.page.insert_text(
                (x, baseline),
                piece.text,
                fontname=piece.style.pdf_font,
                fontsize=piece.style.size,
                color=(
                    hex_to_unit_rgb(piece.style.color) if piece.style.color else BLACK
                ),
            )
            if piece.link:
                self.page.insert_link(
                    {
                        "kind": pymupdf.LINK_URI,
                        "from": pymupdf.Rect(
                            x, top, x + piece.width, top + line_height
                        ),
                        "uri": piece.link,
                    }
                )
            x += piece.width

        self.y = top + line_height * multiplier

    def flow(
        self, segments: Iterable[tuple[str, RunStyle]], link: str | None = None
    ) -> None:
        """Word-wrap and draw segments; ``\\n`` forces a line break."""
        line = _Line()
        drew = False
        for text, style in segments:
            for index, raw_line in enumerate(text.split("\n")):
                if index > 0:
                    self._emit(line)
                    line = _Line()
                remaining = raw_line
                while remaining:
                    fitted, rest = fit_text_to_width(
                        remaining,
                        self.content_width - line.width,
                        lambda c, s=style: self.char_width(c, s),
                        allow_split=not line.pieces,
                    )
                    if not fitted:
                        if line.pieces:
                            self._emit(line)
                            line = _Line()
                            continue
                        # Not even one glyph fits an empty line: draw it anyway
                        fitted, rest = remaining[0], remaining[1:]
                    line.pieces.append(
                        _Piece(fitted, style, self.text_width(fitted, style), link)
                    )
                    drew = True
                    remaining = rest
                    if remaining:
                        self._emit(line)
                        line = _Line()
        if line.pieces or not drew:
            self._emit(line)


def _content_segments(content: str, color: str) -> list[tuple[str, RunStyle]]:
    marked = highlight_style(color)
    return [
        (run.text, marked if run.highlighted else BODY_STYLE)
        for run in parse_runs(sanitize(content).replace("\r\n", "\n"))
    ]


def _draw_card(layout: _PdfLayout, card: EvidenceCard, config: ExportConfig) -> None:
    color = resolve_highlight_color(
        card.highlight_color, config.default_highlight_color
    )
    tagline = card.tagline.strip()
    link = card.link.strip()
    cite = card.cite.strip()

    if tagline:
        layout.flow([(tagline, TAGLINE_STYLE)])
        layout.move_down(TAGLINE_GAP, TAGLINE_STYLE)
    if link:
        layout.flow([(link, LINK_STYLE)], link=link)
        layout.move_down(LINK_GAP, LINK_STYLE)
    if cite:
        style = cite_style(color)
        layout.flow([(cite, style)])
        layout.move_down(CITE_GAP, style)
    if card.content.strip():
        layout.flow(_content_segments(card.content, color))
        layout.move_down(CONTENT_GAP, BODY_STYLE)


def render_pdf(
    cards: Iterable[EvidenceCard], config: ExportConfig | None = None
) -> bytes:
    """Render cards to a paginated Letter-size PDF.

    Args:
        cards: Cards in output order.
        config: Margins, line spacing and default colour; defaults apply
            when omitted.

    Returns:
        The complete PDF file contents.

    Raises:
        ExportError: If PyMuPDF fails; no partial document is returned.
    """
    config = config or ExportConfig()
    doc = pymupdf.open()
    try:
        layout = _PdfLayout(doc, config)
        for index, card in enumerate(cards):
            if index > 0:
                layout.move_down(config.card_spacing_lines, BODY_STYLE)
            _draw_card(layout, card, config)
        data = doc.tobytes(garbage=3, deflate=True)
        pages = doc.page_count
    except Exception as exc:
        logger.exception("PDF rendering failed")
        raise ExportError(str(exc), "PDF") from exc
    finally:
        doc.close()
    logger.info("Rendered PDF: %d pages, %d bytes", pages, len(data))
    return data
