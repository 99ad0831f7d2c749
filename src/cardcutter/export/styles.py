"""Fixed typography shared by the document renderers.

Sizes are in points and colours are ``#RRGGBB``. DOCX uses the Times New
Roman family by name; the PDF renderer uses the equivalent base-14 Times
faces.
"""

from __future__ import annotations

from dataclasses import dataclass

from cardcutter.config import normalise_hex_colour

FONT_FAMILY = "Times New Roman"

TAGLINE_SIZE = 12.0
LINK_SIZE = 6.5
BODY_SIZE = 7.5
HIGHLIGHT_SIZE = 12.0
CITE_SIZE = 10.5

LINK_COLOR = "#002060"
NEON_GREEN = "#00FF00"

# Base-14 PDF Times faces (PyMuPDF short names)
PDF_REGULAR = "tiro"
PDF_BOLD = "tibo"
PDF_ITALIC = "tiit"
PDF_BOLD_ITALIC = "tibi"


@dataclass(frozen=True)
class RunStyle:
    """How one run of text is drawn."""

    size: float
    bold: bool = False
    italic: bool = False
    color: str | None = None
    shading: str | None = None

    @property
    def pdf_font(self) -> str:
        if self.bold and self.italic:
            return PDF_BOLD_ITALIC
        if self.bold:
            return PDF_BOLD
        if self.italic:
            return PDF_ITALIC
        return PDF_REGULAR


TAGLINE_STYLE = RunStyle(TAGLINE_SIZE, bold=True)
LINK_STYLE = RunStyle(LINK_SIZE, color=LINK_COLOR)
BODY_STYLE = RunStyle(BODY_SIZE)


def highlight_style(color: str) -> RunStyle:
    return RunStyle(HIGHLIGHT_SIZE, bold=True, shading=color)


def cite_style(color: str) -> RunStyle:
    return RunStyle(CITE_SIZE, bold=True, italic=True, shading=color)


def resolve_highlight_color(
    node_color: str | None = None, default_color: str | None = None
) -> str:
    """Pick the highlight colour: node colour, then document default, then neon.

    Unparseable colours are skipped rather than rejected.

    Examples:
        >>> resolve_highlight_color(None, "#ffff00")
        '#FFFF00'
        >>> resolve_highlight_color("oops", None)
        '#00FF00'
    """
    for candidate in (node_color, default_color):
        if candidate:
            try:
                return normalise_hex_colour(candidate)
            except ValueError:
                continue
    return NEON_GREEN


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    value = normalise_hex_colour(color)[1:]
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def hex_to_unit_rgb(color: str) -> tuple[float, float, float]:
    """Colour as 0-1 floats, the form PyMuPDF drawing calls take."""
    r, g, b = hex_to_rgb(color)
    return r / 255, g / 255, b / 255
