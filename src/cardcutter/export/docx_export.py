"""Word (DOCX) renderer for tagged documents.

Rendering is two steps:

1. ``plan_paragraphs`` turns nodes into a flat list of paragraphs (styled
   runs, a hyperlink, or a blank) and applies the blank-line rules:
   exactly one blank after a tagline, exactly one blank before and after a
   citation, at most two consecutive blanks anywhere else, and no leading
   blanks straight after a tagline or citation.
2. ``render_docx`` writes the plan with python-docx and returns the bytes.

Embedded newlines split runs into separate paragraphs, so a highlight that
spans a line break becomes two independently shaded runs.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor

from cardcutter.errors import ExportError
from cardcutter.export.styles import (
    BODY_STYLE,
    FONT_FAMILY,
    LINK_STYLE,
    TAGLINE_STYLE,
    RunStyle,
    cite_style,
    highlight_style,
    resolve_highlight_color,
)
from cardcutter.tagged import (
    CARD_SEPARATOR,
    Citation,
    Link,
    Run,
    Tagline,
    card_block,
    parse,
    sanitize,
    split_lines,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from cardcutter.cards.models import EvidenceCard
    from cardcutter.tagged import Node

logger = logging.getLogger(__name__)

MAX_CONSECUTIVE_BLANKS = 2

ParagraphKind = Literal["runs", "link", "blank"]


@dataclass
class PlannedParagraph:
    """One output paragraph before it is written to the document."""

    kind: ParagraphKind
    runs: list[tuple[str, RunStyle]] = field(default_factory=list)
    href: str = ""

    @property
    def text(self) -> str:
        return "".join(text for text, _ in self.runs)


class _Planner:
    """Accumulates paragraphs and tracks trailing blanks."""

    def __init__(self) -> None:
        self.paragraphs: list[PlannedParagraph] = []
        self.trailing_blanks = 0
        self.suppress_leading = False

    def add(self, paragraph: PlannedParagraph) -> None:
        self.paragraphs.append(paragraph)
        self.trailing_blanks = 0
        self.suppress_leading = False

    def blank(self) -> None:
        self.paragraphs.append(PlannedParagraph("blank"))
        self.trailing_blanks += 1

    def exactly_blanks(self, count: int) -> None:
        while self.trailing_blanks > count:
            self.paragraphs.pop()
            self.trailing_blanks -= 1
        while self.trailing_blanks < count:
            self.blank()

    def soft_blank(self) -> None:
        """A blank line from the content itself, subject to the caps."""
        if self.suppress_leading or self.trailing_blanks >= MAX_CONSECUTIVE_BLANKS:
            return
        self.blank()


def _styled_lines(
    runs: Sequence[Run], plain: RunStyle, highlighted: RunStyle
) -> list[list[tuple[str, RunStyle]]]:
    return [
        [(run.text, highlighted if run.highlighted else plain) for run in line]
        for line in split_lines(runs)
    ]


def plan_paragraphs(
    nodes: Iterable[Node], default_highlight_color: str | None = None
) -> list[PlannedParagraph]:
    """Lay nodes out as paragraphs, applying the blank-line rules."""
    planner = _Planner()
    document_color = resolve_highlight_color(None, default_highlight_color)

    for node in nodes:
        if isinstance(node, Link):
            planner.add(
                PlannedParagraph(
                    "link",
                    runs=[(node.text or node.href, LINK_STYLE)],
                    href=node.href or node.text,
                )
            )
        elif isinstance(node, Citation):
            planner.exactly_blanks(1)
            planner.add(
                PlannedParagraph("runs", runs=[(node.text, cite_style(document_color))])
            )
            planner.exactly_blanks(1)
            planner.suppress_leading = True
        elif isinstance(node, Tagline):
            color = resolve_highlight_color(
                node.highlight_color, default_highlight_color
            )
            lines = _styled_lines(node.runs, TAGLINE_STYLE, highlight_style(color))
            for line in lines:
                if line:
                    planner.add(PlannedParagraph("runs", runs=line))
            planner.exactly_blanks(1)
            planner.suppress_leading = True
        else:
            color = resolve_highlight_color(
                node.highlight_color, default_highlight_color
            )
            for line in _styled_lines(node.runs, BODY_STYLE, highlight_style(color)):
                if line:
                    planner.add(PlannedParagraph("runs", runs=line))
                else:
                    planner.soft_blank()

    return planner.paragraphs


def _shade(run: Any, color: str) -> None:
    """Add a clear-pattern background fill to ``run``."""
    rpr = run._r.get_or_add_rPr()
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), color.lstrip("#").upper())
    rpr.append(shd)


def _apply_style(run: Any, style: RunStyle) -> None:
    font = run.font
    font.name = FONT_FAMILY
    font.size = Pt(style.size)
    if style.bold:
        font.bold = True
    if style.italic:
        font.italic = True
    if style.color:
        font.color.rgb = RGBColor.from_string(style.color.lstrip("#").upper())
    if style.shading:
        _shade(run, style.shading)


def _add_hyperlink(paragraph: Any, href: str, text: str, style: RunStyle) -> None:
    """Append ``text`` as an external hyperlink run."""
    run = paragraph.add_run(text)
    _apply_style(run, style)
    if not href:
        return

    r_id = paragraph.part.relate_to(href, RT.HYPERLINK, is_external=True)
    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.set(qn("r:id"), r_id)
    hyperlink.set(qn("w:history"), "1")

    p = paragraph._p
    p.remove(run._r)
    hyperlink.append(run._r)
    p.append(hyperlink)


def _write(paragraphs: Iterable[PlannedParagraph]) -> bytes:
    doc = Document()
    doc.styles["Normal"].font.name = FONT_FAMILY

    for planned in paragraphs:
        paragraph = doc.add_paragraph()
        if planned.kind == "link":
            text, style = planned.runs[0]
            _add_hyperlink(paragraph, planned.href, text, style)
            continue
        for text, style in planned.runs:
            _apply_style(paragraph.add_run(text), style)

    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


def render_docx(
    nodes: Iterable[Node], default_highlight_color: str | None = None
) -> bytes:
    """Render nodes to a DOCX document.

    Args:
        nodes: Parsed tagged document.
        default_highlight_color: ``#RRGGBB`` used for highlights on nodes
            without their own colour and for citation shading.

    Returns:
        The complete ``.docx`` file contents.

    Raises:
        ExportError: If python-docx fails; no partial document is returned.
    """
    paragraphs = plan_paragraphs(nodes, default_highlight_color)
    try:
        data = _write(paragraphs)
    except Exception as exc:
        logger.exception("DOCX rendering failed")
        raise ExportError(str(exc), "DOCX") from exc
    logger.info("Rendered DOCX: %d paragraphs, %d bytes", len(paragraphs), len(data))
    return data


def cards_to_nodes(
    cards: Iterable[EvidenceCard], default_highlight_color: str | None = None
) -> list[Node]:
    """Parse each card's wire block, colouring it with the card's colour.

    Every card but the last is followed by the card separator so the
    renderer keeps two blank lines between cards.
    """
    card_list = list(cards)
    nodes: list[Node] = []
    for i, card in enumerate(card_list):
        block = card_block(card.tagline, card.link, card.cite, card.content)
        if i < len(card_list) - 1:
            block += CARD_SEPARATOR
        color = card.highlight_color or default_highlight_color
        nodes.extend(parse(sanitize(block), color))
    return nodes


def render_cards_docx(
    cards: Iterable[EvidenceCard], default_highlight_color: str | None = None
) -> bytes:
    """Render evidence cards to one DOCX document."""
    return render_docx(
        cards_to_nodes(cards, default_highlight_color), default_highlight_color
    )
