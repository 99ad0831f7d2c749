"""Tests for the DOCX renderer.

Documents are rendered to bytes and read back with python-docx to check
paragraph layout, run formatting, shading and hyperlinks.
"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING, Any

import pytest
from docx import Document
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor

from cardcutter.errors import ExportError
from cardcutter.export import plan_paragraphs, render_cards_docx, render_docx
from cardcutter.highlights import PositionData, apply_edit, tagged_from_position_data
from cardcutter.tagged import Citation, Link, Run, Tagline, Text, parse

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardcutter.cards import EvidenceCard


def _read(data: bytes) -> Any:
    return Document(io.BytesIO(data))


def _texts(doc: Any) -> list[str]:
    return [p.text for p in doc.paragraphs]


def _fill(run: Any) -> str | None:
    rpr = run._r.rPr
    shd = rpr.find(qn("w:shd")) if rpr is not None else None
    return shd.get(qn("w:fill")) if shd is not None else None


class TestHighlightRuns:
    """Run splitting and formatting for highlighted text."""

    def test_highlight_edit_renders_three_runs(self) -> None:
        data = apply_edit(PositionData("hello world"), 2, 5, "#00FF00")
        nodes = parse(tagged_from_position_data(data))
        doc = _read(render_docx(nodes))

        (paragraph,) = [p for p in doc.paragraphs if p.text]
        he, llo, world = paragraph.runs
        assert [he.text, llo.text, world.text] == ["he", "llo", " world"]

        assert llo.bold is True
        assert llo.font.size == Pt(12)
        assert _fill(llo) == "00FF00"

        assert not he.bold
        assert he.font.size == Pt(7.5)
        assert _fill(he) is None
        assert he.font.name == "Times New Roman"

    def test_highlight_across_newline_shaded_on_both_lines(self) -> None:
        nodes = [Text(runs=[Run("highlight", "first\nsecond")])]
        doc = _read(render_docx(nodes, "#FFFF00"))
        paragraphs = [p for p in doc.paragraphs if p.text]
        assert [p.text for p in paragraphs] == ["first", "second"]
        for paragraph in paragraphs:
            (run,) = paragraph.runs
            assert run.bold is True
            assert _fill(run) == "FFFF00"

    def test_node_colour_overrides_document_default(self) -> None:
        nodes = [Text(runs=[Run("highlight", "x")], highlight_color="#FF00FF")]
        doc = _read(render_docx(nodes, "#FFFF00"))
        (paragraph,) = [p for p in doc.paragraphs if p.text]
        assert _fill(paragraph.runs[0]) == "FF00FF"


class TestCardLayout:
    """Paragraph structure and blank-line rules."""

    def test_single_card_paragraphs(
        self, make_card: Callable[..., EvidenceCard]
    ) -> None:
        card = make_card(
            tagline="Claim",
            link="https://x.org",
            cite="Smith 24",
            content="Body <HL>key</HL> text",
        )
        texts = _texts(_read(render_cards_docx([card])))
        texts = texts[texts.index("Claim") :]
        assert texts == [
            "Claim",
            "",
            "https://x.org",
            "",
            "Smith 24",
            "",
            "Body key text",
        ]

    def test_tagline_and_link_styles(
        self, make_card: Callable[..., EvidenceCard]
    ) -> None:
        doc = _read(render_cards_docx([make_card(tagline="Claim")]))
        tagline = next(p for p in doc.paragraphs if p.text == "Claim")
        assert tagline.runs[0].bold is True
        assert tagline.runs[0].font.size == Pt(12)

        (hyperlink,) = [h for p in doc.paragraphs for h in p.hyperlinks]
        assert hyperlink.address == "https://example.org/carbon-study"
        (link_run,) = hyperlink.runs
        assert link_run.font.size == Pt(6.5)
        assert link_run.font.color.rgb == RGBColor(0x00, 0x20, 0x60)

    def test_citation_uses_document_colour(
        self, make_card: Callable[..., EvidenceCard]
    ) -> None:
        card = make_card(cite="Smith 24", highlight_color="#FF00FF")
        doc = _read(render_cards_docx([card], "#FFFF00"))
        cite = next(p for p in doc.paragraphs if p.text == "Smith 24")
        (run,) = cite.runs
        assert run.bold is True
        assert run.italic is True
        assert run.font.size == Pt(10.5)
        assert _fill(run) == "FFFF00"

    def test_two_blank_lines_between_cards(
        self, make_card: Callable[..., EvidenceCard]
    ) -> None:
        cards = [
            make_card(tagline="First", content="one"),
            make_card(tagline="Second", content="two"),
        ]
        texts = _texts(_read(render_cards_docx(cards)))
        start = texts.index("one")
        assert texts[start : start + 4] == ["one", "", "", "Second"]

    def test_content_blank_lines_capped(self) -> None:
        nodes = parse("a\n\n\n\n\n\nb")
        kinds = [p.kind for p in plan_paragraphs(nodes)]
        assert kinds == ["runs", "blank", "blank", "runs"]

    def test_no_leading_blank_after_citation(self) -> None:
        nodes = [Citation(text="C"), Text(runs=[Run("plain", "\n\nbody")])]
        kinds = [p.kind for p in plan_paragraphs(nodes)]
        assert kinds == ["blank", "runs", "blank", "runs"]

    def test_exactly_one_blank_after_tagline(self) -> None:
        nodes = [
            Tagline(runs=[Run("plain", "T")]),
            Text(runs=[Run("plain", "\n\n\nbody")]),
        ]
        kinds = [p.kind for p in plan_paragraphs(nodes)]
        assert kinds == ["runs", "blank", "runs"]

    def test_link_without_href_uses_text(self) -> None:
        (planned,) = plan_paragraphs([Link(href="", text="https://a.b")])
        assert planned.kind == "link"
        assert planned.href == "https://a.b"


class TestErrors:
    def test_writer_failure_raises_export_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def boom(_paragraphs: object) -> bytes:
            raise RuntimeError("disk full")

        monkeypatch.setattr("cardcutter.export.docx_export._write", boom)
        with pytest.raises(ExportError, match="DOCX export failed: disk full") as info:
            render_docx(parse("text"))
        assert info.value.fmt == "DOCX"

    def test_empty_document_is_valid(self) -> None:
        doc = _read(render_docx([]))
        assert all(not p.text for p in doc.paragraphs)
