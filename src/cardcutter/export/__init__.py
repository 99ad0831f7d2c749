"""Document export: DOCX and PDF renderers plus clipboard payloads.

All renderers share the typography in ``styles`` and sanitise content
before drawing, so highlight boundaries match across formats.
"""

from cardcutter.export.clipboard import (
    build_clipboard_html,
    build_clipboard_plain,
    plain_content,
)
from cardcutter.export.docx_export import (
    PlannedParagraph,
    cards_to_nodes,
    plan_paragraphs,
    render_cards_docx,
    render_docx,
)
from cardcutter.export.pdf_export import fit_text_to_width, render_pdf
from cardcutter.export.styles import RunStyle, resolve_highlight_color

__all__ = [
    "PlannedParagraph",
    "RunStyle",
    "build_clipboard_html",
    "build_clipboard_plain",
    "cards_to_nodes",
    "fit_text_to_width",
    "plain_content",
    "plan_paragraphs",
    "render_cards_docx",
    "render_docx",
    "render_pdf",
    "resolve_highlight_color",
]
