"""Shared pytest fixtures for CardCutter tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pymupdf
import pytest

from cardcutter.cards import EvidenceCard
from cardcutter.config import Settings, get_settings

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


SAMPLE_TAGLINE = "Carbon taxes cut emissions"
SAMPLE_LINK = "https://example.org/carbon-study"
SAMPLE_CITE = "Smith 24, Professor of Economics, Example University"
SAMPLE_CONTENT = (
    "Across twelve countries the tax produced a <HL>pivotal drop</HL> in output."
)


@pytest.fixture(autouse=True)
def _fresh_settings_cache() -> Iterator[None]:
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only (no .env file)."""
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def make_card() -> Callable[..., EvidenceCard]:
    """Factory for evidence cards with realistic defaults."""

    def _make(**overrides: Any) -> EvidenceCard:
        fields: dict[str, Any] = {
            "tagline": SAMPLE_TAGLINE,
            "link": SAMPLE_LINK,
            "cite": SAMPLE_CITE,
            "content": SAMPLE_CONTENT,
        }
        fields.update(overrides)
        return EvidenceCard(**fields)

    return _make


def extract_pdf_text_pymupdf(data: bytes) -> str:
    """Extract full text from PDF bytes using pymupdf."""
    doc = pymupdf.open(stream=data, filetype="pdf")
    text = "\n".join(page.get_text() for page in doc)
    doc.close()
    return text
