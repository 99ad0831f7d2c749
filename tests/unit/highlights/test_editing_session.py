"""Tests for editing sessions over card content."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from cardcutter.cards import CARDS_KEY, CardCollection, MemoryStore, cards_to_json
from cardcutter.errors import CardNotFoundError, SessionError
from cardcutter.highlights import EditingContext, HighlightRange

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardcutter.cards import EvidenceCard


@pytest.fixture
def collection(make_card: Callable[..., EvidenceCard]) -> CardCollection:
    cards = [
        make_card(id="c1", content="hello world"),
        make_card(id="c2", content="he<HL>llo</HL> world"),
    ]
    coll = CardCollection(MemoryStore({CARDS_KEY: cards_to_json(cards)}))
    coll.load()
    return coll


@pytest.fixture
def context(collection: CardCollection) -> EditingContext:
    return EditingContext(collection)


class TestEditingContext:
    """Session bookkeeping."""

    def test_open_loads_position_data(self, context: EditingContext) -> None:
        session = context.open("c2")
        assert session.data.text == "hello world"
        assert session.data.highlights == (HighlightRange(2, 5),)
        assert context.is_open("c2")

    def test_second_open_rejected(self, context: EditingContext) -> None:
        context.open("c1")
        with pytest.raises(SessionError):
            context.open("c1")

    def test_unknown_card(self, context: EditingContext) -> None:
        with pytest.raises(CardNotFoundError):
            context.open("missing")
        assert not context.is_open("missing")

    def test_reopen_after_close(self, context: EditingContext) -> None:
        context.open("c1").close()
        assert not context.is_open("c1")
        assert context.open("c1").data.text == "hello world"


class TestEditingSession:
    """Toggle, recolour and write back."""

    def test_toggle_and_close_persists_content(
        self, context: EditingContext, collection: CardCollection
    ) -> None:
        session = context.open("c1")
        session.toggle(2, 5)
        assert session.close() == "he<HL>llo</HL> world"
        assert collection.get("c1").content == "he<HL>llo</HL> world"

    def test_toggle_over_highlight_removes_it(self, context: EditingContext) -> None:
        session = context.open("c2")
        session.toggle(0, 3)
        assert session.close() == "hel<HL>lo</HL> world"

    def test_fragment_reflects_state(self, context: EditingContext) -> None:
        session = context.open("c1")
        session.toggle(0, 5)
        assert session.fragment.startswith('<span class="highlight"')
        assert session.fragment.endswith("</span> world")

    def test_load_fragment_replaces_state(
        self, context: EditingContext, collection: CardCollection
    ) -> None:
        session = context.open("c1")
        session.load_fragment('<span class="highlight">hello</span> there')
        session.close()
        assert collection.get("c1").content == "<HL>hello</HL> there"

    def test_set_color_updates_card_and_ranges(
        self, context: EditingContext, collection: CardCollection
    ) -> None:
        session = context.open("c2")
        session.set_color("ffff00")
        assert session.color == "#FFFF00"
        assert session.data.highlights == (HighlightRange(2, 5, "#FFFF00"),)
        assert collection.get("c2").highlight_color == "#FFFF00"

    def test_set_color_rejects_invalid(self, context: EditingContext) -> None:
        session = context.open("c1")
        with pytest.raises(ValueError, match="RRGGBB"):
            session.set_color("green")

    def test_closed_session_rejects_use(self, context: EditingContext) -> None:
        session = context.open("c1")
        session.close()
        with pytest.raises(SessionError):
            session.toggle(0, 1)
        with pytest.raises(SessionError):
            session.close()

    def test_deleted_card_still_releases_session(
        self, context: EditingContext, collection: CardCollection
    ) -> None:
        session = context.open("c1")
        collection.delete("c1")
        with pytest.raises(CardNotFoundError):
            session.close()
        assert session.closed
        assert not context.is_open("c1")

    def test_context_manager_closes(
        self, context: EditingContext, collection: CardCollection
    ) -> None:
        with context.open("c1") as session:
            session.toggle(0, 5)
        assert session.closed
        assert not context.is_open("c1")
        assert collection.get("c1").content == "<HL>hello</HL> world"
