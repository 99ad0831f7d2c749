"""Editing sessions over a card's content.

An ``EditingContext`` is built once per process around the card collection
and handed to whatever component edits cards. It hands out at most one
``EditingSession`` per card. A session holds the card's content as
position data while the user toggles highlights, and writes it back
(serialised and sanitised) when closed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cardcutter.config import normalise_hex_colour
from cardcutter.errors import SessionError
from cardcutter.highlights.positions import (
    PositionData,
    apply_edit,
    position_data_from_tagged,
    rebuild,
    recolor,
    tagged_from_position_data,
    to_position_data,
)

if TYPE_CHECKING:
    from cardcutter.cards.collection import CardCollection

logger = logging.getLogger(__name__)


class EditingContext:
    """Card lookup, persistence and session bookkeeping for editors."""

    def __init__(self, collection: CardCollection) -> None:
        self.collection = collection
        self._sessions: dict[str, EditingSession] = {}

    def is_open(self, card_id: str) -> bool:
        return card_id in self._sessions

    def open(self, card_id: str) -> EditingSession:
        """Start editing ``card_id``.

        Raises:
            SessionError: If a session for this card is already open.
            CardNotFoundError: If the card does not exist.
        """
        if card_id in self._sessions:
            msg = f"Card {card_id} already has an open editing session"
            raise SessionError(msg)
        card = self.collection.get(card_id)
        session = EditingSession(
            self,
            card_id,
            position_data_from_tagged(card.content, card.highlight_color),
            card.highlight_color,
        )
        self._sessions[card_id] = session
        logger.debug("Opened editing session for %s", card_id)
        return session

    def _release(self, card_id: str) -> None:
        self._sessions.pop(card_id, None)


class EditingSession:
    """Exclusive edit of one card's highlights.

    Use ``EditingContext.open`` rather than constructing directly.
    """

    def __init__(
        self,
        context: EditingContext,
        card_id: str,
        data: PositionData,
        color: str,
    ) -> None:
        self._context = context
        self.card_id = card_id
        self.data = data
        self.color = color
        self.closed = False

    def _check_open(self) -> None:
        if self.closed:
            msg = f"Editing session for {self.card_id} is closed"
            raise SessionError(msg)

    @property
    def fragment(self) -> str:
        """Current content rendered as an editor fragment."""
        return rebuild(self.data.text, self.data.highlights)

    def load_fragment(self, fragment_html: str) -> PositionData:
        """Replace the session state with a fragment from the live editor."""
        self._check_open()
        self.data = to_position_data(fragment_html, self.color)
        return self.data

    def toggle(self, start: int, end: int) -> PositionData:
        """Toggle highlighting over ``[start, end)`` in the session colour."""
        self._check_open()
        self.data = apply_edit(self.data, start, end, self.color)
        return self.data

    def set_color(self, color: str) -> None:
        """Change the card colour; existing highlights take it too."""
        self._check_open()
        self.color = normalise_hex_colour(color)
        self.data = PositionData(
            self.data.text, tuple(recolor(self.data.highlights, self.color))
        )
        self._context.collection.set_color(self.card_id, self.color)

    def close(self) -> str:
        """Serialise, persist and release the card; return the stored content.

        The session is released even when persisting fails, for example
        because the card was deleted while it was being edited.

        Raises:
            CardNotFoundError: If the card no longer exists.
        """
        self._check_open()
        content = tagged_from_position_data(self.data)
        try:
            card = self._context.collection.update_content(self.card_id, content)
        finally:
            self.closed = True
            self._context._release(self.card_id)
        logger.debug("Closed editing session for %s", self.card_id)
        return card.content

    def __enter__(self) -> EditingSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self.closed:
            self.close()
