"""Ordered card collection with an undo log and persistence.

The collection owns every card. Destructive commands record the removed
cards together with their original indices, so ``undo`` can reinsert them
exactly where they were. Undo entries expire after a short window.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from pydantic import ValidationError

from cardcutter.cards.models import (
    UNTITLED_GROUP,
    EvidenceCard,
    cards_to_json,
    stored_cards_from_json,
)
from cardcutter.cards.store import KeyValueStore, MemoryStore
from cardcutter.config import normalise_hex_colour
from cardcutter.errors import CardNotFoundError
from cardcutter.tagged.repair import sanitize

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from cardcutter.config import Settings
    from cardcutter.llm.evidence import EvidenceResult

logger = logging.getLogger(__name__)

CARDS_KEY = "cardsMemory"
MIGRATION_KEY = "hlTagMigrationVersion"
# Bump when stored content needs another pass through the sanitiser
MIGRATION_VERSION = 1


@dataclass(frozen=True)
class UndoEntry:
    """Inverse of one destructive command.

    Attributes:
        kind: ``card`` for a single delete, ``group`` for a tagline group.
        label: Card id or group tagline, for messages.
        removed: ``(original_index, card)`` pairs.
        created_at: Clock reading when the command ran.
    """

    kind: Literal["card", "group"]
    label: str
    removed: tuple[tuple[int, EvidenceCard], ...]
    created_at: float


class CardCollection:
    """The user's cards, in display order."""

    def __init__(
        self,
        store: KeyValueStore | None = None,
        *,
        undo_window_seconds: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store: KeyValueStore = store if store is not None else MemoryStore()
        self.undo_window_seconds = undo_window_seconds
        self._clock = clock
        self._cards: list[EvidenceCard] = []
        self._undo_log: list[UndoEntry] = []

    @classmethod
    def from_settings(
        cls, settings: Settings, store: KeyValueStore | None = None
    ) -> CardCollection:
        return cls(store, undo_window_seconds=settings.app.undo_window_seconds)

    # -- queries -----------------------------------------------------------

    @property
    def cards(self) -> tuple[EvidenceCard, ...]:
        return tuple(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[EvidenceCard]:
        return iter(tuple(self._cards))

    def index_of(self, card_id: str) -> int:
        for i, card in enumerate(self._cards):
            if card.id == card_id:
                return i
        raise CardNotFoundError(card_id)

    def get(self, card_id: str) -> EvidenceCard:
        """Return the card with ``card_id``.

        Raises:
            CardNotFoundError: If no such card exists.
        """
        return self._cards[self.index_of(card_id)]

    def groups(self) -> list[tuple[str, list[EvidenceCard]]]:
        """Cards grouped by tagline, groups in order of first appearance."""
        grouped: dict[str, list[EvidenceCard]] = {}
        for card in self._cards:
            grouped.setdefault(card.group_key, []).append(card)
        return list(grouped.items())

    # -- commands ----------------------------------------------------------

    def add_pending(self, tagline: str, link: str) -> EvidenceCard:
        """Append a placeholder card while evidence is being generated."""
        card = EvidenceCard(tagline=tagline.strip(), link=link.strip(), pending=True)
        self._cards.append(card)
        self.persist()
        logger.debug("Added pending card %s", card.id)
        return card

    def resolve(self, card_id: str, result: EvidenceResult) -> EvidenceCard | None:
        """Populate a pending card from a generation result.

        A failed result discards the card and returns None; ``result.error``
        says why. A successful result fills in the citation and sanitised
        content, plus the evaluation when one came with it.
        """
        index = self.index_of(card_id)
        if not result.is_success:
            removed = self._cards.pop(index)
            self.persist()
            logger.warning(
                "Discarded pending card %s: %s",
                removed.id,
                result.error or result.status,
            )
            return None

        card = self._cards[index].model_copy(
            update={
                "cite": result.cite,
                "content": sanitize(result.content),
                "pending": False,
            }
        )
        if result.evaluation is not None:
            card = card.model_copy(
                update={
                    "evaluation_score": result.evaluation.score,
                    "evaluation_breakdown": result.evaluation.breakdown(),
                }
            )
        self._cards[index] = card
        self.persist()
        return card

    def update_content(self, card_id: str, content: str) -> EvidenceCard:
        """Replace a card's content with a sanitised copy of ``content``."""
        index = self.index_of(card_id)
        card = self._cards[index].model_copy(update={"content": sanitize(content)})
        self._cards[index] = card
        self.persist()
        return card

    def set_color(self, card_id: str, color: str) -> EvidenceCard:
        index = self.index_of(card_id)
        card = self._cards[index].model_copy(
            update={"highlight_color": normalise_hex_colour(color)}
        )
        self._cards[index] = card
        self.persist()
        return card

    def _record(
        self,
        kind: Literal["card", "group"],
        label: str,
        removed: list[tuple[int, EvidenceCard]],
    ) -> UndoEntry:
        entry = UndoEntry(kind, label, tuple(removed), self._clock())
        self._undo_log.append(entry)
        return entry

    def delete(self, card_id: str) -> EvidenceCard:
        """Remove one card, recording it for undo."""
        index = self.index_of(card_id)
        card = self._cards.pop(index)
        self._record("card", card_id, [(index, card)])
        self.persist()
        return card

    def delete_group(self, tagline: str) -> list[EvidenceCard]:
        """Remove every card in the tagline group, recording them for undo."""
        key = tagline.strip() or UNTITLED_GROUP
        removed: list[tuple[int, EvidenceCard]] = []
        remaining: list[EvidenceCard] = []
        for i, card in enumerate(self._cards):
            if card.group_key == key:
                removed.append((i, card))
            else:
                remaining.append(card)
        if not removed:
            return []
        self._cards = remaining
        self._record("group", key, removed)
        self.persist()
        logger.info("Deleted group %r (%d cards)", key, len(removed))
        return [card for _, card in removed]

    def _expire(self) -> None:
        now = self._clock()
        self._undo_log = [
            entry
            for entry in self._undo_log
            if now - entry.created_at <= self.undo_window_seconds
        ]

    def can_undo(self) -> bool:
        self._expire()
        return bool(self._undo_log)

    def undo(self) -> list[EvidenceCard]:
        """Reinsert the cards removed by the most recent unexpired delete.

        Cards go back at their original indices in ascending order (clamped
        to the current length). Returns the restored cards, or an empty list
        when there is nothing to undo.
        """
        self._expire()
        if not self._undo_log:
            return []
        entry = self._undo_log.pop()
        for index, card in sorted(entry.removed, key=lambda pair: pair[0]):
            self._cards.insert(min(index, len(self._cards)), card)
        self.persist()
        logger.debug("Undid %s delete of %r", entry.kind, entry.label)
        return [card for _, card in entry.removed]

    # -- persistence -------------------------------------------------------

    def persist(self) -> None:
        self.store.set(CARDS_KEY, cards_to_json(self._cards))

    def load(self) -> None:
        """Load cards from the store, running the content migration once.

        Cards are validated one at a time: invalid fields fall back to their
        defaults and unusable entries are skipped. Stored data that is not a
        card list at all is logged and replaced by an empty collection.
        """
        raw = self.store.get(CARDS_KEY)
        try:
            self._cards = stored_cards_from_json(raw) if raw else []
        except ValidationError as exc:
            logger.error("Stored cards are invalid, starting empty: %s", exc)
            self._cards = []
        self._undo_log = []

        version = int(self.store.get(MIGRATION_KEY) or 0)
        if version < MIGRATION_VERSION:
            self._migrate(version)

    def _migrate(self, from_version: int) -> None:
        changed = 0
        for i, card in enumerate(self._cards):
            cleaned = sanitize(card.content)
            if cleaned != card.content:
                self._cards[i] = card.model_copy(update={"content": cleaned})
                changed += 1
        self.store.set(MIGRATION_KEY, str(MIGRATION_VERSION))
        if changed:
            self.persist()
        logger.info(
            "Migrated stored cards from v%d to v%d (%d changed)",
            from_version,
            MIGRATION_VERSION,
            changed,
        )
