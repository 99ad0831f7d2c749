"""Evidence cards: model, ordered collection with undo, and storage."""

from cardcutter.cards.collection import (
    CARDS_KEY,
    MIGRATION_KEY,
    MIGRATION_VERSION,
    CardCollection,
    UndoEntry,
)
from cardcutter.cards.models import (
    DEFAULT_HIGHLIGHT_COLOR,
    UNTITLED_GROUP,
    CriterionScore,
    EvaluationBreakdown,
    EvidenceCard,
    cards_from_json,
    cards_to_json,
    stored_cards_from_json,
)
from cardcutter.cards.store import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    "CARDS_KEY",
    "DEFAULT_HIGHLIGHT_COLOR",
    "MIGRATION_KEY",
    "MIGRATION_VERSION",
    "UNTITLED_GROUP",
    "CardCollection",
    "CriterionScore",
    "EvaluationBreakdown",
    "EvidenceCard",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "UndoEntry",
    "cards_from_json",
    "cards_to_json",
    "stored_cards_from_json",
]
