"""Evidence card model.

Cards are stored and exchanged as JSON using camelCase keys
(``highlightColor``, ``evaluationScore``, ...); Python code uses the
snake_case attribute names.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from cardcutter.config import normalise_hex_colour

logger = logging.getLogger(__name__)

DEFAULT_HIGHLIGHT_COLOR = "#00FF00"
UNTITLED_GROUP = "(untitled)"


def new_card_id() -> str:
    return f"c_{uuid4().hex[:12]}"


class CriterionScore(BaseModel):
    """Score and rationale for one evaluation criterion."""

    score: float = 0.0
    reasoning: str = ""


class EvaluationBreakdown(BaseModel):
    """Per-criterion evidence quality scores."""

    credibility: CriterionScore | None = None
    support: CriterionScore | None = None
    contradictions: CriterionScore | None = None


class EvidenceCard(BaseModel):
    """One evidence unit: tagline, source link, citation and tagged content.

    Attributes:
        id: Stable card identifier.
        tagline: The claim the evidence supports; also the grouping key.
        link: Source URL.
        cite: Formatted citation.
        content: Body text in the ``<HL>`` tag grammar.
        highlight_color: ``#RRGGBB`` colour used for this card's highlights.
        evaluation_score: Overall quality score, once evaluated.
        evaluation_breakdown: Per-criterion scores, once evaluated.
        pending: True while evidence generation is still running.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    id: str = Field(default_factory=new_card_id)
    tagline: str = ""
    link: str = ""
    cite: str = ""
    content: str = ""
    highlight_color: str = DEFAULT_HIGHLIGHT_COLOR
    evaluation_score: float | None = None
    evaluation_breakdown: EvaluationBreakdown | None = None
    pending: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _ensure_id(cls, value: object) -> object:
        return value or new_card_id()

    @field_validator("highlight_color", mode="before")
    @classmethod
    def _check_colour(cls, value: object) -> str:
        if not value:
            return DEFAULT_HIGHLIGHT_COLOR
        return normalise_hex_colour(str(value))

    @property
    def group_key(self) -> str:
        """Tagline used for grouping; blank taglines share one group."""
        return self.tagline.strip() or UNTITLED_GROUP


_CARD_LIST = TypeAdapter(list[EvidenceCard])
_RAW_LIST = TypeAdapter(list[Any])


def cards_from_json(data: str | bytes) -> list[EvidenceCard]:
    """Validate a JSON array of cards.

    Raises:
        pydantic.ValidationError: If the data is not a list of cards.
    """
    return _CARD_LIST.validate_json(data)


def cards_to_json(cards: list[EvidenceCard]) -> str:
    return _CARD_LIST.dump_json(cards, by_alias=True, exclude_none=True).decode()


def _drop_fields(item: dict[str, Any], bad: set[str]) -> dict[str, Any]:
    return {k: v for k, v in item.items() if k not in bad and to_camel(k) not in bad}


def stored_cards_from_json(data: str | bytes) -> list[EvidenceCard]:
    """Validate stored cards one at a time so one bad card cannot sink the rest.

    A card with invalid fields (say a hand-edited ``highlightColor`` of
    ``"yellow"``) is kept with those fields reset to their defaults. An entry
    that still does not validate is skipped and logged.

    Raises:
        pydantic.ValidationError: If the data is not a JSON array at all.
    """
    cards: list[EvidenceCard] = []
    for index, item in enumerate(_RAW_LIST.validate_json(data)):
        try:
            cards.append(EvidenceCard.model_validate(item))
            continue
        except ValidationError as exc:
            bad = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
            if not isinstance(item, dict) or not bad:
                logger.warning("Skipping stored card %d: %s", index, exc)
                continue
        logger.warning(
            "Stored card %d has invalid %s; using defaults", index, sorted(bad)
        )
        try:
            cards.append(EvidenceCard.model_validate(_drop_fields(item, bad)))
        except ValidationError as exc:
            logger.warning("Skipping stored card %d: %s", index, exc)
    return cards
