"""Evidence generation results and tolerant response parsing.

The model is asked for JSON but routinely wraps it in prose or a fenced
block, and its ``<HL>`` markup is often unbalanced. Everything here turns
such output into a well-formed result without raising.
"""

# Pattern: Functional Core (pure functions, no I/O)

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, ValidationError

from cardcutter.cards.models import CriterionScore, EvaluationBreakdown
from cardcutter.tagged.repair import sanitize

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_FETCH_ERROR = "fetch_error"

_FENCED = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.IGNORECASE | re.DOTALL)


class EvaluationResult(BaseModel):
    """Evidence quality evaluation for one card."""

    score: float
    credibility: CriterionScore
    support: CriterionScore
    contradictions: CriterionScore

    def breakdown(self) -> EvaluationBreakdown:
        return EvaluationBreakdown(
            credibility=self.credibility,
            support=self.support,
            contradictions=self.contradictions,
        )


class EvidenceResult(BaseModel):
    """Outcome of one evidence generation request.

    Attributes:
        status: ``success``, ``fetch_error`` or another model-reported status.
        cite: Formatted citation for the source.
        content: Extracted text in the ``<HL>`` grammar (no block tags).
        error: Explanation when the request did not succeed.
        evaluation: Quality evaluation, when produced alongside the evidence.
    """

    status: str
    cite: str = ""
    content: str = ""
    error: str | None = None
    evaluation: EvaluationResult | None = None

    @property
    def is_success(self) -> bool:
        return self.status == STATUS_SUCCESS

    @classmethod
    def fetch_error(cls, error: str) -> EvidenceResult:
        return cls(status=STATUS_FETCH_ERROR, error=error)


def _try_json(text: str) -> Any | None:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def _between(text: str, open_char: str, close_char: str) -> str | None:
    first = text.find(open_char)
    last = text.rfind(close_char)
    if first >= 0 and last > first:
        return text[first : last + 1]
    return None


def coerce_json(text: str | None) -> Any | None:
    """Extract a JSON value from model output.

    Tries, in order: the whole text, the first fenced code block, the
    outermost ``{...}``, the outermost ``[...]``.

    Examples:
        >>> coerce_json('Sure! ```json\\n{"a": 1}\\n```')
        {'a': 1}
        >>> coerce_json("no json here") is None
        True
    """
    if not text:
        return None

    parsed = _try_json(text)
    if parsed is not None:
        return parsed

    fenced = _FENCED.search(text)
    if fenced and fenced.group(1):
        parsed = _try_json(fenced.group(1))
        if parsed is not None:
            return parsed

    for open_char, close_char in (("{", "}"), ("[", "]")):
        candidate = _between(text, open_char, close_char)
        if candidate is not None:
            parsed = _try_json(candidate)
            if parsed is not None:
                return parsed

    return None


def parse_evidence_response(raw: str | None) -> EvidenceResult:
    """Turn raw model output into an ``EvidenceResult``.

    Never raises. Output that is not an object with string ``status``,
    ``cite`` and ``content`` becomes a ``fetch_error`` result. Successful
    content is sanitised before it is returned.
    """
    parsed = coerce_json(raw)
    if not isinstance(parsed, dict) or not all(
        isinstance(parsed.get(key), str) for key in ("status", "cite", "content")
    ):
        logger.warning("Evidence response had unexpected format")
        return EvidenceResult.fetch_error("Model returned unexpected format")

    evaluation = None
    if isinstance(parsed.get("evaluation"), dict):
        evaluation = parse_evaluation(parsed["evaluation"])

    return EvidenceResult(
        status=parsed["status"],
        cite=parsed["cite"].strip(),
        content=sanitize(parsed["content"]),
        error=parsed.get("error") if isinstance(parsed.get("error"), str) else None,
        evaluation=evaluation,
    )


def parse_evaluation(raw: str | dict[str, Any] | None) -> EvaluationResult | None:
    """Parse an evaluation payload; None when it is missing or malformed."""
    parsed = raw if isinstance(raw, dict) else coerce_json(raw)
    if not isinstance(parsed, dict):
        return None
    try:
        return EvaluationResult.model_validate(parsed)
    except ValidationError as exc:
        logger.warning("Evaluation response had unexpected format: %s", exc)
        return None
