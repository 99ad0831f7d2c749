"""Evidence generation boundary: Claude client and tolerant response parsing."""

from cardcutter.llm.client import ClaudeEvidenceGenerator, EvidenceGenerator
from cardcutter.llm.evidence import (
    STATUS_FETCH_ERROR,
    STATUS_SUCCESS,
    EvaluationResult,
    EvidenceResult,
    coerce_json,
    parse_evaluation,
    parse_evidence_response,
)

__all__ = [
    "STATUS_FETCH_ERROR",
    "STATUS_SUCCESS",
    "ClaudeEvidenceGenerator",
    "EvaluationResult",
    "EvidenceGenerator",
    "EvidenceResult",
    "coerce_json",
    "parse_evaluation",
    "parse_evidence_response",
]
