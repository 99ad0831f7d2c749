"""Prompt assembly for evidence generation and evaluation."""

from __future__ import annotations

import json
from typing import Literal, TypedDict


class MessageDict(TypedDict):
    """Message format compatible with Claude API."""

    role: Literal["user", "assistant"]
    content: str


EVIDENCE_SYSTEM = """\
You cut debate evidence. Given a tagline (the claim) and a source link, \
read the source and return the passage that best supports the tagline.

Rules for "content":
- Copy the source text verbatim; never paraphrase.
- Wrap the words a debater would read aloud in <HL>...</HL>. Highlight \
short, non-overlapping spans; never nest <HL> tags.
- Use a newline only between paragraphs. Do not emit [TAGLINE], [LINK] \
or [CITE] tags.

Rules for "cite": author last name and year, then full name, credentials, \
title, publication, date and URL, on one line.

If the source cannot be read, return status "fetch_error" and empty strings."""

EVIDENCE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "status": {"type": "string", "enum": ["success", "fetch_error"]},
        "cite": {"type": "string"},
        "content": {"type": "string"},
    },
    "required": ["status", "cite", "content"],
}

EVALUATION_SYSTEM = """\
You evaluate debate evidence. Score how well the content supports the \
tagline on a 0-10 scale, and score credibility, support and contradictions \
separately (0-10 each) with one or two sentences of reasoning."""

_CRITERION = {
    "type": "object",
    "properties": {"score": {"type": "number"}, "reasoning": {"type": "string"}},
    "required": ["score", "reasoning"],
}

EVALUATION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "score": {"type": "number"},
        "credibility": _CRITERION,
        "support": _CRITERION,
        "contradictions": _CRITERION,
    },
    "required": ["score", "credibility", "support", "contradictions"],
}


def build_system_prompt(instructions: str, schema: dict[str, object]) -> str:
    """Join instructions with the JSON-only output contract."""
    return "\n\n".join(
        [
            instructions,
            "Return JSON only. Match this JSON schema exactly:",
            json.dumps(schema),
        ]
    )


def build_evidence_messages(tagline: str, link: str) -> list[MessageDict]:
    return [{"role": "user", "content": f"tagline: {tagline}\nlink: {link}"}]


def build_evaluation_messages(
    tagline: str, cite: str, content: str, link: str
) -> list[MessageDict]:
    return [
        {
            "role": "user",
            "content": (
                f"tagline: {tagline}\ncite: {cite}\ncontent: {content}\nlink: {link}"
            ),
        }
    ]
