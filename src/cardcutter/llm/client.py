"""Claude API client for evidence generation."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import TYPE_CHECKING, Protocol

import anthropic

from cardcutter.llm.evidence import (
    EvaluationResult,
    EvidenceResult,
    parse_evaluation,
    parse_evidence_response,
)
from cardcutter.llm.prompt import (
    EVALUATION_SCHEMA,
    EVALUATION_SYSTEM,
    EVIDENCE_SCHEMA,
    EVIDENCE_SYSTEM,
    build_evaluation_messages,
    build_evidence_messages,
    build_system_prompt,
)

if TYPE_CHECKING:
    from cardcutter.config import Settings
    from cardcutter.llm.prompt import MessageDict

logger = logging.getLogger(__name__)


class EvidenceGenerator(Protocol):
    """Anything that can cut evidence for a tagline from a source link."""

    async def generate(self, tagline: str, link: str) -> EvidenceResult:
        """Return evidence for ``tagline`` from ``link``.

        Implementations never raise for model or network failures; they
        return a ``fetch_error`` result instead.
        """
        ...


class ClaudeEvidenceGenerator:
    """Evidence generator backed by the Claude API.

    Uses the async Anthropic client. Failed calls are retried with a linear
    backoff (``backoff_seconds * attempt``).
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 4096,
        retries: int = 3,
        backoff_seconds: float = 0.5,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            api_key: Anthropic API key. If not provided, reads from ANTHROPIC_API_KEY.
            model: Model identifier to use.
            max_tokens: Response token limit.
            retries: Total attempts per request (at least one is made).
            backoff_seconds: Base delay between attempts.
            client: Pre-built client, mainly for tests.

        Raises:
            ValueError: If no API key is available and no client was given.
        """
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if client is None and not self.api_key:
            raise ValueError("API key required. Set LLM__API_KEY or pass api_key.")

        self.model = model
        self.max_tokens = max_tokens
        self.retries = max(1, retries)
        self.backoff_seconds = backoff_seconds
        self._client = client or anthropic.AsyncAnthropic(api_key=self.api_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> ClaudeEvidenceGenerator:
        llm = settings.llm
        return cls(
            api_key=llm.api_key.get_secret_value() or None,
            model=llm.model,
            max_tokens=llm.max_tokens,
            retries=llm.retries,
            backoff_seconds=llm.backoff_seconds,
        )

    async def _complete_once(self, system: str, messages: list[MessageDict]) -> str:
        response = await self._client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system,
            messages=messages,  # type: ignore[arg-type]
        )
        if not response.content:
            raise ValueError("Empty response from Claude API")

        text = "".join(
            block.text
            for block in response.content
            if isinstance(block, anthropic.types.TextBlock)
        )
        if not text:
            raise ValueError(f"Unexpected response type: {response.content[0].type}")
        return text

    async def complete(self, system: str, messages: list[MessageDict]) -> str:
        """Call the model, retrying failed attempts.

        Raises:
            anthropic.APIError: If every attempt failed at the API.
            ValueError: If every attempt returned no text.
        """
        for attempt in range(1, self.retries + 1):
            try:
                return await self._complete_once(system, messages)
            except (anthropic.APIError, ValueError) as exc:
                logger.warning(
                    "Claude call failed (attempt %d/%d): %s",
                    attempt,
                    self.retries,
                    exc,
                )
                if attempt == self.retries:
                    raise
                await asyncio.sleep(self.backoff_seconds * attempt)
        msg = f"retries must be at least 1, got {self.retries}"
        raise ValueError(msg)

    async def generate(self, tagline: str, link: str) -> EvidenceResult:
        """Cut evidence for ``tagline`` from ``link``; never raises."""
        if not tagline.strip() or not link.strip():
            return EvidenceResult.fetch_error("tagline and link are required")

        system = build_system_prompt(EVIDENCE_SYSTEM, EVIDENCE_SCHEMA)
        try:
            raw = await self.complete(system, build_evidence_messages(tagline, link))
        except (anthropic.APIError, ValueError) as exc:
            logger.error("Evidence generation failed for %s: %s", link, exc)
            return EvidenceResult.fetch_error(str(exc))

        result = parse_evidence_response(raw)
        logger.info("Evidence for %s: status=%s", link, result.status)
        return result

    async def evaluate(
        self, tagline: str, cite: str, content: str, link: str
    ) -> EvaluationResult | None:
        """Score a card's evidence; None when the model could not be used."""
        system = build_system_prompt(EVALUATION_SYSTEM, EVALUATION_SCHEMA)
        messages = build_evaluation_messages(tagline, cite, content, link)
        try:
            raw = await self.complete(system, messages)
        except (anthropic.APIError, ValueError) as exc:
            logger.error("Evidence evaluation failed for %s: %s", link, exc)
            return None
        return parse_evaluation(raw)
