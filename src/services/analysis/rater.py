"""
Communication-style rating based on Non-Violent Communication (NVC).

Sends a piece of transcript to the configured LLM and turns its JSON
answer into an ``AnalysisResult`` with a bad/medium/good rating and short
constructive feedback.
"""

import json
import logging
import re

from pydantic import ValidationError

from src.core.exceptions import AnalysisError
from src.core.models import AnalysisResult
from src.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert in Non-Violent Communication (NVC) by Marshall Rosenberg. "
    "Analyze the given text and rate it as 'bad', 'medium', or 'good' based on NVC "
    "principles: observations without evaluation, expressing feelings and needs, "
    "and making clear requests instead of demands or criticism. "
    "Provide brief, constructive feedback on how it could be improved.\n\n"
    'Format: {"rating": "bad" | "medium" | "good", "feedback": "..."}'
)


def _strip_code_fences(text: str) -> str:
    """Remove markdown code fences wrapping JSON from LLM responses."""
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```\w*\n?", "", text)
        text = re.sub(r"\n?```$", "", text)
    return text.strip()


class CommunicationRater:
    """Rates utterances with an LLM provider.

    The rating enumeration is enforced here: a model answering anything
    other than bad/medium/good (case and surrounding whitespace aside)
    is an error, not a default.
    """

    def __init__(self, llm: BaseLLM) -> None:
        self._llm = llm

    async def rate(self, text: str) -> AnalysisResult:
        """Rate one piece of conversation.

        The model's rating is stripped and lowercased before validation, so
        " Good " is accepted as ``good``. Callers only ever see the three
        canonical values; the API client does not normalise and rejects
        anything else.

        Args:
            text: The utterance to analyze.

        Returns:
            AnalysisResult with rating and feedback.

        Raises:
            AnalysisError: If the text is empty, the LLM call fails, or the
                output is not a valid rating object.
        """
        if not text or not text.strip():
            raise AnalysisError("No text to analyze")

        try:
            raw_response = await self._llm.generate_json(text, system=SYSTEM_PROMPT)
        except Exception as exc:
            raise AnalysisError(f"LLM call failed: {exc}") from exc

        if not raw_response:
            raise AnalysisError("No content in LLM response")

        try:
            data = json.loads(_strip_code_fences(raw_response))
        except json.JSONDecodeError as exc:
            raise AnalysisError(f"Invalid JSON from LLM: {raw_response[:200]}") from exc

        if not isinstance(data, dict):
            raise AnalysisError(f"Expected a JSON object from LLM, got: {raw_response[:200]}")

        rating = data.get("rating")
        if isinstance(rating, str):
            data["rating"] = rating.strip().lower()

        try:
            result = AnalysisResult.model_validate(data)
        except ValidationError as exc:
            raise AnalysisError(f"LLM returned an invalid rating object: {raw_response[:200]}") from exc

        logger.debug("Rated %d chars as %s", len(text), result.rating)
        return result
