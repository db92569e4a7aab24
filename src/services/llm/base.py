"""
Abstract base class for LLM providers.

All LLM implementations (Claude, Ollama, etc.) must implement this interface,
so the communication rater does not depend on a specific provider.
"""

from abc import ABC, abstractmethod


class BaseLLM(ABC):
    """Interface that every LLM provider must implement."""

    @abstractmethod
    async def generate(self, prompt: str, **kwargs) -> str:
        """Generate a free-form text response.

        Args:
            prompt: The user prompt to send to the model.
            **kwargs: Provider-specific options (system, temperature, max_tokens).

        Returns:
            The model's text response.
        """

    @abstractmethod
    async def generate_json(self, prompt: str, system: str, **kwargs) -> str:
        """Generate a response that should be a single JSON object.

        Providers with a native JSON mode enable it; others rely on the
        system prompt. Callers still have to validate the output.

        Args:
            prompt: The user prompt (e.g. the text to rate).
            system: System instructions describing the expected JSON.
            **kwargs: Provider-specific options.

        Returns:
            The raw model output.
        """
