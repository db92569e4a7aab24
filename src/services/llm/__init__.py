"""
LLM module - providers used by the /api/analyze endpoint.
"""

from src.core.config import get_settings

from .base import BaseLLM

__all__ = ["BaseLLM", "create_llm"]

_PROVIDERS = ("ollama", "claude")


def create_llm(provider: str | None = None, **kwargs) -> BaseLLM:
    """Create the LLM provider named by ``provider`` or by settings.

    Args:
        provider: "ollama" or "claude"; defaults to ``settings.llm_provider``.
        **kwargs: Passed to the provider constructor (model, temperature, ...).

    Raises:
        ValueError: If the provider is unknown.
    """
    name = (provider or get_settings().llm_provider).lower()
    if name == "ollama":
        from .ollama import OllamaLLM

        return OllamaLLM(**kwargs)
    if name == "claude":
        from .claude import ClaudeLLM

        return ClaudeLLM(**kwargs)
    raise ValueError(f"Unknown LLM provider: {name} (expected one of {', '.join(_PROVIDERS)})")
