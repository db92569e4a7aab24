"""Tests for the LLM and STT provider factories."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from src.services.llm import create_llm
from src.services.llm.claude import ClaudeLLM
from src.services.llm.ollama import OllamaLLM
from src.services.transcription import create_stt
from src.services.transcription.whisper import WhisperSTT


def _settings(**overrides):
    defaults = {
        "llm_provider": "ollama",
        "stt_provider": "local",
        "claude_api_key": "sk-test",
        "claude_model": "claude-sonnet-4-20250514",
        "ollama_base_url": "http://localhost:11434",
        "ollama_model": "llama3.2",
        "whisper_model": "base",
        "whisper_default_language": "",
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


@pytest.fixture(autouse=True)
def _patched_settings():
    settings = _settings()
    with (
        patch("src.services.llm.get_settings", return_value=settings),
        patch("src.services.llm.ollama.get_settings", return_value=settings),
        patch("src.services.llm.claude.get_settings", return_value=settings),
        patch("src.services.transcription.get_settings", return_value=settings),
        patch("src.services.transcription.whisper.get_settings", return_value=settings),
        patch("src.services.llm.claude.AsyncAnthropic"),
        patch("src.services.llm.ollama.AsyncClient"),
    ):
        yield settings


class TestCreateLLM:
    def test_defaults_to_configured_provider(self):
        assert isinstance(create_llm(), OllamaLLM)

    def test_configured_provider_is_case_insensitive(self, _patched_settings):
        _patched_settings.llm_provider = "Claude"
        assert isinstance(create_llm(), ClaudeLLM)

    def test_explicit_provider(self):
        assert isinstance(create_llm("claude"), ClaudeLLM)

    def test_kwargs_forwarded(self):
        llm = create_llm("ollama", model="mistral")
        assert llm._model == "mistral"

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown LLM provider: gpt"):
            create_llm("gpt")


class TestCreateSTT:
    @pytest.mark.parametrize("provider", ["local", "whisper"])
    def test_whisper_aliases(self, provider):
        assert isinstance(create_stt(provider), WhisperSTT)

    def test_defaults_to_configured_provider(self):
        assert isinstance(create_stt(), WhisperSTT)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown STT provider"):
            create_stt("openai")
