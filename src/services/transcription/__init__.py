"""
Transcription module - Speech-to-text abstraction layer.

Factory function for creating STT instances based on provider configuration.
"""

from src.core.config import get_settings

from .base import BaseSTT

__all__ = ["BaseSTT", "create_stt"]


def create_stt(provider: str | None = None, **kwargs) -> BaseSTT:
    """Create the STT provider named by ``provider`` or by settings.

    Args:
        provider: "local" / "whisper" for faster-whisper; defaults to
            ``settings.stt_provider``.
        **kwargs: Provider-specific configuration.

    Raises:
        ValueError: If the provider is unknown.
    """
    name = provider or get_settings().stt_provider
    if name in ("whisper", "local"):
        from .whisper import WhisperSTT

        return WhisperSTT(**kwargs)
    raise ValueError(f"Unknown STT provider: {name}")
