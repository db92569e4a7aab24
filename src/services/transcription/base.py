"""
Abstract base class for Speech-to-Text providers.

The /api/transcribe endpoint depends on this interface only, so another
STT backend can replace faster-whisper without touching the route.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO


class BaseSTT(ABC):
    """Interface that every STT provider must implement."""

    @abstractmethod
    async def transcribe(self, audio: str | BinaryIO, **kwargs) -> dict:
        """Transcribe a complete audio file to text.

        Args:
            audio: Path or binary file object of an encoded audio file
                (WAV, WebM, ...).
            **kwargs: Provider-specific options (language, beam_size, etc.).

        Returns:
            Dict with keys: ``text``, ``language``, ``duration``.
        """
