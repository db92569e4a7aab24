"""Whisper STT implementation using faster-whisper.

Transcribes one uploaded audio file per request. The WhisperModel is
loaded lazily and cached at module level; transcription runs in a worker
thread so the event loop keeps serving other chunk uploads.
"""

import asyncio
import logging
from typing import BinaryIO

from faster_whisper import WhisperModel

from src.core.config import get_settings
from src.core.exceptions import TranscriptionError
from src.services.transcription.base import BaseSTT

logger = logging.getLogger(__name__)

_model_cache: WhisperModel | None = None


class WhisperSTT(BaseSTT):
    """Speech-to-text provider using faster-whisper (CTranslate2).

    Args:
        model_size: Whisper model size (tiny, base, small, medium, large-v3).
        device: Computation device ("cpu" or "cuda").
        compute_type: CTranslate2 compute type ("int8", "float16", etc.).
        settings: Optional Settings instance (defaults to get_settings()).
    """

    def __init__(
        self,
        model_size: str | None = None,
        device: str = "cpu",
        compute_type: str = "int8",
        settings=None,
    ) -> None:
        self._settings = settings or get_settings()
        self._model_size = model_size or self._settings.whisper_model
        self._device = device
        self._compute_type = compute_type

    def _get_model(self) -> WhisperModel:
        """Return the cached WhisperModel, loading it on first use."""
        global _model_cache  # noqa: PLW0603
        if _model_cache is None:
            logger.info(
                "Loading Whisper model: %s (device=%s, compute=%s)",
                self._model_size,
                self._device,
                self._compute_type,
            )
            _model_cache = WhisperModel(
                self._model_size,
                device=self._device,
                compute_type=self._compute_type,
            )
        return _model_cache

    def _run_transcription(
        self,
        audio: str | BinaryIO,
        language: str | None = None,
        beam_size: int = 5,
        vad_filter: bool = True,
    ) -> tuple:
        """Run synchronous transcription (CPU-bound).

        Must be called via asyncio.to_thread(). The segment generator is
        materialized in the same thread because CTranslate2 is not safe to
        iterate across threads.

        Returns:
            Tuple of (list[segment_objects], info_object).
        """
        model = self._get_model()
        segments_iter, info = model.transcribe(
            audio,
            language=language,
            beam_size=beam_size,
            vad_filter=vad_filter,
        )
        segments = list(segments_iter)
        return segments, info

    async def transcribe(self, audio: str | BinaryIO, **kwargs) -> dict:
        """Transcribe an audio file to text.

        Args:
            audio: Path or binary file object of the uploaded chunk.
            **kwargs: Optional keys: language, beam_size, vad_filter.

        Returns:
            Dict with text, language and duration.

        Raises:
            TranscriptionError: If decoding or inference fails.
        """
        language = kwargs.get("language") or self._settings.whisper_default_language or None
        try:
            segments, info = await asyncio.to_thread(
                self._run_transcription,
                audio,
                language=language,
                beam_size=kwargs.get("beam_size", 5),
                vad_filter=kwargs.get("vad_filter", True),
            )
        except Exception as exc:
            raise TranscriptionError(detail=f"Whisper transcription failed: {exc}") from exc

        text = " ".join(seg.text.strip() for seg in segments if seg.text.strip())
        return {
            "text": text,
            "language": info.language or "unknown",
            "duration": info.duration,
        }
