"""
POST /api/transcribe — speech-to-text for one recorded chunk.

The client uploads a complete audio file in the multipart field ``audio``
and receives ``{"text": ...}``.
"""

import io
import logging

from fastapi import APIRouter, Depends, File, UploadFile

from src.api.dependencies import get_stt
from src.core.config import get_settings
from src.core.exceptions import AudioUploadError
from src.core.models import TranscriptResult
from src.services.transcription import BaseSTT

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transcription"])


@router.post("/transcribe", response_model=TranscriptResult)
async def transcribe(
    audio: UploadFile | None = File(None),
    stt: BaseSTT = Depends(get_stt),
) -> TranscriptResult:
    """Transcribe an uploaded audio chunk."""
    if audio is None:
        raise AudioUploadError()

    data = await audio.read()
    if not data:
        raise AudioUploadError("Uploaded audio is empty")

    max_bytes = get_settings().max_upload_bytes
    if len(data) > max_bytes:
        raise AudioUploadError(
            f"Audio chunk is {len(data)} bytes; the limit is {max_bytes}",
            status_code=413,
        )

    logger.debug("Received audio chunk: %s, %d bytes", audio.content_type, len(data))
    result = await stt.transcribe(io.BytesIO(data))
    text = result.get("text", "")
    logger.debug("Transcription: %r", text)
    return TranscriptResult(text=text)
