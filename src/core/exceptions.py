"""
ToneCoach exception hierarchy.

All application-specific exceptions inherit from ToneCoachError. The
recording client uses them to tell device, recording and per-chunk
failures apart; the API middleware renders them as JSON envelopes.
"""

from datetime import UTC, datetime


class ToneCoachError(Exception):
    """Base exception for all ToneCoach errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "TONECOACH_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Microphone / device errors (abort session start)
# ---------------------------------------------------------------------------


class PermissionDeniedError(ToneCoachError):
    """Raised when the user or OS refuses microphone access."""

    def __init__(self, detail: str = "Microphone access was denied") -> None:
        super().__init__(
            detail=f"{detail}. Allow microphone access for this application and try again.",
            code="PERMISSION_DENIED",
            status_code=403,
        )


class NoDeviceError(ToneCoachError):
    """Raised when no microphone is connected."""

    def __init__(self, detail: str = "No microphone was found") -> None:
        super().__init__(
            detail=f"{detail}. Connect a microphone and try again.",
            code="NO_DEVICE",
            status_code=404,
        )


class DeviceUnavailableError(ToneCoachError):
    """Raised when a microphone exists but cannot be opened."""

    def __init__(self, detail: str = "The microphone could not be opened") -> None:
        super().__init__(
            detail=f"{detail}. It may be in use by another application.",
            code="DEVICE_UNAVAILABLE",
            status_code=409,
        )


class UnsupportedEnvironmentError(ToneCoachError):
    """Raised when the host has no audio-capture capability."""

    def __init__(self, detail: str = "Audio capture is not supported here") -> None:
        super().__init__(detail=detail, code="UNSUPPORTED_ENVIRONMENT", status_code=501)


# ---------------------------------------------------------------------------
# Recording lifecycle
# ---------------------------------------------------------------------------


class RecordingFailedError(ToneCoachError):
    """Raised when the audio backend fails while recording."""

    def __init__(self, detail: str = "Recording error occurred") -> None:
        super().__init__(detail=detail, code="RECORDING_FAILED", status_code=500)


class RecorderStateError(ToneCoachError):
    """Raised when a recorder operation is invalid for its current state."""

    def __init__(self, operation: str, state: str) -> None:
        super().__init__(
            detail=f"Cannot {operation} while recorder is {state}",
            code="INVALID_RECORDER_STATE",
            status_code=409,
        )


class SessionAlreadyActiveError(ToneCoachError):
    """Raised when trying to start a session while one is already active."""

    def __init__(self) -> None:
        super().__init__(
            detail="A recording session is already active",
            code="SESSION_ALREADY_ACTIVE",
            status_code=409,
        )


# ---------------------------------------------------------------------------
# Per-chunk client errors (non-fatal, surfaced as notices)
# ---------------------------------------------------------------------------


class TranscriptionFailedError(ToneCoachError):
    """Raised by the client when the transcribe endpoint fails.

    ``upstream_status`` is the HTTP status returned by the service, or None
    when the request never got a response.
    """

    def __init__(
        self,
        detail: str = "Failed to transcribe audio chunk",
        upstream_status: int | None = None,
    ) -> None:
        self.upstream_status = upstream_status
        super().__init__(detail=detail, code="TRANSCRIPTION_FAILED", status_code=502)


class AnalysisFailedError(ToneCoachError):
    """Raised by the client when the analyze endpoint fails."""

    def __init__(
        self,
        detail: str = "Failed to analyze text",
        upstream_status: int | None = None,
    ) -> None:
        self.upstream_status = upstream_status
        super().__init__(detail=detail, code="ANALYSIS_FAILED", status_code=502)


class AnalysisContractViolationError(ToneCoachError):
    """Raised when the analyze endpoint answers with an unexpected payload."""

    def __init__(self, detail: str = "Analysis response violates the rating contract") -> None:
        super().__init__(detail=detail, code="ANALYSIS_CONTRACT_VIOLATION", status_code=502)


# ---------------------------------------------------------------------------
# Server-side errors
# ---------------------------------------------------------------------------


class AudioUploadError(ToneCoachError):
    """Raised when an uploaded audio part is missing, empty or too large."""

    def __init__(self, detail: str = "No audio file provided", status_code: int = 400) -> None:
        super().__init__(detail=detail, code="AUDIO_UPLOAD_ERROR", status_code=status_code)


class TranscriptionError(ToneCoachError):
    """Raised when STT processing fails."""

    def __init__(self, detail: str = "Transcription failed") -> None:
        super().__init__(
            detail=detail,
            code="TRANSCRIPTION_ERROR",
            status_code=500,
        )


class AnalysisError(ToneCoachError):
    """Raised when LLM rating fails or returns unusable output."""

    def __init__(self, detail: str = "Failed to analyze text") -> None:
        super().__init__(
            detail=detail,
            code="ANALYSIS_ERROR",
            status_code=500,
        )
