"""
Async HTTP client for the ToneCoach transcription and analysis endpoints.

Uses ``httpx.AsyncClient`` because the recording pipeline runs on one
asyncio event loop and several chunk requests may be in flight at once.
Nothing here retries: a failed chunk is dropped and the next one follows.
"""

import logging

import httpx
from pydantic import ValidationError

from src.core.exceptions import (
    AnalysisContractViolationError,
    AnalysisFailedError,
    TranscriptionFailedError,
)
from src.core.models import AnalysisResult, TranscriptResult

logger = logging.getLogger(__name__)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
        if isinstance(body, dict):
            return str(body.get("detail") or body.get("error") or response.text)
    except ValueError:
        pass
    return response.text or response.reason_phrase


class CoachAPIClient:
    """Thin async wrapper around httpx for the two remote AI endpoints.

    Methods return validated models or raise the per-chunk error of the
    operation (``TranscriptionFailedError`` / ``AnalysisFailedError``) with
    the upstream HTTP status attached when there was one.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Base URL of the ToneCoach server.
            timeout: Per-request timeout in seconds; None waits indefinitely.
            transport: Optional custom transport (tests use ``httpx.MockTransport``).
        """
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self._base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "CoachAPIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        error_cls: type[TranscriptionFailedError] | type[AnalysisFailedError],
        **kwargs,
    ) -> httpx.Response:
        """Execute an HTTP request, translating failures into ``error_cls``.

        Args:
            method: HTTP method name.
            path: Endpoint path (e.g. "/api/transcribe").
            error_cls: Exception type raised on any failure.
            **kwargs: Passed through to httpx (json, files, etc.).

        Returns:
            The httpx Response object with a successful status code.
        """
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise error_cls(
                f"HTTP error {status}: {_error_detail(exc.response)}",
                upstream_status=status,
            ) from None
        except httpx.TimeoutException:
            raise error_cls(f"Request to {path} timed out") from None
        except httpx.HTTPError as exc:
            raise error_cls(f"Network error: {exc}") from None

    async def transcribe(self, chunk: bytes) -> TranscriptResult:
        """Send one WAV chunk to ``POST /api/transcribe``.

        Raises:
            TranscriptionFailedError: On transport errors, non-2xx responses
                or a body without a string ``text`` field.
        """
        resp = await self._request(
            "POST",
            "/api/transcribe",
            TranscriptionFailedError,
            files={"audio": ("audio.wav", chunk, "audio/wav")},
        )
        try:
            result = TranscriptResult.model_validate(resp.json())
        except ValueError as exc:
            raise TranscriptionFailedError(
                f"Malformed transcription response: {exc}",
                upstream_status=resp.status_code,
            ) from None
        logger.debug("Transcript received (%d chars)", len(result.text))
        return result

    async def analyze(self, text: str) -> AnalysisResult:
        """Send new transcript text to ``POST /api/analyze``.

        Raises:
            AnalysisFailedError: On transport errors or non-2xx responses.
            AnalysisContractViolationError: When the body is not JSON, or the
                rating is outside bad/medium/good, or feedback is missing.
        """
        resp = await self._request("POST", "/api/analyze", AnalysisFailedError, json={"text": text})
        try:
            payload = resp.json()
        except ValueError:
            raise AnalysisContractViolationError("Analysis response is not valid JSON") from None
        try:
            return AnalysisResult.model_validate(payload)
        except ValidationError as exc:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) or "body" for err in exc.errors())
            raise AnalysisContractViolationError(
                f"Analysis response violates the rating contract ({fields}): {payload!r}"
            ) from None
