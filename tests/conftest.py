"""Shared pytest fixtures for the ToneCoach test suite.

Provides mock LLM/STT providers, synthetic PCM audio, and fakes for the
microphone stream and the HTTP adapter so the recording pipeline can be
exercised without audio hardware or network access.
"""

import asyncio
import json
import math
import struct
from unittest.mock import AsyncMock

import pytest

from src.core.models import AnalysisResult, Rating, TranscriptResult

# ---------------------------------------------------------------------------
# LLM / STT Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm():
    """Create a mock LLM provider returning a valid rating object."""
    from src.services.llm.base import BaseLLM

    llm = AsyncMock(spec=BaseLLM)
    llm.generate_json.return_value = json.dumps(
        {"rating": "good", "feedback": "Clear observation and request."}
    )
    return llm


@pytest.fixture
def mock_stt():
    """Create a mock STT provider with a default transcript."""
    from src.services.transcription.base import BaseSTT

    stt = AsyncMock(spec=BaseSTT)
    stt.transcribe.return_value = {
        "text": "I feel frustrated when the dishes pile up.",
        "language": "en",
        "duration": 3.0,
    }
    return stt


# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_pcm_bytes():
    """Generate 1 second of 440Hz sine-wave PCM audio (16kHz, 16-bit, mono)."""
    sample_rate = 16000
    frequency = 440.0
    amplitude = 16000  # ~50% of max int16

    samples = []
    for i in range(sample_rate):
        value = int(amplitude * math.sin(2 * math.pi * frequency * i / sample_rate))
        samples.append(struct.pack("<h", value))
    return b"".join(samples)


@pytest.fixture
def silent_pcm_bytes():
    """Generate 1 second of silence as PCM audio (16kHz, 16-bit, mono)."""
    return b"\x00\x00" * 16000


class FakeMicrophoneStream:
    """Stands in for ``MicrophoneStream``: hands out queued PCM slices."""

    def __init__(self, slices=None, sample_rate=16000, channels=1):
        self.sample_rate = sample_rate
        self.channels = channels
        self.on_failure = None
        self.slices = list(slices or [])
        self.closed = False
        self.active = True

    def drain(self) -> bytes:
        return self.slices.pop(0) if self.slices else b""

    def close(self) -> None:
        self.closed = True
        self.active = False


@pytest.fixture
def fake_stream(sample_pcm_bytes):
    """A fake microphone that yields one second of tone per drain."""
    return FakeMicrophoneStream(slices=[sample_pcm_bytes] * 50)


# ---------------------------------------------------------------------------
# Pipeline Fixtures
# ---------------------------------------------------------------------------


class FakeRecorder:
    """Minimal ``RecorderSession`` stand-in driven directly by tests.

    ``emit()`` plays the role of a timer tick; ``fail()`` simulates a
    backend crash.
    """

    def __init__(self, on_chunk, on_error, start_error=None):
        from src.core.models import RecorderState

        self._states = RecorderState
        self.on_chunk = on_chunk
        self.on_error = on_error
        self.start_error = start_error
        self.state = RecorderState.idle
        self.stop_calls = 0

    @property
    def is_recording(self):
        return self.state is self._states.recording

    async def start(self):
        if self.start_error is not None:
            self.state = self._states.errored
            raise self.start_error
        self.state = self._states.recording

    async def stop(self):
        self.stop_calls += 1
        self.state = self._states.idle

    def emit(self, chunk: bytes = b"chunk"):
        self.on_chunk(chunk)

    def fail(self, message="Audio input stream ended unexpectedly"):
        from src.core.exceptions import RecordingFailedError

        self.state = self._states.errored
        self.on_error(RecordingFailedError(message))


class ScriptedClient:
    """Fake ``CoachAPIClient`` whose calls resolve when the test says so.

    Each ``transcribe``/``analyze`` call registers a future; tests resolve
    them in any order to model out-of-order network completion.
    """

    def __init__(self):
        self.transcribe_calls: list[asyncio.Future] = []
        self.analyze_calls: list[tuple[str, asyncio.Future]] = []

    async def transcribe(self, chunk: bytes) -> TranscriptResult:
        future = asyncio.get_running_loop().create_future()
        self.transcribe_calls.append(future)
        return await future

    async def analyze(self, text: str) -> AnalysisResult:
        future = asyncio.get_running_loop().create_future()
        self.analyze_calls.append((text, future))
        return await future

    async def aclose(self):
        pass

    def resolve_transcript(self, index: int, text: str) -> None:
        self.transcribe_calls[index].set_result(TranscriptResult(text=text))

    def fail_transcript(self, index: int, exc: Exception) -> None:
        self.transcribe_calls[index].set_exception(exc)

    def resolve_analysis(self, index: int, rating: str = "good", feedback: str = "ok") -> None:
        self.analyze_calls[index][1].set_result(
            AnalysisResult(rating=Rating(rating), feedback=feedback)
        )

    def fail_analysis(self, index: int, exc: Exception) -> None:
        self.analyze_calls[index][1].set_exception(exc)


async def settle(rounds: int = 5) -> None:
    """Let pending tasks run until they block on their next future."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def scripted_client():
    return ScriptedClient()


@pytest.fixture
def drain_tasks():
    """Return a coroutine function that lets scheduled tasks make progress."""
    return settle


@pytest.fixture
def fake_recorders():
    """Factory for ``FakeRecorder``; created recorders are collected in ``.created``."""

    class Factory:
        def __init__(self):
            self.created: list[FakeRecorder] = []
            self.start_error = None

        def __call__(self, on_chunk, on_error):
            recorder = FakeRecorder(on_chunk, on_error, start_error=self.start_error)
            self.created.append(recorder)
            return recorder

        @property
        def last(self) -> FakeRecorder:
            return self.created[-1]

    return Factory()
