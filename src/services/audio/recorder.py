"""Recorder session: microphone capture with timer-driven chunk emission.

One ``RecorderSession`` owns one microphone stream at a time. Every
``chunk_interval_ms`` it drains the audio captured since the previous tick,
appends it to the session's buffers and emits the whole recording so far
as a single WAV file. Transcribing cumulative audio lets the transcript
grow by prefix, which is what ``TranscriptDeltaTracker`` relies on.

States: idle -> starting -> recording -> stopping -> idle,
plus errored (from starting or recording).
"""

import asyncio
import logging
from collections.abc import Callable

from src.core.exceptions import RecorderStateError, RecordingFailedError
from src.core.models import RecorderState
from src.services.audio.guard import MicrophoneConstraints, MicrophoneStream, acquire_microphone
from src.services.audio.processor import AudioProcessor

logger = logging.getLogger(__name__)


class RecorderSession:
    """Owns the microphone stream, the chunk timer and the captured audio.

    Args:
        on_chunk: Called with each emitted WAV chunk. Must not block; the
            session controller schedules the network work and returns.
        on_error: Called with ``RecordingFailedError`` when the backend dies
            mid-recording. All handles are already released by then.
        constraints: Requested capture format.
        chunk_interval_ms: Emission cadence in milliseconds.
        acquire: Microphone factory (blocking; run in a worker thread).
        skip_silent_chunks: Do not emit when the newest slice is silence.
        silence_threshold: RMS threshold for ``skip_silent_chunks``.
    """

    def __init__(
        self,
        on_chunk: Callable[[bytes], None],
        on_error: Callable[[RecordingFailedError], None],
        constraints: MicrophoneConstraints | None = None,
        chunk_interval_ms: int = 3000,
        acquire: Callable[[MicrophoneConstraints], MicrophoneStream] = acquire_microphone,
        skip_silent_chunks: bool = True,
        silence_threshold: float = 0.01,
    ) -> None:
        if chunk_interval_ms <= 0:
            raise ValueError("chunk_interval_ms must be positive")
        self._on_chunk = on_chunk
        self._on_error = on_error
        self._constraints = constraints or MicrophoneConstraints()
        self._interval = chunk_interval_ms / 1000
        self._acquire = acquire
        self._skip_silent = skip_silent_chunks
        self._silence_threshold = silence_threshold

        self._state = RecorderState.idle
        self._stream: MicrophoneStream | None = None
        self._processor: AudioProcessor | None = None
        self._timer: asyncio.Task | None = None
        self._chunks: list[bytes] = []

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is RecorderState.recording

    @property
    def captured_seconds(self) -> float:
        """Duration of the audio accumulated in this session."""
        if self._processor is None:
            return 0.0
        return self._processor.duration(b"".join(self._chunks))

    async def start(self) -> None:
        """Acquire the microphone and begin emitting chunks.

        Raises:
            RecorderStateError: If the recorder is not idle.
            PermissionDeniedError, NoDeviceError, DeviceUnavailableError,
            UnsupportedEnvironmentError: Propagated unchanged from the guard;
                the recorder is left in ``errored`` unless
                ``stop()`` was called while the request was pending.
        """
        if self._state is not RecorderState.idle:
            raise RecorderStateError("start", self._state)

        self._state = RecorderState.starting
        logger.debug("Recorder starting")
        try:
            stream = await asyncio.to_thread(self._acquire, self._constraints)
        except Exception as exc:
            if self._state is not RecorderState.starting:
                logger.debug("Microphone request failed after stop(): %s", exc)
                return
            self._state = RecorderState.errored
            raise

        if self._state is not RecorderState.starting:
            # stop() arrived while the permission request was pending
            logger.debug("Recorder stopped during start; releasing microphone")
            stream.close()
            return

        loop = asyncio.get_running_loop()
        stream.on_failure = lambda message: loop.call_soon_threadsafe(self._fail, message)
        self._stream = stream
        self._processor = AudioProcessor(sample_rate=stream.sample_rate, channels=stream.channels)
        self._chunks = []
        self._state = RecorderState.recording
        self._timer = asyncio.create_task(self._tick_loop())
        logger.info("Recording started (chunk interval %.1fs)", self._interval)

    async def stop(self) -> None:
        """Cancel the timer, release the microphone and drop captured audio.

        No-op when already idle or stopping.
        """
        if self._state in (RecorderState.idle, RecorderState.stopping):
            return
        if self._state is RecorderState.starting:
            self._state = RecorderState.idle
            return

        self._state = RecorderState.stopping
        timer = self._timer
        self._release()
        if timer is not None and timer is not asyncio.current_task():
            await asyncio.gather(timer, return_exceptions=True)
        self._state = RecorderState.idle
        logger.info("Recording stopped")

    async def _tick_loop(self) -> None:
        while self._state is RecorderState.recording:
            await asyncio.sleep(self._interval)
            if self._state is not RecorderState.recording:
                break
            try:
                self._emit()
            except Exception as exc:
                logger.exception("Chunk encoder failed")
                self._fail(f"Recording error occurred: {exc}")
                return

    def _emit(self) -> None:
        stream = self._stream
        if stream is None:
            return
        if not stream.active:
            self._fail("Audio input stream is no longer active")
            return

        pcm = stream.drain()
        if not pcm:
            logger.debug("No audio captured this tick")
            return
        self._chunks.append(pcm)

        if self._skip_silent and self._processor.is_silent(pcm, self._silence_threshold):
            logger.debug("Skipping silent slice (%d bytes)", len(pcm))
            return

        chunk = self._processor.pcm_to_wav(b"".join(self._chunks))
        logger.debug(
            "Emitting chunk %d: %d bytes (%.1fs of audio)",
            len(self._chunks),
            len(chunk),
            self.captured_seconds,
        )
        self._on_chunk(chunk)

    def _fail(self, message: str) -> None:
        if self._state is not RecorderState.recording:
            return
        logger.error("Recorder failed: %s", message)
        self._state = RecorderState.errored
        self._release()
        self._on_error(RecordingFailedError(message))

    def _release(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None and timer is not asyncio.current_task():
            timer.cancel()
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.on_failure = None
            stream.close()
        self._chunks = []
