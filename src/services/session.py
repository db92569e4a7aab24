"""Session controller: recorder -> transcription -> delta -> analysis.

Owns at most one ``RecorderSession`` and the two append-only logs the UI
renders (utterances and their ratings). Every emitted chunk is processed
by its own ``asyncio.Task`` so a slow request never holds up the next
chunk. Results are applied in the order requests resolve; because every
chunk holds the whole recording so far, a transcript for an older chunk
than the last one applied is dropped as stale.

Usage::

    controller = create_controller(on_transcript=..., on_analysis=...)
    await controller.start()
    ...
    await controller.stop()
    await controller.aclose()
"""

import asyncio
import logging
import time
from collections.abc import Callable

from src.client.api_client import CoachAPIClient
from src.core.config import Settings, get_settings
from src.core.exceptions import (
    AnalysisContractViolationError,
    AnalysisFailedError,
    RecordingFailedError,
    SessionAlreadyActiveError,
    ToneCoachError,
    TranscriptionFailedError,
)
from src.core.models import AnalysisEntry, RecorderState, Speaker, Utterance
from src.services.audio.guard import MicrophoneConstraints
from src.services.audio.recorder import RecorderSession
from src.services.transcript.delta import TranscriptDeltaTracker
from src.services.transcript.speaker import RandomSpeakerAssigner, SpeakerAssigner

logger = logging.getLogger(__name__)

TranscriptCallback = Callable[[str, Speaker], None]
AnalysisCallback = Callable[[AnalysisEntry], None]
NoticeCallback = Callable[[ToneCoachError], None]
RecorderFactory = Callable[
    [Callable[[bytes], None], Callable[[RecordingFailedError], None]], RecorderSession
]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _parse_device(value: str) -> int | str | None:
    if not value:
        return None
    return int(value) if value.isdigit() else value


def recorder_factory_from_settings(settings: Settings) -> RecorderFactory:
    """Build a factory creating recorders configured from ``settings``."""
    constraints = MicrophoneConstraints(
        sample_rate=settings.sample_rate,
        channels=settings.channels,
        echo_cancellation=settings.echo_cancellation,
        noise_suppression=settings.noise_suppression,
        auto_gain_control=settings.auto_gain_control,
        device=_parse_device(settings.input_device),
    )

    def factory(on_chunk, on_error) -> RecorderSession:
        return RecorderSession(
            on_chunk=on_chunk,
            on_error=on_error,
            constraints=constraints,
            chunk_interval_ms=settings.chunk_interval_ms,
            skip_silent_chunks=settings.skip_silent_chunks,
            silence_threshold=settings.silence_threshold,
        )

    return factory


class SessionController:
    """Coordinates one live recording session and its transcript/analysis logs.

    Args:
        client: Transcription and analysis adapter.
        recorder_factory: Creates a ``RecorderSession`` given the chunk and
            error callbacks.
        on_transcript: Called once per accepted delta with (text, speaker).
        on_analysis: Called once per successful analysis.
        on_notice: Called with non-fatal errors (failed chunk, failed
            analysis, recorder crash) for display as dismissible notices.
        speaker_assigner: Speaker attribution; defaults to a coin flip.
        clock: Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        client: CoachAPIClient,
        recorder_factory: RecorderFactory,
        on_transcript: TranscriptCallback | None = None,
        on_analysis: AnalysisCallback | None = None,
        on_notice: NoticeCallback | None = None,
        speaker_assigner: SpeakerAssigner | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._client = client
        self._recorder_factory = recorder_factory
        self._on_transcript = on_transcript
        self._on_analysis = on_analysis
        self._on_notice = on_notice
        self._speakers = speaker_assigner or RandomSpeakerAssigner()
        self._clock = clock
        self._owns_client = False

        self._recorder: RecorderSession | None = None
        self._tracker = TranscriptDeltaTracker()
        # Bumped on every start/stop; tasks from an older epoch are discarded
        self._epoch = 0
        self._pending: set[asyncio.Task] = set()
        # Chunks are cumulative, so a transcript older than the last accepted one is stale
        self._next_seq = 0
        self._accepted_seq = -1
        self._utterances: list[Utterance] = []
        self._analyses: list[AnalysisEntry] = []

    # -- read-only state --

    @property
    def utterances(self) -> tuple[Utterance, ...]:
        return tuple(self._utterances)

    @property
    def analyses(self) -> tuple[AnalysisEntry, ...]:
        return tuple(self._analyses)

    @property
    def recorder_state(self) -> RecorderState:
        return self._recorder.state if self._recorder is not None else RecorderState.idle

    @property
    def is_recording(self) -> bool:
        return self._recorder is not None and self._recorder.is_recording

    @property
    def pending_chunks(self) -> int:
        """Number of chunk pipelines still waiting on the network."""
        return len(self._pending)

    # -- lifecycle --

    async def start(self) -> None:
        """Reset the logs and start a new recording session.

        A session whose recorder has failed is stopped and replaced.

        Raises:
            SessionAlreadyActiveError: If a session is starting or recording.
            PermissionDeniedError, NoDeviceError, DeviceUnavailableError,
            UnsupportedEnvironmentError: The microphone could not be acquired.
        """
        if self._recorder is not None:
            if self._recorder.state is not RecorderState.errored:
                raise SessionAlreadyActiveError()
            await self.stop()

        self._epoch += 1
        epoch = self._epoch
        self._utterances.clear()
        self._analyses.clear()
        self._tracker.reset()
        self._speakers.reset()
        self._next_seq = 0
        self._accepted_seq = -1

        recorder = self._recorder_factory(
            lambda chunk: self._on_chunk(epoch, chunk),
            lambda exc: self._on_recorder_error(epoch, exc),
        )
        self._recorder = recorder
        try:
            await recorder.start()
        except ToneCoachError as exc:
            logger.warning("Could not start recording: %s", exc.detail)
            if self._recorder is recorder:
                self._recorder = None
                self._epoch += 1
            raise
        if self._recorder is recorder:
            logger.info("Session %d started", epoch)

    async def stop(self) -> None:
        """Stop recording and release the microphone. No-op when idle.

        In-flight requests are left to finish; their results are dropped.
        """
        recorder, self._recorder = self._recorder, None
        if recorder is None:
            return
        self._epoch += 1
        self._tracker.reset()
        await recorder.stop()
        logger.info(
            "Session stopped (%d utterances, %d analyses, %d requests still in flight)",
            len(self._utterances),
            len(self._analyses),
            len(self._pending),
        )

    async def aclose(self) -> None:
        """Teardown: stop, cancel outstanding chunk work, close owned resources."""
        await self.stop()
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        if self._owns_client:
            await self._client.aclose()

    # -- pipeline --

    def _is_current(self, epoch: int) -> bool:
        return epoch == self._epoch

    def _on_chunk(self, epoch: int, chunk: bytes) -> None:
        if not self._is_current(epoch):
            return
        seq = self._next_seq
        self._next_seq += 1
        task = asyncio.create_task(self._process_chunk(epoch, seq, chunk))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _on_recorder_error(self, epoch: int, exc: RecordingFailedError) -> None:
        if not self._is_current(epoch):
            return
        self._notify(exc)

    async def _process_chunk(self, epoch: int, seq: int, chunk: bytes) -> None:
        try:
            try:
                result = await self._client.transcribe(chunk)
            except TranscriptionFailedError as exc:
                if self._is_current(epoch):
                    logger.warning("Chunk transcription failed (dropped): %s", exc.detail)
                    self._notify(exc)
                return

            if not self._is_current(epoch):
                logger.debug("Discarding transcript that resolved after stop")
                return

            if seq <= self._accepted_seq:
                logger.debug("Discarding transcript of chunk %d (chunk %d already applied)", seq, self._accepted_seq)
                return
            self._accepted_seq = seq

            delta = self._tracker.advance(result.text)
            if not delta:
                return

            index = self._append_utterance(delta)
            await self._analyze(epoch, delta, index)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Chunk pipeline crashed for session %d", epoch)

    def _append_utterance(self, text: str) -> int:
        speaker = self._speakers.assign(text)
        self._utterances.append(Utterance(text=text, speaker=speaker, timestamp=self._clock()))
        index = len(self._utterances) - 1
        logger.debug("Utterance %d (speaker %d): %r", index, speaker, text)
        self._emit(self._on_transcript, text, speaker)
        return index

    async def _analyze(self, epoch: int, text: str, utterance_index: int) -> None:
        try:
            result = await self._client.analyze(text)
        except (AnalysisFailedError, AnalysisContractViolationError) as exc:
            if self._is_current(epoch):
                logger.warning("Analysis of utterance %d failed: %s", utterance_index, exc.detail)
                self._notify(exc)
            return

        if not self._is_current(epoch):
            logger.debug("Discarding analysis that resolved after stop")
            return

        entry = AnalysisEntry(
            rating=result.rating,
            feedback=result.feedback,
            utterance_index=utterance_index,
        )
        self._analyses.append(entry)
        self._emit(self._on_analysis, entry)

    def _notify(self, exc: ToneCoachError) -> None:
        self._emit(self._on_notice, exc)

    @staticmethod
    def _emit(callback, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("UI callback %s failed (non-fatal)", getattr(callback, "__name__", callback))


def create_controller(
    settings: Settings | None = None,
    **kwargs,
) -> SessionController:
    """Build a controller with an HTTP client and microphone recorder from settings.

    Keyword arguments are passed to ``SessionController`` (callbacks,
    speaker assigner). The controller closes the client in ``aclose()``.
    """
    settings = settings or get_settings()
    client = CoachAPIClient(base_url=settings.api_base_url, timeout=settings.request_timeout)
    controller = SessionController(
        client=client,
        recorder_factory=recorder_factory_from_settings(settings),
        **kwargs,
    )
    controller._owns_client = True
    return controller
