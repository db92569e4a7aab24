"""Microphone acquisition with failure classification.

Opens a PortAudio input stream through ``sounddevice`` and turns the many
ways that can fail into the four device errors the UI shows distinct
messages for: permission denied, no device, device unavailable and
unsupported environment.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from src.core.exceptions import (
    DeviceUnavailableError,
    NoDeviceError,
    PermissionDeniedError,
    ToneCoachError,
    UnsupportedEnvironmentError,
)

logger = logging.getLogger(__name__)

_PERMISSION_MARKERS = ("permission", "access denied", "not permitted", "not authorized")
_NO_DEVICE_MARKERS = ("no input device", "invalid device", "device -1", "no default")


@dataclass(frozen=True)
class MicrophoneConstraints:
    """Requested capture format.

    The processing hints (echo cancellation, noise suppression, automatic
    gain) are applied only where the backend supports them. PortAudio does
    not, so they are currently logged and ignored.
    """

    sample_rate: int = 16000
    channels: int = 1
    echo_cancellation: bool = True
    noise_suppression: bool = True
    auto_gain_control: bool = True
    device: int | str | None = None
    blocksize: int = 1024


class MicrophoneStream:
    """A started input stream that buffers 16-bit PCM until drained.

    PortAudio delivers audio on its own thread; ``drain()`` hands the bytes
    captured since the previous call to the event loop side.
    """

    def __init__(self, sample_rate: int, channels: int, blocksize: int = 1024) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.blocksize = blocksize
        self.on_failure: Callable[[str], None] | None = None
        self._lock = threading.Lock()
        self._buffer = bytearray()
        self._stream = None
        self._closed = False

    def open(self, backend, device: int | str | None = None) -> None:
        """Create and start the underlying ``RawInputStream``."""
        self._stream = backend.RawInputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="int16",
            device=device,
            blocksize=self.blocksize,
            callback=self._on_audio,
            finished_callback=self._on_finished,
        )
        self._stream.start()

    @property
    def active(self) -> bool:
        return self._stream is not None and not self._closed and bool(self._stream.active)

    def drain(self) -> bytes:
        """Return and clear the PCM captured since the last drain."""
        with self._lock:
            data = bytes(self._buffer)
            self._buffer.clear()
        return data

    def close(self) -> None:
        """Stop capturing and release the device. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        except Exception as exc:
            logger.warning("Failed to stop input stream cleanly: %s", exc)
        finally:
            stream.close()
            with self._lock:
                self._buffer.clear()
            logger.debug("Microphone released")

    # -- PortAudio thread --

    def _on_audio(self, indata, frames, time_info, status) -> None:  # noqa: ARG002
        if status:
            logger.debug("Input stream status: %s", status)
        with self._lock:
            self._buffer.extend(bytes(indata))

    def _on_finished(self) -> None:
        # Fires on normal close too; only an unexpected end is a failure
        if self._closed:
            return
        if self.on_failure is not None:
            self.on_failure("Audio input stream ended unexpectedly")


def _load_backend():
    """Import sounddevice, which fails with OSError when PortAudio is missing."""
    try:
        import sounddevice
    except OSError as exc:
        raise UnsupportedEnvironmentError(
            f"Audio capture is not supported here: {exc}"
        ) from exc
    return sounddevice


def classify_backend_error(exc: Exception) -> ToneCoachError:
    """Map a PortAudio error onto the device error taxonomy."""
    message = str(exc).lower()
    if any(marker in message for marker in _PERMISSION_MARKERS):
        return PermissionDeniedError()
    if any(marker in message for marker in _NO_DEVICE_MARKERS):
        return NoDeviceError()
    return DeviceUnavailableError(f"The microphone could not be opened ({exc})")


def _log_ignored_hints(constraints: MicrophoneConstraints) -> None:
    hints = {
        "echo_cancellation": constraints.echo_cancellation,
        "noise_suppression": constraints.noise_suppression,
        "auto_gain_control": constraints.auto_gain_control,
    }
    requested = [name for name, enabled in hints.items() if enabled]
    if requested:
        logger.debug("Capture hints not supported by PortAudio, ignoring: %s", requested)


def acquire_microphone(constraints: MicrophoneConstraints | None = None) -> MicrophoneStream:
    """Open the microphone and start capturing.

    Blocking call; run it via ``asyncio.to_thread`` from async code.

    Args:
        constraints: Requested capture format (defaults to 16 kHz mono).

    Returns:
        A started ``MicrophoneStream``. The caller owns it and must close it.

    Raises:
        UnsupportedEnvironmentError: No audio backend on this host.
        NoDeviceError: No input device is present.
        PermissionDeniedError: The OS refused microphone access.
        DeviceUnavailableError: The device exists but could not be opened.
    """
    constraints = constraints or MicrophoneConstraints()
    sd = _load_backend()
    _log_ignored_hints(constraints)

    try:
        info = sd.query_devices(constraints.device, kind="input")
    except ValueError as exc:
        raise NoDeviceError(f"No matching microphone was found ({exc})") from exc
    except sd.PortAudioError as exc:
        raise classify_backend_error(exc) from exc

    max_channels = int(info.get("max_input_channels", 0))
    if max_channels < 1:
        raise NoDeviceError()

    channels = min(constraints.channels, max_channels)
    logger.debug(
        "Opening input device %r (%s Hz, %s channel(s))",
        info.get("name"),
        constraints.sample_rate,
        channels,
    )
    stream = MicrophoneStream(constraints.sample_rate, channels, constraints.blocksize)
    try:
        stream.open(sd, device=constraints.device)
    except sd.PortAudioError as exc:
        stream.close()
        raise classify_backend_error(exc) from exc
    return stream


def list_input_devices() -> list[dict]:
    """Return name/index/channel info for every capture-capable device."""
    sd = _load_backend()
    return [
        {
            "index": index,
            "name": device["name"],
            "channels": device["max_input_channels"],
            "default_samplerate": device["default_samplerate"],
        }
        for index, device in enumerate(sd.query_devices())
        if device["max_input_channels"] > 0
    ]
