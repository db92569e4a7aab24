"""Tests for microphone acquisition and device-error classification.

The sounddevice backend is replaced by a SimpleNamespace exposing the
handful of attributes the guard touches, so no audio hardware is needed.
"""

import builtins
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from src.core.exceptions import (
    DeviceUnavailableError,
    NoDeviceError,
    PermissionDeniedError,
    UnsupportedEnvironmentError,
)
from src.services.audio.guard import (
    MicrophoneConstraints,
    MicrophoneStream,
    acquire_microphone,
    classify_backend_error,
    list_input_devices,
)


class PortAudioError(Exception):
    pass


class FakeRawInputStream:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.active = False
        self.stopped = False
        self.closed = False

    def start(self):
        self.active = True

    def stop(self):
        self.active = False
        self.stopped = True

    def close(self):
        self.closed = True


def _backend(device_info=None, query_error=None, open_error=None):
    opened = []

    def query_devices(device=None, kind=None):
        if query_error is not None:
            raise query_error
        if kind is None:
            return [
                {"name": "Speakers", "max_input_channels": 0, "default_samplerate": 48000.0},
                {"name": "USB Mic", "max_input_channels": 2, "default_samplerate": 44100.0},
            ]
        return device_info or {"name": "USB Mic", "max_input_channels": 2}

    def raw_input_stream(**kwargs):
        if open_error is not None:
            raise open_error
        stream = FakeRawInputStream(**kwargs)
        opened.append(stream)
        return stream

    return SimpleNamespace(
        PortAudioError=PortAudioError,
        query_devices=query_devices,
        RawInputStream=raw_input_stream,
        opened=opened,
    )


def _patch_backend(backend):
    return patch("src.services.audio.guard._load_backend", return_value=backend)


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------


class TestClassifyBackendError:
    @pytest.mark.parametrize(
        "message",
        [
            "Error opening InputStream: Permission denied [PaErrorCode -9999]",
            "Access denied by system policy",
            "Operation not permitted",
        ],
    )
    def test_permission_messages(self, message):
        assert isinstance(classify_backend_error(PortAudioError(message)), PermissionDeniedError)

    @pytest.mark.parametrize(
        "message",
        ["Invalid device [PaErrorCode -9996]", "Error querying device -1", "No input device matching 'foo'"],
    )
    def test_missing_device_messages(self, message):
        assert isinstance(classify_backend_error(PortAudioError(message)), NoDeviceError)

    def test_anything_else_is_unavailable(self):
        err = classify_backend_error(PortAudioError("Device unavailable [PaErrorCode -9985]"))
        assert isinstance(err, DeviceUnavailableError)
        assert "-9985" in err.detail

    def test_permission_detail_tells_user_what_to_do(self):
        err = classify_backend_error(PortAudioError("permission denied"))
        assert "Allow microphone access" in err.detail


# ---------------------------------------------------------------------------
# acquire_microphone
# ---------------------------------------------------------------------------


class TestAcquireMicrophone:
    def test_opens_and_starts_stream(self):
        backend = _backend()
        with _patch_backend(backend):
            stream = acquire_microphone(MicrophoneConstraints(sample_rate=16000, channels=1))

        raw = backend.opened[0]
        assert raw.active is True
        assert raw.kwargs["samplerate"] == 16000
        assert raw.kwargs["dtype"] == "int16"
        assert raw.kwargs["channels"] == 1
        assert stream.active is True

    def test_channels_clamped_to_device(self):
        backend = _backend(device_info={"name": "Mono Mic", "max_input_channels": 1})
        with _patch_backend(backend):
            stream = acquire_microphone(MicrophoneConstraints(channels=2))
        assert stream.channels == 1

    def test_unknown_device_name(self):
        backend = _backend(query_error=ValueError("No input device matching 'Studio'"))
        with _patch_backend(backend), pytest.raises(NoDeviceError):
            acquire_microphone(MicrophoneConstraints(device="Studio"))

    def test_device_without_inputs(self):
        backend = _backend(device_info={"name": "HDMI", "max_input_channels": 0})
        with _patch_backend(backend), pytest.raises(NoDeviceError):
            acquire_microphone()

    def test_query_portaudio_error_classified(self):
        backend = _backend(query_error=PortAudioError("Error querying device -1"))
        with _patch_backend(backend), pytest.raises(NoDeviceError):
            acquire_microphone()

    def test_permission_denied_on_open(self):
        backend = _backend(open_error=PortAudioError("Permission denied"))
        with _patch_backend(backend), pytest.raises(PermissionDeniedError):
            acquire_microphone()

    def test_busy_device_on_open(self):
        backend = _backend(open_error=PortAudioError("Device unavailable"))
        with _patch_backend(backend), pytest.raises(DeviceUnavailableError):
            acquire_microphone()

    def test_portaudio_load_failure_is_unsupported(self, monkeypatch):
        real_import = builtins.__import__

        def failing_import(name, *args, **kwargs):
            if name == "sounddevice":
                raise OSError("PortAudio library not found")
            return real_import(name, *args, **kwargs)

        monkeypatch.setattr(builtins, "__import__", failing_import)
        with pytest.raises(UnsupportedEnvironmentError, match="PortAudio"):
            acquire_microphone()


def test_list_input_devices_skips_outputs():
    with _patch_backend(_backend()):
        devices = list_input_devices()
    assert devices == [
        {"index": 1, "name": "USB Mic", "channels": 2, "default_samplerate": 44100.0},
    ]


# ---------------------------------------------------------------------------
# MicrophoneStream
# ---------------------------------------------------------------------------


class TestMicrophoneStream:
    @pytest.fixture
    def stream(self):
        stream = MicrophoneStream(sample_rate=16000, channels=1)
        stream.open(_backend())
        return stream

    def test_drain_returns_and_clears(self, stream):
        stream._on_audio(b"\x01\x00\x02\x00", 2, None, None)
        stream._on_audio(b"\x03\x00", 1, None, None)
        assert stream.drain() == b"\x01\x00\x02\x00\x03\x00"
        assert stream.drain() == b""

    def test_close_is_idempotent(self, stream):
        raw = stream._stream
        stream.close()
        stream.close()
        assert raw.stopped is True
        assert raw.closed is True
        assert stream.active is False

    def test_close_discards_buffer(self, stream):
        stream._on_audio(b"\x01\x00", 1, None, None)
        stream.close()
        assert stream.drain() == b""

    def test_unexpected_finish_reports_failure(self, stream):
        stream.on_failure = MagicMock()
        stream._on_finished()
        stream.on_failure.assert_called_once()

    def test_finish_after_close_is_not_a_failure(self, stream):
        stream.on_failure = MagicMock()
        stream.close()
        stream._on_finished()
        stream.on_failure.assert_not_called()

    def test_close_survives_stop_error(self, stream):
        raw = stream._stream
        raw.stop = MagicMock(side_effect=PortAudioError("stream already stopped"))
        stream.close()
        assert raw.closed is True
