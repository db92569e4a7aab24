"""Audio processing utilities for PCM data.

Converts raw microphone PCM bytes to numpy arrays, encodes them as
self-contained WAV files for upload, and detects silence.
"""

import io

import numpy as np
import soundfile as sf


class AudioProcessor:
    """Handles PCM audio data conversion and analysis.

    The recorder captures 16-bit signed PCM; every chunk sent to the
    transcription endpoint is a complete WAV file so the server can decode
    it without knowing about earlier chunks.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        """Initialize the audio processor.

        Args:
            sample_rate: Audio sample rate in Hz (default: 16 kHz).
            sample_width: Bytes per sample (2 = 16-bit signed PCM).
            channels: Number of audio channels (1 = mono).
        """
        self.sample_rate = sample_rate
        self.sample_width = sample_width
        self.channels = channels

    @property
    def frame_size(self) -> int:
        """Bytes per sample frame across all channels."""
        return self.sample_width * self.channels

    def duration(self, pcm_data: bytes) -> float:
        """Duration in seconds of the given PCM bytes."""
        return len(pcm_data) / (self.sample_rate * self.frame_size)

    def pcm_to_ndarray(self, pcm_data: bytes) -> np.ndarray:
        """Convert raw PCM bytes (16-bit signed) to float32 numpy array.

        Args:
            pcm_data: Raw PCM bytes (16-bit).

        Returns:
            Float32 numpy array normalized to [-1.0, 1.0].

        Raises:
            ValueError: If data length is not aligned to sample frame size.
        """
        if len(pcm_data) % self.frame_size != 0:
            raise ValueError(
                f"PCM data length ({len(pcm_data)}) is not aligned to frame size ({self.frame_size})"
            )
        return np.frombuffer(pcm_data, dtype=np.int16).astype(np.float32) / 32768.0

    def pcm_to_wav(self, pcm_data: bytes) -> bytes:
        """Encode raw PCM bytes as an in-memory WAV file.

        Args:
            pcm_data: Raw PCM bytes (16-bit, interleaved when multi-channel).

        Returns:
            WAV file content.

        Raises:
            ValueError: If pcm_data is empty or misaligned.
        """
        if not pcm_data:
            raise ValueError("Cannot encode empty PCM data to WAV")
        if len(pcm_data) % self.frame_size != 0:
            raise ValueError(
                f"PCM data length ({len(pcm_data)}) is not aligned to frame size ({self.frame_size})"
            )
        samples = np.frombuffer(pcm_data, dtype=np.int16)
        if self.channels > 1:
            samples = samples.reshape(-1, self.channels)

        buf = io.BytesIO()
        sf.write(buf, samples, self.sample_rate, format="WAV", subtype="PCM_16")
        return buf.getvalue()

    def is_silent(self, pcm_data: bytes, threshold: float = 0.01) -> bool:
        """Check if a PCM slice is silence based on RMS energy.

        Args:
            pcm_data: Raw PCM bytes (16-bit).
            threshold: RMS energy below this value is considered silence.

        Returns:
            True if the audio is silence.
        """
        audio = self.pcm_to_ndarray(pcm_data)
        if len(audio) == 0:
            return True
        rms = np.sqrt(np.mean(audio**2))
        return float(rms) < threshold
