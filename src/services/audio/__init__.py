"""
Audio module - Microphone capture, chunk encoding and the recorder session.
"""

from .guard import MicrophoneConstraints, MicrophoneStream, acquire_microphone
from .processor import AudioProcessor
from .recorder import RecorderSession

__all__ = [
    "AudioProcessor",
    "MicrophoneConstraints",
    "MicrophoneStream",
    "RecorderSession",
    "acquire_microphone",
]
