"""
Transcript module - Delta tracking and speaker attribution.
"""

from .delta import TranscriptDeltaTracker
from .speaker import RandomSpeakerAssigner, SpeakerAssigner

__all__ = ["RandomSpeakerAssigner", "SpeakerAssigner", "TranscriptDeltaTracker"]
