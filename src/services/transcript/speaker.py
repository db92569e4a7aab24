"""Speaker attribution for utterances.

There is no diarization: ``RandomSpeakerAssigner`` flips a coin between
the two conversation partners. Swap in another ``SpeakerAssigner`` to
attribute utterances properly.
"""

import random
from abc import ABC, abstractmethod

from src.core.models import Speaker


class SpeakerAssigner(ABC):
    """Interface for deciding who said a piece of transcript."""

    @abstractmethod
    def assign(self, text: str) -> Speaker:
        """Return the speaker of ``text``."""

    def reset(self) -> None:
        """Forget any per-session state. Called on session start."""


class RandomSpeakerAssigner(SpeakerAssigner):
    """Coin-flip placeholder for speaker diarization.

    Args:
        rng: Random source; pass a seeded ``random.Random`` for repeatable runs.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def assign(self, text: str) -> Speaker:  # noqa: ARG002
        return Speaker.first if self._rng.random() < 0.5 else Speaker.second
