"""Transcript delta tracking by prefix subtraction.

Each chunk sent for transcription contains the whole recording so far, so
each transcript should extend the previous one. The tracker remembers the
last full transcript it accepted and returns only the text appended since.

Rules, given ``seen`` (last accepted transcript) and ``current``:

* ``current`` extends ``seen``: the delta is ``current[len(seen):]``,
  verbatim. Leading whitespace is kept, so "Hello" then "Hello there"
  yields "Hello" then " there".
* ``seen`` extends ``current`` (a shorter, stale result that resolved
  late): no delta.
* Neither (the model re-transcribed earlier audio differently): the whole
  of ``current`` is returned as new text and becomes ``seen``.

An empty or whitespace-only delta means "nothing new" and does not move
the cursor.
"""

import logging

logger = logging.getLogger(__name__)


class TranscriptDeltaTracker:
    """Cursor over the cumulative transcript of one recording session."""

    def __init__(self) -> None:
        self._seen = ""

    @property
    def seen(self) -> str:
        """The last full transcript that produced a delta."""
        return self._seen

    def advance(self, transcript: str) -> str:
        """Return the text in ``transcript`` not yet surfaced.

        Args:
            transcript: Full transcription of all audio captured so far.

        Returns:
            The new text, or "" when there is nothing new.
        """
        if transcript.startswith(self._seen):
            delta = transcript[len(self._seen):]
        elif self._seen.startswith(transcript):
            logger.debug("Stale transcript (%d chars) ignored", len(transcript))
            return ""
        else:
            logger.debug(
                "Transcript does not extend previous one; treating %d chars as new",
                len(transcript),
            )
            delta = transcript

        if not delta.strip():
            return ""
        self._seen = transcript
        return delta

    def reset(self) -> None:
        self._seen = ""
