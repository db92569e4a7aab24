"""
Pydantic v2 models shared by the recording client and the API layer.
"""

from datetime import datetime
from enum import IntEnum, StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------


class RecorderState(StrEnum):
    """States of the audio recorder session."""

    idle = "idle"
    starting = "starting"
    recording = "recording"
    stopping = "stopping"
    errored = "errored"


# ---------------------------------------------------------------------------
# Transcript
# ---------------------------------------------------------------------------


class Speaker(IntEnum):
    """Which of the two conversation partners said something."""

    first = 1
    second = 2


class TranscriptResult(BaseModel):
    """POST /api/transcribe response body."""

    text: str


class Utterance(BaseModel):
    """One committed piece of transcript attributed to a speaker."""

    model_config = ConfigDict(frozen=True)

    text: str
    speaker: Speaker
    timestamp: int  # capture time, epoch milliseconds


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


class Rating(StrEnum):
    """Communication-quality verdict based on NVC principles."""

    bad = "bad"
    medium = "medium"
    good = "good"


class AnalyzeRequest(BaseModel):
    """POST /api/analyze request body."""

    text: str = Field(min_length=1)


class AnalysisResult(BaseModel):
    """POST /api/analyze response body."""

    rating: Rating
    feedback: str


class AnalysisEntry(BaseModel):
    """A rating attached to the utterance it was produced for."""

    model_config = ConfigDict(frozen=True)

    rating: Rating
    feedback: str
    utterance_index: int


# ---------------------------------------------------------------------------
# Error
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error envelope returned by the API."""

    detail: str
    code: str
    timestamp: str
