"""FastAPI dependency providers for the STT and rating services.

Providers are created once per process. Tests replace them through
``app.dependency_overrides``.
"""

from functools import lru_cache

from src.services.analysis.rater import CommunicationRater
from src.services.llm import create_llm
from src.services.transcription import BaseSTT, create_stt


@lru_cache
def get_stt() -> BaseSTT:
    return create_stt()


@lru_cache
def get_rater() -> CommunicationRater:
    return CommunicationRater(create_llm())
