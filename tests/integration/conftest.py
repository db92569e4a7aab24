"""Integration test fixtures for ToneCoach.

Provides a FastAPI app whose STT and rating providers are replaced via
``dependency_overrides``, and an async HTTP client bound to it in-process.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.app import create_app
from src.api.dependencies import get_rater, get_stt
from src.services.analysis.rater import CommunicationRater


@pytest.fixture
def app(mock_stt, mock_llm):
    """Create a fresh FastAPI application with mocked AI providers."""
    application = create_app()
    application.dependency_overrides[get_stt] = lambda: mock_stt
    application.dependency_overrides[get_rater] = lambda: CommunicationRater(mock_llm)
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def asgi_transport(app):
    # Unhandled errors become 500 responses instead of propagating into the test
    return ASGITransport(app=app, raise_app_exceptions=False)


@pytest.fixture
async def async_client(asgi_transport):
    async with AsyncClient(transport=asgi_transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def wav_chunk(sample_pcm_bytes):
    """One second of tone encoded as a WAV upload."""
    from src.services.audio.processor import AudioProcessor

    return AudioProcessor().pcm_to_wav(sample_pcm_bytes)
