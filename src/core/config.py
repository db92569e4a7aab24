"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """ToneCoach settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        api_base_url: Where the recording client sends audio and text.
        chunk_interval_ms: Recorder emission cadence (latency vs. call overhead).
        llm_provider: Which LLM backend rates utterances ("claude" or "ollama").
        stt_provider: STT backend ("local" for faster-whisper).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Recording client ---
    api_base_url: str = "http://localhost:8000"
    chunk_interval_ms: int = 3000
    sample_rate: int = 16000
    channels: int = 1
    input_device: str = ""  # Empty = system default input
    # Best-effort capture hints; ignored when the backend cannot apply them
    echo_cancellation: bool = True
    noise_suppression: bool = True
    auto_gain_control: bool = True
    skip_silent_chunks: bool = True
    silence_threshold: float = 0.01  # RMS below this counts as silence
    request_timeout: float | None = None  # None = wait indefinitely

    # --- LLM Provider ---
    # Selects the LLM backend: "claude" for Anthropic API, "ollama" for local models
    llm_provider: str = "ollama"

    # Claude (Anthropic API) settings
    claude_api_key: str = ""  # Required when llm_provider="claude"
    claude_model: str = "claude-sonnet-4-20250514"

    # Ollama (local LLM) settings
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"

    # --- Whisper STT ---
    stt_provider: str = "local"
    whisper_model: str = "base"  # Model size: tiny, base, small, medium, large-v3
    whisper_default_language: str = ""  # Empty = auto-detect; ISO 639-1 code e.g. "en"

    # --- Server ---
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    max_upload_bytes: int = 10 * 1024 * 1024
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    log_level: str = "INFO"  # Python logging level


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
