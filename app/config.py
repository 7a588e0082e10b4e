"""Application configuration. Loads from env vars."""
import logging
import os

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings. Override via environment variables."""

    # Audio: PCM 16-bit mono, 16kHz
    SAMPLE_RATE: int = 16000
    SAMPLE_WIDTH: int = 2  # 16-bit

    # Recognizer input: PCM is fed to the engine in buffers of this length
    RECOGNITION_BUFFER_MS: int = 200
    # Seconds of audio after which the engine reports a timeout; 0 = never
    RECOGNITION_TIMEOUT_SEC: float = 0.0

    # Vosk models (unpacked directories). Download/unzip is done outside the service.
    VOSK_MODEL_PATH: str = "models/vosk-model-small-en-us-0.15"
    VOSK_SPK_MODEL_PATH: str = "models/vosk-model-spk-0.4"
    VOSK_LOG_LEVEL: int = -1  # -1 silences Kaldi logs

    # Speaker diarization: online centroid clustering over recognizer x-vectors.
    # When disabled the speaker model is not loaded, so finals carry no embedding.
    DIARIZATION_ENABLED: bool = True
    DIARIZATION_SIMILARITY_THRESHOLD: float = 0.45  # join best profile only if cosine > this
    DIARIZATION_SPEAKER_PREFIX: str = "Speaker "  # Speaker 1, Speaker 2, ...
    DIARIZATION_PLACEHOLDER_LABEL: str = "Speaker"  # finals without embedding

    # Session transcript storage: one .txt per WebSocket, append-only (final events only).
    TRANSCRIPT_SAVE_ENABLED: bool = False
    TRANSCRIPT_DIR: str = "./transcripts"
    TRANSCRIPT_ADD_TIMESTAMPS: bool = False  # prefix each line with [MM:SS.ss]

    # Logging: level (DEBUG, INFO, WARNING, ERROR); file path empty = console only.
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # e.g. "logs/app.log"

    class Config:
        env_file = ".env"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Apply LOG_LEVEL to the root logger; add a file handler when LOG_FILE is set."""
    settings = settings or get_settings()
    level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_FILE:
        log_dir = os.path.dirname(settings.LOG_FILE)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(settings.LOG_FILE, encoding="utf-8"))
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )
