from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = Field("sqlite+aiosqlite:///./chat_relay.db")

    # Languages
    DEFAULT_LANGUAGE: str = Field("English")

    # Google Cloud
    GOOGLE_APPLICATION_CREDENTIALS: str | None = Field(None)
    GOOGLE_PROJECT_ID: str | None = Field(None)
    VERTEX_AI_LOCATION: str = Field("us-central1")

    # Transcription
    TRANSCRIPTION_LANGUAGE_CODE: str = Field("en-US")
    TRANSCRIPTION_ALTERNATIVE_LANGUAGES: List[str] = Field(
        default_factory=lambda: ["fr-FR", "es-ES", "de-DE", "hi-IN", "pa-IN"]
    )
    TRANSCRIPTION_REENCODE: bool = Field(True)
    FFMPEG_BINARY: str = Field("ffmpeg")

    # Metrics
    METRICS_ENABLED: bool = Field(False)
    METRICS_PORT: int = Field(8001)

    # App
    API_HOST: str = Field("0.0.0.0")
    API_PORT: int = Field(8080)
    DEBUG: bool = Field(False)
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_file_encoding="utf-8"
    )


settings = Settings()
