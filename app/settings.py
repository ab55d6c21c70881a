from pathlib import Path

from pydantic_settings import BaseSettings
from pydantic import AnyUrl

class Settings(BaseSettings):
    # FastAPI
    APP_NAME: str = "lecture-pipeline"
    API_PREFIX: str = "/v1"
    LOG_LEVEL: str = "INFO"

    # Auth backend (resolves bearer tokens to a user)
    MAIN_BACKEND_URL: str | None = None

    # Celery / Redis
    REDIS_URL: AnyUrl = "redis://localhost:6379/0"
    CELERY_BROKER_URL: AnyUrl | None = None
    CELERY_RESULT_BACKEND: AnyUrl | None = None

    # Database settings for MySQL
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_SCHEMA: str = "app"
    DB_USERNAME: str = "user"
    DB_PASSWORD: str = "password"
    DB_URL: str | None = None  # full override, e.g. sqlite:///data/dev.db

    # Azure Storage
    AZURE_STORAGE_CONNECTION_STRING: str | None = None
    AZURE_CONTAINER_NAME: str | None = None
    # hosts a recording's storage_url may be fetched from over plain HTTP
    ALLOWED_AUDIO_HOSTS: set[str] = set()

    # OpenAI
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL_TRANSCRIBE: str = "gpt-4o-mini-transcribe"
    OPENAI_MODEL_TEXT: str = "gpt-4o-mini"

    # Audio
    FFMPEG_BINARY: str = "ffmpeg"
    SEGMENT_SECONDS: int = 600
    TMP_DIR: Path = Path("data/tmp")

    # Previews
    TRANSCRIPT_PREVIEW_CHARS: int = 500
    ARTIFACT_PREVIEW_CHARS: int = 200

    # Wall-clock ceilings per run (seconds)
    TRANSCRIBE_TIME_LIMIT: int = 540
    AI_JOB_TIME_LIMIT: int = 300

    class Config:
        env_file = ".env"

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return (
            f"mysql+mysqlconnector://{self.DB_USERNAME}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_SCHEMA}"
        )



settings = Settings()
# Default Celery endpoints to REDIS_URL if not set explicitly
if settings.CELERY_BROKER_URL is None:
    settings.CELERY_BROKER_URL = settings.REDIS_URL
if settings.CELERY_RESULT_BACKEND is None:
    settings.CELERY_RESULT_BACKEND = settings.REDIS_URL
