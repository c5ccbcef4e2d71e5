from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
from typing import Any, ClassVar
import json
from pathlib import Path
import os


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"

    # JWT configuration (provide a fallback for local development)
    SECRET_KEY: str = "fallback_secret_for_dev_only"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Database URL
    # Use an absolute path so running the app from different directories
    # (e.g., repo root or backend/) always resolves the same DB file.
    BASE_DIR: ClassVar[Path] = Path(__file__).resolve().parents[2]
    SQLALCHEMY_DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'inbox.db'}"

    # CORS origins
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    CORS_ALLOW_ALL: bool = False

    # Attachment storage (local disk, served under UPLOAD_URL_PREFIX)
    UPLOAD_DIR: str = str(BASE_DIR / "static" / "uploads")
    UPLOAD_URL_PREFIX: str = "/uploads"
    UPLOAD_MAX_BYTES: int = 10 * 1024 * 1024
    # Comma-separated content-type prefixes accepted for chat attachments
    UPLOAD_ALLOWED_PREFIXES: str = "image/"

    # Polling cadence used by the inbox client (seconds)
    THREAD_LIST_POLL_SECONDS: float = 10.0
    ACTIVE_THREAD_POLL_SECONDS: float = 3.0
    # Consecutive failed ticks before the client raises "connection lost"
    POLL_FAILURE_THRESHOLD: int = 3
    CLIENT_TIMEOUT_SECONDS: float = 10.0

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=True,
    )

    @field_validator("CORS_ORIGINS", mode="before")
    def split_origins(cls, v: Any) -> list[str]:
        """Parse comma-separated or JSON list of origins from environment."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("UPLOAD_URL_PREFIX", mode="before")
    def strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().rstrip("/")
            if v and not v.startswith("/") and "://" not in v:
                v = "/" + v
        return v

    @field_validator("THREAD_LIST_POLL_SECONDS", "ACTIVE_THREAD_POLL_SECONDS")
    def positive_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("poll intervals must be positive")
        return v

    @model_validator(mode="after")
    def allow_all_if_requested(cls, values: "Settings") -> "Settings":
        if values.CORS_ALLOW_ALL:
            values.CORS_ORIGINS = ["*"]
        return values

    @property
    def upload_allowed_prefixes(self) -> list[str]:
        return [
            p.strip().lower()
            for p in (self.UPLOAD_ALLOWED_PREFIXES or "").split(",")
            if p.strip()
        ]


def load_settings() -> "Settings":
    return Settings(_env_file=os.getenv("ENV_FILE", str(Path(__file__).resolve().parents[3] / ".env")))


settings = load_settings()
