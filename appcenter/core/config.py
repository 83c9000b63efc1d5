from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _resolve_path(value: str, fallback: str) -> str:
    raw = (value or "").strip() or fallback
    path = Path(raw)
    if not path.is_absolute():
        path = (PROJECT_ROOT / path).resolve()
    return str(path)


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    APP_NAME: str = "App Center"
    DATABASE_URL: str = "sqlite:///app_center.db"
    SECRET_KEY: str = "dev_secret_key_change_me_1234567890abcdef"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_FILE_PATH: str = ""
    LOG_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 5
    REQUEST_LOG_ENABLED: bool = True

    # URLs
    PUBLIC_BASE_URL: str = ""
    CORS_ORIGINS: str = "http://localhost:3000,https://localhost:3000"

    # Binary storage
    UPLOAD_ROOT: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_FILE_SIZE_BYTES: int = 500 * 1024 * 1024
    UPLOAD_CHUNK_SIZE_BYTES: int = 1024 * 1024
    AAPT2_PATH: str = "aapt2"

    # Temp file cleanup loop
    TEMP_FILE_EXPIRE_MINUTES: int = 30
    TEMP_CLEANUP_ENABLED: bool = True
    TEMP_CLEANUP_INTERVAL_SECONDS: int = 300
    TEMP_CLEANUP_STARTUP_DELAY_SECONDS: int = 15

    # Authentication
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60
    PASSWORD_MIN_LENGTH: int = 6
    ALLOW_REGISTRATION: bool = False

    # Startup account seeding
    SUPERUSER_SEED_ENABLED: bool = True
    SUPERUSER_USERNAME: str = "admin"
    SUPERUSER_EMAIL: str = "admin@example.com"
    SUPERUSER_PASSWORD: str = ""
    SUPERUSER_UPDATE_PASSWORD_ON_STARTUP: bool = False
    DEFAULT_ADMIN_USERNAME: str = ""
    DEFAULT_ADMIN_EMAIL: str = ""
    DEFAULT_ADMIN_PASSWORD: str = ""

    @model_validator(mode="after")
    def normalize_and_validate(self) -> "AppSettings":
        self.LOG_LEVEL = (self.LOG_LEVEL or "INFO").upper()
        self.LOG_DIR = _resolve_path(self.LOG_DIR, "logs")
        self.LOG_FILE_PATH = _resolve_path(self.LOG_FILE_PATH, str(Path(self.LOG_DIR) / "app.log"))
        self.UPLOAD_ROOT = _resolve_path(self.UPLOAD_ROOT, "uploads")
        self.UPLOAD_URL_PREFIX = "/" + (self.UPLOAD_URL_PREFIX or "/uploads").strip().strip("/")
        self.PUBLIC_BASE_URL = (self.PUBLIC_BASE_URL or "").strip().rstrip("/")

        if self.MAX_FILE_SIZE_BYTES <= 0:
            raise RuntimeError("MAX_FILE_SIZE_BYTES must be positive.")
        if self.TEMP_FILE_EXPIRE_MINUTES <= 0:
            raise RuntimeError("TEMP_FILE_EXPIRE_MINUTES must be positive.")
        if self.PASSWORD_MIN_LENGTH < 1:
            raise RuntimeError("PASSWORD_MIN_LENGTH must be at least 1.")
        return self

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.CORS_ORIGINS)

    @property
    def temp_upload_dir(self) -> Path:
        return Path(self.UPLOAD_ROOT) / "temp"

    def validate_security(self) -> None:
        _assert_min_secret("SECRET_KEY", self.SECRET_KEY or "")


settings = AppSettings()


def _assert_min_secret(name: str, value: str, min_len: int = 32) -> None:
    if not value or len(value.strip()) < min_len:
        raise RuntimeError(f"{name} must be set and at least {min_len} characters long.")
