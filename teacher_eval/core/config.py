# teacher_eval/core/config.py
from __future__ import annotations
from pathlib import Path
from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url

ROOT_DIR = Path(__file__).resolve().parents[2]
ENV_FILE = ROOT_DIR / ".env"

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # App
    APP_NAME: str = "Teacher Evaluation API"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    SEED_ON_STARTUP: bool = True

    # Admin gate (one shared password, signed cookie)
    ADMIN_PASSWORD: str = "ispt-admin"
    SESSION_SECRET: str = "change-me"
    SESSION_ALGORITHM: str = "HS256"
    ADMIN_COOKIE_NAME: str = "ispt_admin"
    ADMIN_COOKIE_MAX_AGE: int = 8 * 60 * 60

    # Reports
    ANONYMITY_THRESHOLD: int = Field(5, ge=1)

    # Backups
    BACKUP_DIR: str = "./backups"
    BACKUP_KEEP: int = Field(10, ge=1)
    BACKUP_COMPRESS: bool = True

    # CORS (e.g. CORS_ORIGINS=https://avaliacao.ispt.ac.mz)
    CORS_ORIGINS: str = ""

    DATABASE_URL: str = "sqlite:///./teacher_eval.sqlite"

    @property
    def cors_list(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def db_url(self) -> str:
        url = (self.DATABASE_URL or "").strip()
        if not url:
            raise ValueError("Define DATABASE_URL in the environment.")
        if make_url(url).get_backend_name() != "sqlite":
            raise ValueError("Only SQLite databases are supported (backups copy the database file).")
        return url

    @property
    def sqlite_path(self) -> Path:
        """
        Path of the database file behind DATABASE_URL.
        In-memory databases have no file and cannot be backed up.
        """
        database = make_url(self.db_url).database
        if not database or database == ":memory:":
            raise ValueError("DATABASE_URL must point to a database file.")
        return Path(database).resolve()

    @property
    def backup_path(self) -> Path:
        return Path(self.BACKUP_DIR).resolve()

@lru_cache
def get_settings() -> Settings:
    return Settings()
