# erp_otica/core/config.py

import warnings
from functools import lru_cache
from pathlib import Path
from typing import Tuple

from loguru import logger
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]
INSECURE_SECRET_KEYS = {"changeme", "secret", "!!!GENERATE_A_STRONG_SECRET_KEY_32_BYTES_HEX!!!"}

def _env_files() -> Tuple[Path, ...]:
    """`.env` e depois `.env.local` (que sobrescreve), na raiz do projeto ou no CWD."""
    found = []
    for name in (".env", ".env.local"):
        for base in dict.fromkeys((PROJECT_ROOT, Path.cwd())):
            if (base / name).is_file():
                found.append(base / name)
                break
    return tuple(found)

class Settings(BaseSettings):
    PROJECT_NAME: str = "ERP Ótica"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False # uma linha JSON por registro (produção)
    FRONTEND_ORIGIN: str = "http://localhost:3000"

    MONGODB_URI: str
    MONGODB_DEFAULT_DB: str = "erp_otica"
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"

    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 8 # um turno de loja

    # slowapi; em produção aponte o storage para o Redis
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    DEFAULT_RATE_LIMIT: str = "500/minute"
    LOGIN_RATE_LIMIT_ATTEMPTS: int = 15
    LOGIN_RATE_LIMIT_WINDOW_MINUTES: int = 15

    model_config = SettingsConfigDict(
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("MONGODB_URI", "SECRET_KEY")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

@lru_cache()
def get_settings() -> Settings:
    env_files = _env_files()
    if env_files:
        logger.info(f"Loading settings from {', '.join(map(str, env_files))} and environment")
    else:
        logger.warning("No .env file found, using environment variables only.")

    try:
        loaded = Settings()
    except ValidationError as e:
        logger.critical(f"Invalid settings: {e}")
        raise SystemExit(f"Settings validation failed: {e}")

    if loaded.SECRET_KEY in INSECURE_SECRET_KEYS:
        logger.warning("SECURITY WARNING: SECRET_KEY is a placeholder. Generate one with `openssl rand -hex 32`.")
        warnings.warn("Insecure SECRET_KEY in use")
    return loaded

settings = get_settings()
