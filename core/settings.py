from __future__ import annotations
import logging
import os
import yaml
from pathlib import Path
from pydantic import BaseModel, field_validator

DEFAULT_API_URL = "http://localhost:5000/api"
SETTINGS_PATH = Path(__file__).resolve().parents[1] / "config" / "settings.yaml"


def normalize_base_url(url: str | None) -> str:
    """Trim trailing slashes and make sure the URL ends in a single ``/api``."""
    base = (url or "").strip().rstrip("/")
    if not base:
        return DEFAULT_API_URL
    if not base.endswith("/api"):
        base = f"{base}/api"
    return base


class AppConfig(BaseModel):
    name: str = "Institute CRM"
    environment: str = "development"
    debug: bool = False

class ApiConfig(BaseModel):
    base_url: str = DEFAULT_API_URL
    timeout_seconds: float = 15.0

    @field_validator("base_url")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_base_url(v)

class StorageConfig(BaseModel):
    url: str = "sqlite:///data/client_storage.db"

class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

class SeedConfig(BaseModel):
    database_url: str = "sqlite:///data/institute.db"
    student_hint: str = "student3"

class Settings(BaseModel):
    app: AppConfig = AppConfig()
    api: ApiConfig = ApiConfig()
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()
    seed: SeedConfig = SeedConfig()


_ENV_OVERRIDES = {
    "INSTITUTE_API_URL": ("api", "base_url"),
    "INSTITUTE_STORAGE_URL": ("storage", "url"),
    "INSTITUTE_LOG_LEVEL": ("logging", "level"),
    "DATABASE_URL": ("seed", "database_url"),
}


def load_settings(path: str | Path = SETTINGS_PATH, env: dict | None = None) -> Settings:
    env = os.environ if env is None else env
    data: dict = {}
    p = Path(path)
    if p.exists():
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    for var, (section, key) in _ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data.setdefault(section, {})[key] = value

    return Settings(
        app=AppConfig(**(data.get("app") or {})),
        api=ApiConfig(**(data.get("api") or {})),
        storage=StorageConfig(**(data.get("storage") or {})),
        logging=LoggingConfig(**(data.get("logging") or {})),
        seed=SeedConfig(**(data.get("seed") or {})),
    )


def configure_logging(settings: Settings) -> None:
    """Apply the configured level/format to the root logger (idempotent)."""
    level = getattr(logging, settings.logging.level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=settings.logging.format)
    logging.getLogger().setLevel(level)
