"""Project-level configuration and path helpers."""

import os
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
UPLOADS_DIR = DATA_DIR / "uploads"
DEFAULT_DB_PATH = DATA_DIR / "arena_chat.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50 MB

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def _resolve(value: PathLike, default: Path) -> Path:
    if not value:
        return default

    candidate = Path(value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if env_value and str(env_value) == ":memory:":
        return ":memory:"

    return _resolve(env_value, DEFAULT_DB_PATH)


def resolve_uploads_dir(env_value: PathLike | None = None) -> Path:
    """Resolve UPLOADS_DIR to an absolute path."""
    return _resolve(env_value, UPLOADS_DIR)


def cors_origins() -> list[str]:
    """Allowed CORS origins from CORS_ORIGINS (comma-separated)."""
    raw = os.getenv("CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
