"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "tibera_events.db"
DEFAULT_CLIENT_STORE_DIR = DATA_DIR / "client_store"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"
DEFAULT_API_URL = "http://localhost:8000"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


@dataclass(frozen=True)
class QueueConfig:
    """Tunables for the durable event queue (delays in milliseconds)."""

    storage_key: str = "tibera:app-events:v1"
    ingest_path: str = "/api/events/ingest"
    max_queue: int = 500
    flush_batch: int = 25
    debounce_ms: int = 250
    initial_flush_ms: int = 250
    base_backoff_ms: int = 400
    backoff_factor: float = 1.6
    max_backoff_ms: int = 15_000
    max_idempotency_key: int = 220


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_client_store_dir(env_value: PathLike | None = None) -> Path:
    """Resolve TIBERA_CLIENT_STORE_DIR to an absolute directory."""
    if env_value is None:
        env_value = os.getenv("TIBERA_CLIENT_STORE_DIR")
    if not env_value:
        return DEFAULT_CLIENT_STORE_DIR

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_api_url(env_value: str | None = None) -> str:
    """Base URL of the ingestion API, without a trailing slash."""
    url = env_value or os.getenv("TIBERA_API_URL") or DEFAULT_API_URL
    return url.rstrip("/")
