"""
Runtime configuration, read from the environment (and a local .env when present).
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_API_URL = "http://localhost:8090"
DEFAULT_PORT = 8090
DEFAULT_DATABASE_NAME = "codeabode"


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    # None means requests never time out
    timeout: Optional[float] = None
    log_level: str = "INFO"
    port: int = DEFAULT_PORT
    # dev API storage; None runs on an in-process mongomock client
    database_url: Optional[str] = None
    database_name: str = DEFAULT_DATABASE_NAME


def _float_or_none(raw: Optional[str]) -> Optional[float]:
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"CODEABODE_TIMEOUT must be a number of seconds, got {raw!r}") from None


def load_settings(env_file: Optional[str] = None) -> Settings:
    load_dotenv(env_file)
    return Settings(
        api_url=os.getenv("CODEABODE_API_URL", DEFAULT_API_URL).rstrip("/"),
        timeout=_float_or_none(os.getenv("CODEABODE_TIMEOUT")),
        log_level=os.getenv("CODEABODE_LOG_LEVEL", "INFO").upper(),
        port=int(os.getenv("PORT", DEFAULT_PORT)),
        database_url=os.getenv("DATABASE_URL") or None,
        database_name=os.getenv("DATABASE_NAME", DEFAULT_DATABASE_NAME),
    )
