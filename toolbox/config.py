import os
from dataclasses import dataclass, field
from typing import List
from dotenv import load_dotenv

# Load .env if present (host/dev convenience; container env wins)
load_dotenv()


def _get_env_bool(key: str, default: bool = False) -> bool:
    val = os.getenv(key)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


def _get_env_list(key: str, default: List[str] | None = None) -> List[str]:
    raw = os.getenv(key)
    if raw is None:
        return default or []
    parts = [p.strip() for p in raw.split(",")]
    return [p for p in parts if p]


@dataclass
class Config:
    # server
    server_name: str = os.getenv("SERVER_NAME", "MCP Toolbox Server")
    server_version: str = os.getenv("SERVER_VERSION", "0.1.0")
    protocol_version: str = os.getenv("MCP_PROTOCOL_VERSION", "2024-11-05")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "3000"))

    # cors
    allow_origins: List[str] = field(default_factory=lambda: _get_env_list("ALLOW_ORIGINS", []))

    # response framing
    sse_enabled: bool = _get_env_bool("SSE_ENABLED", True)

    # http/client
    http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "10"))
    http_max_retries: int = int(os.getenv("HTTP_MAX_RETRIES", "2"))
    http_backoff_initial: float = float(os.getenv("HTTP_BACKOFF_INITIAL", "0.5"))
    http_backoff_factor: float = float(os.getenv("HTTP_BACKOFF_FACTOR", "2.0"))
    http_retry_after_max: float = float(os.getenv("HTTP_RETRY_AFTER_MAX", "30"))

    # country data provider
    countries_base_url: str = os.getenv("COUNTRIES_BASE_URL", "https://restcountries.com/v3.1")


cfg = Config()
