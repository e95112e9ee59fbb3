"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _get_flag(name: str, default: str = "true") -> bool:
    return _get_env(name, default).lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    es_host: str = _get_env("ELASTICSEARCH_URL", "http://localhost:9200")
    es_enabled: bool = _get_flag("ELASTICSEARCH_ENABLED")
    es_index: str = _get_env("ES_INDEX", "products")
    es_request_timeout: float = float(_get_env("ES_REQUEST_TIMEOUT", "5"))
    es_probe_timeout: float = float(_get_env("ES_PROBE_TIMEOUT", "3"))
    mongo_uri: str = _get_env("MONGO_URI", "mongodb://localhost:27017/aktrendflare")
    mongo_db: str = _get_env("MONGO_DB", "aktrendflare")
    mongo_collection: str = _get_env("MONGO_COLLECTION", "products")
    mongo_timeout_ms: int = int(_get_env("MONGO_TIMEOUT_MS", "5000"))
    redis_enabled: bool = _get_flag("REDIS_ENABLED")
    redis_url: str = _get_env("REDIS_URL", "")
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    redis_connect_timeout: float = float(_get_env("REDIS_CONNECT_TIMEOUT", "3"))
    cache_ttl_seconds: int = int(_get_env("CACHE_TTL_SECONDS", "300"))
    default_page_size: int = int(_get_env("DEFAULT_PAGE_SIZE", "20"))
    max_page_size: int = int(_get_env("MAX_PAGE_SIZE", "100"))
    max_result_window: int = int(_get_env("ES_MAX_RESULT_WINDOW", "10000"))
    suggestion_min_length: int = int(_get_env("SUGGESTION_MIN_LENGTH", "2"))
    suggestion_limit: int = int(_get_env("SUGGESTION_LIMIT", "10"))
    admin_token: str = _get_env("ADMIN_TOKEN", "")
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
