"""Service settings read from the environment."""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from ..models.enums import StorageBackend


_TRUTHY = {"1", "true", "yes", "y"}


def _get_bool_from_env(name: str, default: bool) -> bool:
    """Read a boolean flag. Accepted truthy values: 1, true, yes, y."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _get_backends_from_env(name: str, default: str) -> List[StorageBackend]:
    value = os.getenv(name) or default
    try:
        return [StorageBackend(part.strip().lower()) for part in value.split(",") if part.strip()]
    except ValueError as exc:
        valid = ", ".join(backend.value for backend in StorageBackend)
        raise ValueError(f"{name} must be a comma-separated list of: {valid}") from exc


@dataclass
class ServiceSettings:
    """Configuration for the DTRO service."""

    # Storage configuration
    database_url: Optional[str] = None
    storage_backends: List[StorageBackend] = field(default_factory=lambda: [StorageBackend.SQL])
    write_to_first_only: bool = False
    file_storage_dir: str = "data/dtros"

    # Validation configuration
    schema_dir: str = "data/schemas"
    rules_dir: str = "data/rules"

    # Base URL used for "_links" in search and event responses
    search_service_url: str = ""

    # Caching configuration
    enable_cache: bool = True
    cache_ttl_seconds: int = 3600
    cache_max_size: int = 1000

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        """Build settings from ``DTRO_*`` environment variables."""
        return cls(
            database_url=os.getenv("DTRO_DATABASE_URL") or None,
            storage_backends=_get_backends_from_env("DTRO_STORAGE_BACKENDS", "sql"),
            write_to_first_only=_get_bool_from_env("DTRO_WRITE_TO_FIRST_ONLY", False),
            file_storage_dir=os.getenv("DTRO_FILE_STORAGE_DIR", "data/dtros"),
            schema_dir=os.getenv("DTRO_SCHEMA_DIR", "data/schemas"),
            rules_dir=os.getenv("DTRO_RULES_DIR", "data/rules"),
            search_service_url=os.getenv("DTRO_SEARCH_SERVICE_URL", "").rstrip("/"),
            enable_cache=_get_bool_from_env("DTRO_ENABLE_CACHE", True),
            cache_ttl_seconds=int(os.getenv("DTRO_CACHE_TTL", "3600")),
            cache_max_size=int(os.getenv("DTRO_CACHE_MAX_SIZE", "1000")),
            log_level=os.getenv("DTRO_LOG_LEVEL", "INFO").upper(),
        )
