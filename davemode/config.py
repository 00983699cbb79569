"""
DaveMode Configuration

Pydantic-backed configuration loaded from environment variables.
Uses DAVEMODE_ prefix for all environment variables.
"""

import os
import threading
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Config(BaseModel):
    """
    Pydantic-backed configuration loaded from environment variables.

    Key env vars:
    - DAVEMODE_DB_URL (preferred) or DAVEMODE_DB_PATH for SQLite fallback.
    - DAVEMODE_ENV (default: local)
    - DAVEMODE_API_TOKEN (optional bearer token)
    - DAVEMODE_LOG_LEVEL (default: INFO)
    - DAVEMODE_TOGETHER_API_KEY / DAVEMODE_TOGETHER_API_URL
    - DAVEMODE_SANDBOX_URL / DAVEMODE_SANDBOX_API_KEY
    """

    # Database
    db_url: Optional[str] = Field(default=None)
    db_path: Path = Field(default=Path(".davemode.sqlite"))
    db_pool_size: int = Field(default=5)

    # Environment
    environment: str = Field(default="local")
    api_token: Optional[str] = Field(default=None)
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    # Inference endpoint
    together_api_key: Optional[str] = Field(default=None)
    together_api_url: str = Field(default="https://api.together.xyz")
    agent_timeout_seconds: Optional[float] = Field(default=None)
    agent_config_path: Optional[Path] = Field(default=None)

    # Validation sandbox
    sandbox_url: Optional[str] = Field(default=None)
    sandbox_api_key: Optional[str] = Field(default=None)
    sandbox_ready_timeout_seconds: float = Field(default=300.0)
    sandbox_poll_interval_seconds: float = Field(default=5.0)

    # Learning
    learning_min_uses: int = Field(default=3)

    # API / web
    cors_allow_origins: List[str] = Field(default_factory=list)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def is_postgres(self) -> bool:
        """Check if using PostgreSQL database."""
        return bool(self.db_url and self.db_url.startswith("postgres"))

    @property
    def sandbox_enabled(self) -> bool:
        """Check if a validation sandbox is configured."""
        return bool(self.sandbox_url)


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


def _parse_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    if value.strip() == "*":
        return ["*"]
    return [v.strip() for v in value.split(",") if v.strip()]


def _parse_float(value: Optional[str]) -> Optional[float]:
    return float(value) if value else None


def load_config() -> Config:
    """
    Load DaveMode configuration from environment.

    Environment variables use the DAVEMODE_ prefix.
    """
    env = os.environ.get("DAVEMODE_ENV", "local")
    cors = _parse_csv(os.environ.get("DAVEMODE_CORS_ORIGINS"))
    if not cors and env == "local":
        cors = ["*"]
    agent_config = os.environ.get("DAVEMODE_AGENT_CONFIG_PATH")
    return Config(
        # Database
        db_url=os.environ.get("DAVEMODE_DB_URL"),
        db_path=Path(os.environ.get("DAVEMODE_DB_PATH", ".davemode.sqlite")).expanduser(),
        db_pool_size=int(os.environ.get("DAVEMODE_DB_POOL_SIZE", "5")),

        # Environment
        environment=env,
        api_token=os.environ.get("DAVEMODE_API_TOKEN"),
        log_level=os.environ.get("DAVEMODE_LOG_LEVEL", "INFO"),
        log_json=_parse_bool(os.environ.get("DAVEMODE_LOG_JSON")),

        # Inference
        together_api_key=os.environ.get("DAVEMODE_TOGETHER_API_KEY"),
        together_api_url=os.environ.get("DAVEMODE_TOGETHER_API_URL", "https://api.together.xyz"),
        agent_timeout_seconds=_parse_float(os.environ.get("DAVEMODE_AGENT_TIMEOUT_SECONDS")),
        agent_config_path=Path(agent_config).expanduser() if agent_config else Path("config/agents.yaml"),

        # Sandbox
        sandbox_url=os.environ.get("DAVEMODE_SANDBOX_URL") or None,
        sandbox_api_key=os.environ.get("DAVEMODE_SANDBOX_API_KEY"),
        sandbox_ready_timeout_seconds=float(os.environ.get("DAVEMODE_SANDBOX_READY_TIMEOUT_SECONDS", "300")),
        sandbox_poll_interval_seconds=float(os.environ.get("DAVEMODE_SANDBOX_POLL_INTERVAL_SECONDS", "5")),

        # Learning
        learning_min_uses=int(os.environ.get("DAVEMODE_LEARNING_MIN_USES", "3")),

        # API / web
        cors_allow_origins=cors,
    )


# Singleton config instance (lazy loaded)
_config: Optional[Config] = None
_config_lock = threading.Lock()


def get_config() -> Config:
    """Get or create the singleton config instance."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:
                _config = load_config()
    return _config


def _reset_config_for_tests() -> None:
    """Reset the global config cache (tests only)."""
    global _config
    with _config_lock:
        _config = None
