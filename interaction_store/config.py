"""Interaction store configuration."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-driven settings (``INTERACTION_STORE_*``)."""

    redis_url: str = "redis://localhost:6379/0"
    # Bounds every store call; a timed-out call surfaces as StoreError.
    redis_socket_timeout: float = 5.0

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    model_config = {"env_prefix": "INTERACTION_STORE_", "env_file": ".env", "extra": "ignore"}
