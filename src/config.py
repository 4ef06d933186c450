from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Storage
    db_path: str = "data/monitor.db"
    targets_file: str = "targets.yaml"  # optional seed list, skipped if missing

    # Scheduling — wake at each interval boundary + offset
    check_interval: int = 60  # seconds
    wake_offset: float = 2.0  # keeps checks clear of the minute/hour boundary

    # Probing
    probe_timeout: float = 10.0  # seconds per request
    max_concurrent_probes: int = 10
    success_status: int = 200  # anything else counts as an incident

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"


settings = Settings()
