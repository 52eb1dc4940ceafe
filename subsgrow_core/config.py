"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Durable cooldown store
    database_url: str = "sqlite:///./subsgrow_core.db"

    # Service
    service_name: str = "subsgrow-core"
    log_level: str = "INFO"

    # Retention policy
    retention_cooldown_hours: float = 24.0
    retention_warning_ttl_hours: float = 72.0
    retention_required_feature: str = "export"
    retention_review_near_days: int = 3
    retention_snooze_days: int = 14

    # Operator alerts (optional webhook)
    alert_webhook_url: str | None = None
    http_timeout_seconds: float = 5.0
    webhook_max_retries: int = 3
    webhook_backoff_base: float = 1.0  # Exponential backoff base in seconds


settings = Settings()
