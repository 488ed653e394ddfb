from pydantic import BaseModel
import os

class Settings(BaseModel):
    port: int = int(os.getenv("CONTROLPLANE_PORT", 8000))
    api_token: str | None = os.getenv("API_TOKEN") or None
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    sandbox_url_template: str = os.getenv("SANDBOX_URL_TEMPLATE", "http://sandbox-{agent_id}:4000")
    target_url: str | None = os.getenv("TARGET_URL") or None
    target_repo: str | None = os.getenv("TARGET_REPO") or None
    slack_webhook_url: str | None = os.getenv("SLACK_WEBHOOK_URL") or None
    anthropic_api_key: str | None = os.getenv("ANTHROPIC_API_KEY") or None
    poll_interval_ms: int = int(os.getenv("POLL_INTERVAL_MS", 5000))
    max_wait_ms: int = int(os.getenv("MAX_WAIT_MS", 10 * 60 * 1000))
    log_retention_seconds: int = int(os.getenv("LOG_RETENTION_SECONDS", 60 * 60 * 24 * 7))
    log_history_limit: int = int(os.getenv("LOG_HISTORY_LIMIT", 5))
    warm_timeout_seconds: float = float(os.getenv("WARM_TIMEOUT_SECONDS", 5))
    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", 30))
    run_retry_attempts: int = int(os.getenv("RUN_RETRY_ATTEMPTS", 3))
    run_retry_backoff_seconds: float = float(os.getenv("RUN_RETRY_BACKOFF_SECONDS", 10))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = os.getenv("LOG_JSON", "false").lower() in {"1", "true", "yes"}

settings = Settings()
