from pydantic import BaseModel
import os

class Settings(BaseModel):
    port: int = int(os.getenv("SANDBOX_PORT", 4000))
    workspace: str = os.getenv("WORKSPACE", "/workspace")
    agent_command: str = os.getenv(
        "AGENT_COMMAND", "claude --dangerously-skip-permissions --output-format json -p"
    )
    task_timeout_seconds: float = float(os.getenv("TASK_TIMEOUT_SECONDS", 600))
    sync_timeout_seconds: float = float(os.getenv("SYNC_TIMEOUT_SECONDS", 300))
    clone_timeout_seconds: float = float(os.getenv("CLONE_TIMEOUT_SECONDS", 300))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = os.getenv("LOG_JSON", "false").lower() in {"1", "true", "yes"}

settings = Settings()
