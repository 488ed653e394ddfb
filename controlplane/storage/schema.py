from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

class LogEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    agent_id: str = Field(alias="agentId")
    agent_name: str = Field(alias="agentName")
    timestamp: str  # ISO-8601, UTC
    duration: str  # e.g. "12.3s"
    success: bool
    output: Optional[str] = None
    error: Optional[str] = None

    def render(self) -> str:
        mark = "✅" if self.success else "❌"
        return f"[{self.timestamp}] {mark} Duration: {self.duration}\n{self.output if self.success else self.error}"
