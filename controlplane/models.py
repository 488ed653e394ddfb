from pydantic import BaseModel
from typing import Optional

class AgentInfo(BaseModel):
    id: str
    name: str

class RunResult(BaseModel):
    success: bool
    output: Optional[str] = None
    error: Optional[str] = None

class WarmResponse(BaseModel):
    status: str  # warm | warming
    container: Optional[str] = None
    message: Optional[str] = None

class LogsResponse(BaseModel):
    logs: str

class HealthResponse(BaseModel):
    status: str
    targetUrl: str
    targetRepo: str
    slackConfigured: bool
