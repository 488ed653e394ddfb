from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

class RunRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: Optional[str] = None
    workdir: Optional[str] = None
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    agent_id: Optional[str] = Field(default=None, alias="agentId")

class RunSyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: Optional[str] = None
    workdir: Optional[str] = None
    api_key: Optional[str] = Field(default=None, alias="apiKey")

class TaskAccepted(BaseModel):
    taskId: str
    status: str  # running
    message: str = "Task started. Poll /status/{taskId} for results."

class TaskSummary(BaseModel):
    taskId: str
    status: str  # running | completed | failed
    startTime: int
    elapsed: int

class TaskList(BaseModel):
    tasks: List[TaskSummary]

class HealthResponse(BaseModel):
    status: str
    workspace: str
    tasks: int

class CloneRequest(BaseModel):
    repo: str
    dir: Optional[str] = None

class CloneResponse(BaseModel):
    success: bool
    path: str
    error: Optional[str] = None

class FileEntry(BaseModel):
    name: str
    type: str  # file | directory

class DirectoryListing(BaseModel):
    path: str
    files: List[FileEntry]

class FileContent(BaseModel):
    path: str
    content: str
