from typing import List

from fastapi import APIRouter, Depends

from ..agents import AGENTS
from ..auth import require_token
from ..config import settings
from ..deps import get_orchestrator
from ..models import AgentInfo, HealthResponse, LogsResponse, RunResult, WarmResponse
from ..services.orchestrator import Orchestrator

router = APIRouter(prefix="/api")

@router.get("/agents", response_model=List[AgentInfo])
async def list_agents():
    return [AgentInfo(id=agent.id, name=agent.name) for agent in AGENTS.values()]

@router.post("/agents/{agent_id}/run", response_model=RunResult, response_model_exclude_none=True)
async def run_agent(agent_id: str, orchestrator: Orchestrator = Depends(get_orchestrator), _=Depends(require_token)):
    return await orchestrator.run_agent(agent_id)

@router.post("/agents/{agent_id}/warm", response_model=WarmResponse, response_model_exclude_none=True)
async def warm_agent(agent_id: str, orchestrator: Orchestrator = Depends(get_orchestrator), _=Depends(require_token)):
    return await orchestrator.warm(agent_id)

@router.get("/agents/{agent_id}/logs", response_model=LogsResponse)
async def agent_logs(agent_id: str, orchestrator: Orchestrator = Depends(get_orchestrator), _=Depends(require_token)):
    return LogsResponse(logs=orchestrator.log_store.get_logs(agent_id))

@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(
        status="ok",
        targetUrl=settings.target_url or "not set",
        targetRepo=settings.target_repo or "not set",
        slackConfigured=bool(settings.slack_webhook_url),
    )
