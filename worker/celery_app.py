import asyncio
from datetime import datetime, timezone

import structlog
from celery import Celery
from celery.schedules import crontab

from controlplane.agents import due_agents
from controlplane.config import settings
from controlplane.logging_setup import configure_logging

configure_logging(level=settings.log_level, json_logs=settings.log_json)
logger = structlog.get_logger(__name__)

celery_app = Celery(
    "agentrunner",
    broker=settings.redis_url,
    backend=settings.redis_url,
)
celery_app.conf.timezone = "UTC"
celery_app.conf.beat_schedule = {
    "agent-schedule": {"task": "scheduled_tick", "schedule": crontab(minute=0)},
}

@celery_app.task(name="run_agent_job")
def run_agent_job(agent_id: str) -> dict:
    from controlplane.services.orchestrator import Orchestrator

    async def _run():
        orchestrator = Orchestrator()
        await orchestrator.warm(agent_id)
        return await orchestrator.run_with_retry(agent_id)

    return asyncio.run(_run()).model_dump(exclude_none=True)

@celery_app.task(name="scheduled_tick")
def scheduled_tick(scheduled_for: str | None = None) -> list[str]:
    moment = datetime.fromisoformat(scheduled_for) if scheduled_for else datetime.now(timezone.utc)
    fired = due_agents(moment)
    for agent_id in fired:
        run_agent_job.delay(agent_id)
    logger.info("schedule_tick", hour=moment.hour, fired=fired)
    return fired
