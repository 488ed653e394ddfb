from typing import Optional

import httpx
import structlog

from ..config import settings

logger = structlog.get_logger(__name__)

EXCERPT_LIMIT = 2500


def excerpt(message: str, limit: int = EXCERPT_LIMIT) -> str:
    return message[:limit] + ("..." if len(message) > limit else "")


class SlackNotifier:
    """Posts a run summary to a Slack incoming webhook. Never raises."""

    def __init__(self, webhook_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.webhook_url = webhook_url if webhook_url is not None else settings.slack_webhook_url
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.webhook_url)

    @staticmethod
    def payload(agent_name: str, message: str, success: bool) -> dict:
        emoji = "✅" if success else "❌"
        headline = f"{emoji} *{agent_name}* {'completed' if success else 'failed'}"
        return {
            "text": headline,
            "blocks": [
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": f"{headline}\n```{excerpt(message)}```"},
                }
            ],
        }

    async def notify(self, agent_name: str, message: str, success: bool) -> bool:
        if not self.configured:
            return False
        try:
            async with httpx.AsyncClient(timeout=settings.http_timeout_seconds, transport=self.transport) as client:
                r = await client.post(self.webhook_url, json=self.payload(agent_name, message, success))
                r.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("slack_notification_failed", agent=agent_name, error=str(exc))
            return False
        return True
