"""Agent definitions: fixed prompt templates plus their UTC run schedule."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

MONDAY, FRIDAY = 0, 4


class AgentDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    prompt: str
    hour: int
    weekday: Optional[int] = None  # datetime.weekday(); None runs every day

    def is_due(self, hour: int, weekday: int) -> bool:
        return self.hour == hour and (self.weekday is None or self.weekday == weekday)


AGENTS: Dict[str, AgentDefinition] = {
    agent.id: agent
    for agent in [
        AgentDefinition(
            id="pentest",
            name="Penetration Tester",
            description="Scans for security vulnerabilities",
            hour=9,
            prompt="""You are a security penetration tester. Analyze the target site for vulnerabilities:
- Test for common web vulnerabilities (XSS, CSRF, SQL injection, etc.)
- Check security headers and SSL configuration
- Look for exposed sensitive files or endpoints
- Test authentication mechanisms if present
Report findings with severity ratings (Critical/High/Medium/Low/Info).""",
        ),
        AgentDefinition(
            id="bughunter",
            name="Bug Hunter",
            description="Analyzes code for bugs",
            hour=10,
            prompt="""You are a bug hunter. Clone and analyze the target repository:
- Look for potential bugs and runtime errors
- Identify code smells and anti-patterns
- Check for memory leaks or performance issues
- Review error handling and edge cases
Report issues with code locations and suggested fixes.""",
        ),
        AgentDefinition(
            id="datainsights",
            name="Data Insights Analyst",
            description="Surfaces actionable insights",
            hour=11,
            weekday=MONDAY,
            prompt="""You are a data analyst. Analyze available metrics and data:
- Identify trends and patterns in usage
- Find anomalies that need investigation
- Surface growth opportunities
- Recommend data-driven actions
Provide actionable insights with supporting evidence.""",
        ),
        AgentDefinition(
            id="feedback",
            name="Feedback Analyzer",
            description="Identifies pain points from user feedback",
            hour=12,
            weekday=MONDAY,
            prompt="""You are a user feedback analyst. Review all available feedback:
- Categorize common complaints and requests
- Identify pain points in user experience
- Prioritize issues by frequency and impact
- Extract feature requests and suggestions
Summarize findings with recommended priorities.""",
        ),
        AgentDefinition(
            id="investor",
            name="Skeptical Investor",
            description="Challenges assumptions",
            hour=14,
            weekday=FRIDAY,
            prompt="""You are a skeptical investor doing due diligence:
- Challenge core business assumptions
- Identify market risks and competitive threats
- Question unit economics and growth projections
- Find weaknesses in the business model
Be constructively critical - poke holes that need addressing.""",
        ),
        AgentDefinition(
            id="kpi",
            name="KPI Analyzer",
            description="Tracks metrics week-over-week",
            hour=9,
            weekday=MONDAY,
            prompt="""You are a KPI analyst. Track and analyze key metrics:
- Compare current metrics to previous periods
- Identify metrics trending in wrong direction
- Highlight wins and areas of concern
- Recommend focus areas for improvement
Provide a clear weekly health summary.""",
        ),
    ]
}


def get_agent(agent_id: str) -> Optional[AgentDefinition]:
    return AGENTS.get(agent_id)


def compose_prompt(agent: AgentDefinition, target_url: Optional[str], target_repo: Optional[str]) -> str:
    return (
        f"{agent.prompt}\n"
        f"\n"
        f"Target URL: {target_url or 'Not configured'}\n"
        f"Target Repo: {target_repo or 'Not configured'}\n"
        f"\n"
        f"Execute your analysis and provide a detailed report."
    )


def due_agents(moment: datetime) -> List[str]:
    """Agent ids scheduled for the UTC hour containing ``moment``."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return [
        agent.id
        for agent in AGENTS.values()
        if agent.is_due(moment.hour, moment.weekday())
    ]
