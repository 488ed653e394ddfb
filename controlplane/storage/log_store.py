import redis
import orjson

from ..config import settings
from .schema import LogEntry

NO_LOGS = "No logs found"
SEPARATOR = "\n\n---\n\n"

class LogStore:
    """Append-only run history keyed ``{agent_id}:{start_ms}`` with a fixed expiry."""

    def __init__(self, client=None):
        self.r = client if client is not None else redis.from_url(settings.redis_url, decode_responses=True)

    @staticmethod
    def _key(agent_id: str, started_ms: int) -> str:
        return f"{agent_id}:{started_ms}"

    def append(self, started_ms: int, entry: LogEntry) -> str:
        key = self._key(entry.agent_id, started_ms)
        self.r.set(
            key,
            orjson.dumps(entry.model_dump(by_alias=True, exclude_none=True)).decode(),
            ex=settings.log_retention_seconds,
        )
        return key

    def recent(self, agent_id: str, limit: int | None = None) -> list[LogEntry]:
        limit = limit or settings.log_history_limit
        keys = []
        for key in self.r.scan_iter(match=f"{agent_id}:*"):
            suffix = key.rsplit(":", 1)[1]
            if suffix.isdigit():
                keys.append((int(suffix), key))
        keys.sort()
        entries = []
        for _, key in keys[-limit:]:
            raw = self.r.get(key)
            # Keys can expire between the scan and the read.
            if raw:
                entries.append(LogEntry.model_validate(orjson.loads(raw)))
        return entries

    def get_logs(self, agent_id: str) -> str:
        entries = self.recent(agent_id)
        if not entries:
            return NO_LOGS
        return SEPARATOR.join(entry.render() for entry in entries)
