import json
import logging
from datetime import datetime, timezone

ROOT_LOGGER = "marketplace_console"
EVENT_ATTR = "console_event"


class EventFormatter(logging.Formatter):
    """One JSON object per session event; plain messages pass through unchanged."""

    def format(self, record: logging.LogRecord) -> str:
        event = getattr(record, EVENT_ATTR, None)
        if event is None:
            return super().format(record)
        return json.dumps(
            {
                "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                **event,
            },
            default=str,
        )


def get_logger(name: str) -> logging.Logger:
    """Loggers below the package share a single stream handler on the package logger."""
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        root.setLevel(logging.INFO)
        handler = logging.StreamHandler()
        handler.setFormatter(EventFormatter("%(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
    return logging.getLogger(name)


def log_action(
    logger: logging.Logger,
    module: str,
    action: str,
    actor_role: str | None,
    tenant_id: str | None,
    trace_id: str | None,
    outcome: str,
    level: int = logging.INFO,
) -> None:
    event = {
        "module": module,
        "action": action,
        "actor_role": actor_role,
        "tenant_id": tenant_id,
        "trace_id": trace_id,
        "outcome": outcome,
    }
    logger.log(level, "%s.%s %s", module, action, outcome, extra={EVENT_ATTR: event})
