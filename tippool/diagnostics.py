import logging
from typing import Any, Dict, List

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class DiagnosticEvent(BaseModel):
    level: str
    code: str
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


class Diagnostics:
    """
    Ordered list of events recorded during a run.

    Every event is also sent to the standard logger, so callers can either
    inspect the events (HTTP responses, tests) or just read the log.
    """

    def __init__(self):
        self.events: List[DiagnosticEvent] = []

    def record(self, level: str, code: str, message: str, **context) -> DiagnosticEvent:
        event = DiagnosticEvent(level=level, code=code, message=message, context=context)
        self.events.append(event)
        logger.log(_LEVELS.get(level, logging.INFO), "%s: %s", code, message)
        return event

    def info(self, code: str, message: str, **context) -> DiagnosticEvent:
        return self.record("info", code, message, **context)

    def warning(self, code: str, message: str, **context) -> DiagnosticEvent:
        return self.record("warning", code, message, **context)

    def error(self, code: str, message: str, **context) -> DiagnosticEvent:
        return self.record("error", code, message, **context)

    def count(self, code: str) -> int:
        return sum(1 for e in self.events if e.code == code)

    def codes(self) -> List[str]:
        return [e.code for e in self.events]

    @property
    def has_errors(self) -> bool:
        return any(e.level == "error" for e in self.events)

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self):
        return iter(self.events)
