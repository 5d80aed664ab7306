"""System routes for recent logs."""

import logging
from collections import deque
from datetime import datetime
from typing import Any, Dict, List

from fastapi import APIRouter, Query
from pydantic import BaseModel

router = APIRouter()

LOG_BUFFER_SIZE = 100
LOG_BUFFER: deque = deque(maxlen=LOG_BUFFER_SIZE)

# LogRecord attributes that are not caller-supplied ``extra`` context.
_RECORD_FIELDS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}


class LogEntry(BaseModel):
    timestamp: str
    level: str
    logger: str
    message: str
    extra: Dict[str, Any]


class MemoryLogHandler(logging.Handler):
    """Keep the most recent log records in memory."""

    def __init__(self, buffer: deque = LOG_BUFFER, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.buffer = buffer

    def emit(self, record: logging.LogRecord) -> None:
        try:
            extra = {
                key: value if isinstance(value, (str, int, float, bool, type(None))) else repr(value)
                for key, value in record.__dict__.items()
                if key not in _RECORD_FIELDS
            }
            self.buffer.append(
                {
                    "timestamp": datetime.fromtimestamp(record.created).isoformat(),
                    "level": record.levelname,
                    "logger": record.name,
                    "message": self.format(record),
                    "extra": extra,
                }
            )
        except Exception:
            self.handleError(record)


memory_handler = MemoryLogHandler()
memory_handler.setFormatter(logging.Formatter("%(message)s"))


def install_memory_handler(logger: logging.Logger | None = None) -> MemoryLogHandler:
    """Attach the shared buffer handler once (root logger by default)."""
    target = logger or logging.getLogger()
    if memory_handler not in target.handlers:
        target.addHandler(memory_handler)
    return memory_handler


@router.get("/api/system/logs", response_model=List[LogEntry])
async def get_logs(limit: int = Query(LOG_BUFFER_SIZE, ge=1, le=LOG_BUFFER_SIZE)):
    """Retrieve recent log records, oldest first."""
    return list(LOG_BUFFER)[-limit:]


__all__ = ["router", "LOG_BUFFER", "MemoryLogHandler", "install_memory_handler"]
