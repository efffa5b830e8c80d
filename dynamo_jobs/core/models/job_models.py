from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_epoch_millis(value: datetime) -> int:
    """Milliseconds since the epoch; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH) // timedelta(milliseconds=1)


class JobStatus(Enum):
    RUNNING = "RUNNING"
    OK = "OK"
    SKIPPED = "SKIPPED"
    ERROR = "ERROR"
    DEAD = "DEAD"


class Level(Enum):
    """Message severity.

    The enum value is the persisted key; ``display_name`` is for humans only,
    so either can change independently of the other.
    """

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def key(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        return _LEVEL_DISPLAY_NAMES[self]

    @classmethod
    def of_key(cls, key: str) -> "Level":
        for level in cls:
            if level.value == key:
                return level
        raise ValueError(f"unknown message level key: {key!r}")


_LEVEL_DISPLAY_NAMES = {
    Level.INFO: "Info",
    Level.WARNING: "Warning",
    Level.ERROR: "Error",
}


@dataclass(frozen=True)
class JobMessage:
    level: Level
    message: str
    timestamp: datetime


@dataclass
class JobRecord:
    job_id: str
    hostname: str
    job_type: str
    status: JobStatus
    started: datetime
    stopped: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    messages: List[JobMessage] = field(default_factory=list)

    @property
    def is_stopped(self) -> bool:
        return self.stopped is not None

    @property
    def last_updated_epoch(self) -> Optional[int]:
        if self.last_updated is None:
            return None
        return to_epoch_millis(self.last_updated)
