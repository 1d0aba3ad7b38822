"""Domain models for secret and variable sync."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class EventKind(Enum):
    """Kind of CI event driving the run."""
    PULL_REQUEST = "pull_request"
    OTHER = "other"

    @classmethod
    def from_event_name(cls, event_name: Optional[str]) -> "EventKind":
        if event_name == "pull_request":
            return cls.PULL_REQUEST
        return cls.OTHER


class UpsertResult(Enum):
    """Outcome of a create->update upsert."""
    CREATED = "created"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass
class UpsertOutcome:
    """Tagged result of one upsert, with the store path it targeted."""
    result: UpsertResult
    path: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not UpsertResult.FAILED


@dataclass
class SyncReport:
    """Counters for one sequential sync pass."""
    synced: int = 0
    failed: int = 0
    skipped: int = 0
    outcomes: List[UpsertOutcome] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.synced + self.failed

    def record(self, outcome: UpsertOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.ok:
            self.synced += 1
        else:
            self.failed += 1


@dataclass
class DeployReport:
    """Result of mirroring a build directory into a bucket."""
    bucket: str
    uploaded: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    invalidation_id: Optional[str] = None
