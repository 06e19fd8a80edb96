# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

Predicate = Callable[[Any], bool]
Action = Callable[[Any], Any]


class DependencyBehavior(str, Enum):
    """What happens downstream when a target is skipped (WhenSkipped)."""
    FAIL = "fail"
    SKIP = "skip"


class Decision(str, Enum):
    RUN = "run"
    SKIP = "skip"
    ABORT = "abort"


class TargetStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    NOT_REACHED = "not_reached"


@dataclass(frozen=True)
class Requirement:
    """A guard that must hold for a target to run."""
    predicate: Predicate
    message: str | None = None

    def describe(self) -> str:
        if self.message:
            return self.message
        name = getattr(self.predicate, "__name__", "") or "requirement"
        if name == "<lambda>":
            return "requirement"
        return name


@dataclass(frozen=True)
class Target:
    """
    A named build step: relationships + guards + action.

    `depends_on` pulls targets into the run and orders them first.
    `before` / `after` only order targets that are already part of the run.
    """
    name: str
    action: Optional[Action] = None

    depends_on: Tuple[str, ...] = ()
    before: Tuple[str, ...] = ()
    after: Tuple[str, ...] = ()

    requires: Tuple[Requirement, ...] = ()
    only_when: Optional[Predicate] = None
    when_skipped: DependencyBehavior = DependencyBehavior.FAIL

    proceed_after_failure: bool = False
    produces: Tuple[Path, ...] = ()
    description: str | None = None


@dataclass
class TargetResult:
    name: str
    status: TargetStatus = TargetStatus.NOT_REACHED
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    reason: str | None = None
    error: str | None = None
    artifacts: List[Path] = field(default_factory=list)

    @property
    def duration(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration": self.duration,
            "reason": self.reason,
            "error": self.error,
            "artifacts": [str(p) for p in self.artifacts],
        }


@dataclass(frozen=True)
class RunResult:
    """Aggregate report of one engine invocation. Not persisted between runs."""
    goals: Tuple[str, ...]
    order: Tuple[str, ...]
    targets: Mapping[str, TargetResult]
    started_at: datetime
    finished_at: datetime

    @property
    def success(self) -> bool:
        return all(
            r.status in (TargetStatus.SUCCEEDED, TargetStatus.SKIPPED)
            for r in self.targets.values()
        )

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def status_of(self, name: str) -> TargetStatus:
        return self.targets[name].status

    def to_dict(self) -> Dict[str, Any]:
        return {
            "goals": list(self.goals),
            "order": list(self.order),
            "success": self.success,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "targets": [self.targets[name].to_dict() for name in self.order],
        }
