# tasktrack/model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

# Task records stay plain dicts (field names as stored by the host).
Task = Dict[str, Any]

T = TypeVar("T")

STATUS_TODO = "Todo"
STATUS_IN_PROGRESS = "InProgress"
STATUS_PENDING = "Pending"
STATUS_DONE = "Done"
STATUS_CLOSED = "Closed"
STATUS_DELAYED = "Delayed"

STATUSES = (
    STATUS_TODO,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    STATUS_DONE,
    STATUS_CLOSED,
    STATUS_DELAYED,
)
FINISHED_STATUSES = frozenset({STATUS_DONE, STATUS_CLOSED})

PRIORITIES = ("Low", "Medium", "High")

NODE_EPIC = "epic"
NODE_STORY = "story"
NODE_TASK = "task"
NODE_INDEPENDENT = "independent"
NODE_TYPES = (NODE_EPIC, NODE_STORY, NODE_TASK, NODE_INDEPENDENT)

REASON_INITIAL = "initial plan"
REASON_DEFAULT = "date adjustment"


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Outcome of a tolerant parse.

    ok=False means the input was unusable and `value` is the default.
    """

    ok: bool
    value: T


@dataclass(frozen=True)
class HistoryEntry:
    date: str
    changed_at: str
    reason: str
    version: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "changedAt": self.changed_at,
            "reason": self.reason,
            "version": self.version,
        }


@dataclass(frozen=True)
class AcItem:
    content: str
    checked: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"content": self.content, "checked": self.checked}


@dataclass(frozen=True)
class Issue:
    """One validation finding.

    blocking=True issues must stop the write; the rest are reported only.
    """

    code: str
    message: str
    blocking: bool = True
    ref: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "message": self.message, "blocking": self.blocking}
        if self.ref is not None:
            out["ref"] = self.ref
        return out


@dataclass(frozen=True)
class StatusChange:
    task: Task
    old_status: str
    new_status: str


@dataclass(frozen=True)
class DateChange:
    task: Task
    old_date: str
    new_date: str


@dataclass(frozen=True)
class DiffReport:
    snapshot_date: str
    report_date: str
    added: Tuple[Task, ...] = ()
    removed: Tuple[Task, ...] = ()
    completed: Tuple[Task, ...] = ()
    status_changed: Tuple[StatusChange, ...] = ()
    date_changed: Tuple[DateChange, ...] = ()
    delayed: Tuple[Task, ...] = ()

    def counts(self) -> Dict[str, int]:
        return {
            "added": len(self.added),
            "removed": len(self.removed),
            "completed": len(self.completed),
            "dateChanged": len(self.date_changed),
            "statusChanged": len(self.status_changed),
            "delayed": len(self.delayed),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "snapshotDate": self.snapshot_date,
            "reportDate": self.report_date,
            "added": list(self.added),
            "removed": list(self.removed),
            "completed": list(self.completed),
            "statusChanged": [
                {"task": c.task, "oldStatus": c.old_status, "newStatus": c.new_status}
                for c in self.status_changed
            ],
            "dateChanged": [
                {"task": c.task, "oldDate": c.old_date, "newDate": c.new_date}
                for c in self.date_changed
            ],
            "delayed": list(self.delayed),
            "counts": self.counts(),
        }


@dataclass(frozen=True)
class TreeIndex:
    by_id: Dict[str, Task]
    children: Dict[str, List[str]] = field(default_factory=dict)
    roots: Tuple[str, ...] = ()
    independent: Tuple[str, ...] = ()

    def parent_of(self, task_id: str) -> str:
        t = self.by_id.get(task_id)
        if t is None:
            return ""
        return str(t.get("parentId") or "").strip()


__all__ = [
    "Task",
    "ParseResult",
    "HistoryEntry",
    "AcItem",
    "Issue",
    "StatusChange",
    "DateChange",
    "DiffReport",
    "TreeIndex",
    "STATUSES",
    "FINISHED_STATUSES",
    "PRIORITIES",
    "NODE_TYPES",
]
