# tasktrack/store.py
"""One authoritative task list; every edit goes through here.

A TaskStore never changes after construction. Mutations return a
SaveResult carrying the next store, so list/Gantt/tree views are always
derived from the same snapshot. Hosts that accept concurrent writes wrap
the current store in a SerializedStore.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .config import DEFAULT_CONFIG, EngineConfig
from .deps import parse_dependencies
from .history import append_if_changed, load_history
from .ids import IdentifierGenerator, migrate_legacy_ids
from .model import STATUS_TODO, Issue, Task, TreeIndex
from .normalize import clamp_duration, normalize_date
from .schedule import derive_views
from .tree import apply_order, build_tree, make_independent, move_task, reorder
from .util.console import warn
from .util.dates import today_in
from .validate import blocking, validate_save


@dataclass(frozen=True)
class SaveResult:
    ok: bool
    store: "TaskStore"
    task: Optional[Task] = None
    issues: Tuple[Issue, ...] = ()


def _tid(t: Task) -> str:
    return str(t.get("id") or "").strip()


class TaskStore:
    def __init__(self, tasks: Iterable[Any] = (), *, config: EngineConfig = DEFAULT_CONFIG) -> None:
        self._tasks: Tuple[Task, ...] = tuple(dict(t) for t in tasks or () if isinstance(t, dict))
        self._config = config

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def config(self) -> EngineConfig:
        return self._config

    def tasks(self) -> List[Task]:
        return [dict(t) for t in self._tasks]

    def get(self, task_id: str) -> Optional[Task]:
        want = str(task_id or "").strip()
        for t in self._tasks:
            if _tid(t) == want:
                return dict(t)
        return None

    def tree(self) -> TreeIndex:
        return build_tree(self.tasks())

    def views(self, today: str, *, highlight: bool = True) -> List[Task]:
        return derive_views(self._tasks, today, highlight=highlight)

    # --- internals -------------------------------------------------------------

    def _next(self, tasks: Iterable[Task]) -> "TaskStore":
        return TaskStore(tasks, config=self._config)

    def _refuse(self, task: Optional[Task], issues: Iterable[Issue]) -> SaveResult:
        return SaveResult(ok=False, store=self, task=task, issues=tuple(issues))

    def _check(self, task: Task, others: List[Task], previous: Optional[Task], today: Optional[str]) -> List[Issue]:
        cfg = self._config
        return validate_save(
            task,
            others,
            previous=previous,
            today=today or today_in(cfg.tz),
            max_dependencies=cfg.max_dependencies,
            max_cycle_steps=cfg.max_cycle_steps,
            max_title_len=cfg.max_title_len,
            max_duration_days=cfg.max_duration_days,
            date_range_years=cfg.date_range_years,
        )

    @staticmethod
    def _prepare(task: Task) -> Task:
        if not task.get("status"):
            task["status"] = STATUS_TODO
        due = normalize_date(task.get("date"))
        if due:
            task["date"] = due
        if "dependency" in task:
            task["dependency"] = ",".join(parse_dependencies(task.get("dependency")))
        return task

    @staticmethod
    def _finish(task: Task) -> Task:
        # Runs after validation so a negative duration is still reported.
        task["duration"] = clamp_duration(task.get("duration"))
        return task

    # --- writes ----------------------------------------------------------------

    def create(
        self,
        fields: Mapping[str, Any],
        generator: IdentifierGenerator,
        *,
        reason: Optional[str] = None,
        now: Optional[str] = None,
        today: Optional[str] = None,
    ) -> SaveResult:
        """Add a new task. The id is allocated only once validation passes."""
        task = self._prepare(dict(fields))
        task.pop("id", None)

        issues = self._check(task, self.tasks(), None, today)
        if blocking(issues):
            return self._refuse(task, issues)

        self._finish(task)
        task["id"] = generator.generate(task.get("team"), task.get("issueDate"))
        history = append_if_changed([], None, str(task.get("date") or ""), reason, True, now=now)
        task["dateHistory"] = [h.to_dict() for h in history]

        return SaveResult(ok=True, store=self._next(self._tasks + (task,)), task=dict(task), issues=tuple(issues))

    def update(
        self,
        task_id: str,
        fields: Mapping[str, Any],
        *,
        reason: Optional[str] = None,
        now: Optional[str] = None,
        today: Optional[str] = None,
    ) -> SaveResult:
        """Edit a task in place. The id never changes; a moved due date is logged."""
        prev = self.get(task_id)
        if prev is None:
            return self._refuse(None, [Issue("not_found", f"task not found: {task_id}", ref=str(task_id))])

        task = dict(prev)
        task.update(fields)
        task["id"] = _tid(prev)
        self._prepare(task)

        others = [t for t in self.tasks() if _tid(t) != task["id"]]
        issues = self._check(task, others + [task], prev, today)
        if blocking(issues):
            return self._refuse(task, issues)
        self._finish(task)

        old_date = str(prev.get("date") or "")
        new_date = str(task.get("date") or "")
        history = load_history(prev.get("dateHistory"), old_date, now=now, task_id=task["id"])
        history = append_if_changed(history, old_date, new_date, reason, False, now=now)
        task["dateHistory"] = [h.to_dict() for h in history]

        out = [task if _tid(t) == task["id"] else t for t in self._tasks]
        return SaveResult(ok=True, store=self._next(out), task=dict(task), issues=tuple(issues))

    def set_status(self, task_id: str, status: str, *, today: Optional[str] = None) -> SaveResult:
        return self.update(task_id, {"status": status}, today=today)

    def delete(self, task_id: str) -> SaveResult:
        """Remove a task. Tasks that still reference it are reported, not blocked."""
        want = str(task_id or "").strip()
        gone = self.get(want)
        if gone is None:
            return self._refuse(None, [Issue("not_found", f"task not found: {want}", ref=want)])

        issues: List[Issue] = []
        for t in self._tasks:
            if want in parse_dependencies(t.get("dependency")):
                issues.append(
                    Issue("dangling_dependency", f"{_tid(t)} still depends on deleted task {want}", blocking=False, ref=_tid(t))
                )
            if str(t.get("parentId") or "").strip() == want:
                issues.append(Issue("orphaned_child", f"{_tid(t)} loses its parent {want}", blocking=False, ref=_tid(t)))
        if issues:
            warn("store", f"delete id={want} left {len(issues)} dangling reference(s)")

        out = [t for t in self._tasks if _tid(t) != want]
        return SaveResult(ok=True, store=self._next(out), task=gone, issues=tuple(issues))

    def move(self, task_id: str, new_parent_id: Optional[str], new_sort_order: int = 0) -> SaveResult:
        out, issues = move_task(self._tasks, task_id, new_parent_id, new_sort_order)
        if blocking(issues):
            return self._refuse(self.get(task_id), issues)
        nxt = self._next(out)
        return SaveResult(ok=True, store=nxt, task=nxt.get(task_id), issues=tuple(issues))

    def reorder(self, task_id: str, direction: str) -> SaveResult:
        """Swap a task with its previous/next sibling and renumber sortOrder."""
        idx = self.tree()
        want = str(task_id or "").strip()
        if want not in idx.by_id:
            return self._refuse(None, [Issue("not_found", f"task not found: {want}", ref=want)])

        parent = idx.parent_of(want)
        if parent and parent in idx.by_id:
            siblings = idx.children.get(parent, [])
        elif want in idx.independent:
            siblings = list(idx.independent)
        else:
            parent = ""
            siblings = list(idx.roots)

        order = reorder(siblings, want, direction)
        nxt = self._next(apply_order(self._tasks, parent, order))
        return SaveResult(ok=True, store=nxt, task=nxt.get(want))

    def make_independent(self, task_id: str) -> SaveResult:
        out, issues = make_independent(self._tasks, task_id)
        if blocking(issues):
            return self._refuse(self.get(task_id), issues)
        nxt = self._next(out)
        return SaveResult(ok=True, store=nxt, task=nxt.get(task_id))

    def migrate_legacy_ids(self, generator: IdentifierGenerator) -> Tuple["TaskStore", Dict[str, str]]:
        out, mapping = migrate_legacy_ids(self._tasks, generator)
        return self._next(out), mapping


class SerializedStore:
    """Holds the current TaskStore and applies writes one at a time."""

    def __init__(self, store: Optional[TaskStore] = None) -> None:
        self._store = store if store is not None else TaskStore()
        self._lock = threading.Lock()

    @property
    def current(self) -> TaskStore:
        with self._lock:
            return self._store

    def apply(self, fn: Callable[[TaskStore], SaveResult]) -> SaveResult:
        with self._lock:
            res = fn(self._store)
            if res.ok:
                self._store = res.store
            return res


__all__ = [
    "SaveResult",
    "TaskStore",
    "SerializedStore",
]
