# tasktrack/deps.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .config import DEFAULT_CONFIG
from .ids import is_known_id_shape
from .model import Issue, Task
from .util.graph import bounded_bfs


def parse_dependencies(dep: Any) -> List[str]:
    """"A, B,,C " -> ["A", "B", "C"]. Lists are accepted as-is (trimmed)."""
    if dep is None:
        return []
    if isinstance(dep, (list, tuple)):
        items = [str(x) for x in dep if x is not None]
    elif isinstance(dep, str):
        items = dep.split(",")
    else:
        return []
    return [x.strip() for x in items if x.strip()]


def _task_id(t: Task) -> str:
    v = t.get("id")
    if v is None or v == "":
        v = t.get("ID")
    return "" if v is None else str(v).strip()


def dependency_index(all_tasks: Iterable[Any]) -> Dict[str, List[str]]:
    """id -> declared dependency ids. The first record wins on duplicate ids."""
    idx: Dict[str, List[str]] = {}
    for t in all_tasks or []:
        if not isinstance(t, dict):
            continue
        tid = _task_id(t)
        if tid and tid not in idx:
            idx[tid] = parse_dependencies(t.get("dependency"))
    return idx


def validate_references(
    dep: Any,
    current_task_id: Optional[str],
    all_tasks: Iterable[Any],
    *,
    max_dependencies: int = DEFAULT_CONFIG.max_dependencies,
) -> List[Issue]:
    """Check a proposed dependency list; returns every problem found.

    Blocking: too many ids, malformed id, self-reference.
    Non-blocking: referenced task not in `all_tasks` (it may be created later
    or live behind another import boundary).
    """
    issues: List[Issue] = []
    dep_ids = parse_dependencies(dep)
    if not dep_ids:
        return issues

    if len(dep_ids) > max_dependencies:
        issues.append(
            Issue(
                code="too_many_dependencies",
                message=f"at most {max_dependencies} dependencies allowed (got {len(dep_ids)})",
            )
        )

    known = {_task_id(t) for t in all_tasks or [] if isinstance(t, dict)}
    me = "" if current_task_id is None else str(current_task_id).strip()

    for dep_id in dep_ids:
        if not is_known_id_shape(dep_id):
            issues.append(
                Issue(
                    code="bad_format",
                    message=f'dependency id "{dep_id}" is malformed (expected DEPT-YYYY-MM-NNNN, digits, or NNN_name)',
                    ref=dep_id,
                )
            )
            continue
        if me and dep_id == me:
            issues.append(Issue(code="self_dependency", message=f"task cannot depend on itself (id: {dep_id})", ref=dep_id))
            continue
        if dep_id not in known:
            issues.append(
                Issue(code="not_found", message=f"dependency task not found: {dep_id}", blocking=False, ref=dep_id)
            )

    return issues


def has_cycle(
    task_id: str,
    dep: Any,
    all_tasks: Iterable[Any],
    *,
    max_steps: int = DEFAULT_CONFIG.max_cycle_steps,
) -> bool:
    """True when giving `task_id` the dependencies `dep` would close a loop.

    Walks the existing dependency edges of `all_tasks` from each proposed
    dependency; `task_id`'s own stored edges are replaced by `dep`.
    """
    me = str(task_id or "").strip()
    starts = parse_dependencies(dep)
    if not me or not starts:
        return False

    idx = dependency_index(all_tasks)
    idx[me] = starts

    return bounded_bfs(starts, lambda cur: idx.get(cur, ()), me, max_steps=max_steps)


def tasks_in_cycles(
    all_tasks: Iterable[Any],
    *,
    max_steps: int = DEFAULT_CONFIG.max_cycle_steps,
) -> List[str]:
    """Ids (input order) whose own dependencies lead back to them."""
    tasks = [t for t in all_tasks or [] if isinstance(t, dict)]
    idx = dependency_index(tasks)
    out: List[str] = []
    for tid, starts in idx.items():
        if starts and bounded_bfs(starts, lambda cur: idx.get(cur, ()), tid, max_steps=max_steps):
            out.append(tid)
    return out


__all__ = [
    "parse_dependencies",
    "dependency_index",
    "validate_references",
    "has_cycle",
    "tasks_in_cycles",
]
