# tasktrack/validate.py
"""Write-path validation.

Everything returns a full List[Issue] so a caller can show all problems at
once; `blocking(issues)` decides whether the write may proceed.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from .config import DEFAULT_CONFIG
from .deps import has_cycle, parse_dependencies, validate_references
from .model import Issue, Task
from .normalize import normalize_date
from .schedule import check_status_transition
from .util.dates import parse_ymd


def blocking(issues: Iterable[Issue]) -> List[Issue]:
    return [i for i in issues if i.blocking]


def warnings(issues: Iterable[Issue]) -> List[Issue]:
    return [i for i in issues if not i.blocking]


def messages(issues: Iterable[Issue]) -> List[str]:
    return [i.message for i in issues]


def _require(cond: bool, issue: Issue, errs: List[Issue]) -> None:
    if not cond:
        errs.append(issue)


def _duration_num(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool) or v == "":
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def validate_task(
    task: Task,
    *,
    today: Optional[str] = None,
    max_title_len: int = DEFAULT_CONFIG.max_title_len,
    max_duration_days: int = DEFAULT_CONFIG.max_duration_days,
    date_range_years: int = DEFAULT_CONFIG.date_range_years,
) -> List[Issue]:
    """Required fields and sanity ranges for a single task record."""
    errs: List[Issue] = []

    title = str(task.get("task") or "").strip()
    _require(bool(title), Issue("missing_title", "task title is required"), errs)
    if title:
        _require(
            len(title) <= max_title_len,
            Issue("title_too_long", f"task title must be at most {max_title_len} characters"),
            errs,
        )

    _require(bool(str(task.get("owner") or "").strip()), Issue("missing_owner", "owner is required"), errs)

    due = normalize_date(task.get("date"))
    _require(bool(due), Issue("bad_date", "due date is missing or not a valid date"), errs)

    dur = _duration_num(task.get("duration"))
    if dur is not None:
        _require(dur >= 0, Issue("negative_duration", "duration cannot be negative"), errs)
        _require(
            dur <= max_duration_days,
            Issue("duration_too_long", f"duration exceeds {max_duration_days} days", blocking=False),
            errs,
        )

    if due:
        ref = parse_ymd(today) if today else None
        d = parse_ymd(due)
        if ref is not None and d is not None:
            try:
                lo = ref.replace(year=ref.year - date_range_years)
                hi = ref.replace(year=ref.year + date_range_years)
            except ValueError:  # Feb 29
                lo = ref.replace(month=2, day=28, year=ref.year - date_range_years)
                hi = ref.replace(month=2, day=28, year=ref.year + date_range_years)
            _require(
                lo <= d <= hi,
                Issue("date_out_of_range", f"due date is more than {date_range_years} years from {today}", blocking=False),
                errs,
            )

    return errs


def validate_save(
    task: Task,
    all_tasks: Iterable[Any],
    *,
    previous: Optional[Task] = None,
    today: Optional[str] = None,
    max_dependencies: int = DEFAULT_CONFIG.max_dependencies,
    max_cycle_steps: int = DEFAULT_CONFIG.max_cycle_steps,
    max_title_len: int = DEFAULT_CONFIG.max_title_len,
    max_duration_days: int = DEFAULT_CONFIG.max_duration_days,
    date_range_years: int = DEFAULT_CONFIG.date_range_years,
) -> List[Issue]:
    """Everything a save must pass: fields, dependency refs, cycles, Done gate.

    `previous` is the stored version of the task (None for a new task); the
    Done gate applies only when the status changes to Done.
    """
    tasks = [t for t in all_tasks or [] if isinstance(t, dict)]
    tid = str(task.get("id") or "").strip()
    dep = task.get("dependency")

    issues = validate_task(
        task,
        today=today,
        max_title_len=max_title_len,
        max_duration_days=max_duration_days,
        date_range_years=date_range_years,
    )
    issues.extend(validate_references(dep, tid, tasks, max_dependencies=max_dependencies))

    if tid and parse_dependencies(dep) and has_cycle(tid, dep, tasks, max_steps=max_cycle_steps):
        issues.append(Issue("dependency_cycle", f"dependencies of {tid} would form a cycle", ref=tid))

    new_status = task.get("status")
    old_status = previous.get("status") if previous else None
    if new_status != old_status:
        issues.extend(check_status_transition(task, str(new_status or "")))

    return issues


__all__ = [
    "blocking",
    "warnings",
    "messages",
    "validate_task",
    "validate_save",
]
