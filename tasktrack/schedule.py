# tasktrack/schedule.py
"""Derived scheduling state shared by the list, Gantt and tree views.

Every function here takes the reference day explicitly (`today`, YYYY-MM-DD)
so the same inputs always classify the same way. `today_str()` is the only
place that reads the clock.
"""

from __future__ import annotations

import datetime as dt
import json
import re
from typing import Any, Iterable, List, Optional

from .config import config_from_env
from .model import (
    AcItem,
    Issue,
    ParseResult,
    STATUS_CLOSED,
    STATUS_DELAYED,
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    STATUS_TODO,
    Task,
)
from .util.console import warn
from .util.dates import parse_ymd, today_in

BADGE_NOT_EXECUTING = "not_executing"
BADGE_ON_HOLD = "on_hold"
BADGE_OVERDUE = "overdue"
BADGE_SHOULD_START = "should_start"

_STATUS_BADGE = {
    STATUS_TODO: "todo",
    STATUS_IN_PROGRESS: "in_progress",
    STATUS_DONE: "done",
    STATUS_DELAYED: "delayed",
}

HIGHLIGHT_NONE = ""
HIGHLIGHT_OVERDUE = "overdue"
HIGHLIGHT_SHOULD_START = "should_start"

_NO_HIGHLIGHT = frozenset({STATUS_DONE, STATUS_CLOSED, STATUS_PENDING})

_AC_LINE_RE = re.compile(r"^-?\s*\[[ xX]?\]\s*")


def today_str(tz: Optional[str] = None) -> str:
    """Host-side "today" in `tz` (default TASKTRACK_TZ, else Asia/Taipei)."""
    return today_in(tz or config_from_env().tz)


def _int_days(duration: Any) -> Optional[int]:
    if duration is None or isinstance(duration, bool):
        return None
    try:
        n = int(float(duration))
    except (TypeError, ValueError):
        return None
    return n


def add_days(date_str: Any, n: Any) -> str:
    d = parse_ymd(date_str)
    k = _int_days(n)
    if d is None or k is None:
        return ""
    try:
        return (d + dt.timedelta(days=k)).isoformat()
    except OverflowError:
        return ""


def start_date(end_date: Any, duration: Any) -> str:
    """end_date - duration days, "" when either side is missing or invalid."""
    k = _int_days(duration)
    if k is None or k < 0:
        return ""
    return add_days(end_date, -k)


def _due(task: Task) -> str:
    return str(task.get("date") or "")


def _derived_start(task: Task) -> str:
    return start_date(task.get("date"), task.get("duration"))


def status_badge_class(task: Task, today: str) -> str:
    status = task.get("status")
    if status == STATUS_CLOSED:
        return BADGE_NOT_EXECUTING
    if status == STATUS_PENDING:
        return BADGE_ON_HOLD

    due = _due(task)
    if due and due < today and status != STATUS_DONE:
        return BADGE_OVERDUE

    if status == STATUS_TODO:
        start = _derived_start(task)
        if start and start <= today:
            return BADGE_SHOULD_START

    return _STATUS_BADGE.get(str(status or ""), "other")


def row_highlight(task: Task, enabled: bool, today: str) -> str:
    if not enabled:
        return HIGHLIGHT_NONE
    status = task.get("status")
    if status in _NO_HIGHLIGHT:
        return HIGHLIGHT_NONE

    due = _due(task)
    overdue = bool(due) and due < today
    if status == STATUS_DELAYED or overdue:
        return HIGHLIGHT_OVERDUE

    if status == STATUS_TODO:
        start = _derived_start(task)
        if start and start <= today and due >= today:
            return HIGHLIGHT_SHOULD_START

    return HIGHLIGHT_NONE


def days_late(task: Task, today: str) -> int:
    d = parse_ymd(task.get("date"))
    t = parse_ymd(today)
    if d is None or t is None:
        return 0
    return max(0, (t - d).days)


# --- Acceptance criteria ------------------------------------------------------


def _item_from(obj: Any) -> Optional[AcItem]:
    if isinstance(obj, AcItem):
        return obj
    if isinstance(obj, dict):
        return AcItem(content=str(obj.get("content") or "").strip(), checked=bool(obj.get("checked")))
    if isinstance(obj, str) and obj.strip():
        return _item_from_line(obj)
    return None


def _item_from_line(line: str) -> AcItem:
    checked = "[x]" in line or "[X]" in line
    return AcItem(content=_AC_LINE_RE.sub("", line.strip()).strip(), checked=checked)


def _items_from(seq: Iterable[Any]) -> ParseResult[List[AcItem]]:
    out: List[AcItem] = []
    clean = True
    for obj in seq:
        it = _item_from(obj)
        if it is None:
            clean = False
            continue
        out.append(it)
    return ParseResult(ok=clean, value=out)


def parse_acceptance(raw: Any) -> ParseResult[List[AcItem]]:
    """Tolerant AC parser: list of items, JSON array text, or "- [ ] ..." lines.

    Blank input is a clean empty list; text in neither encoding is
    ok=False with no items. Never raises.
    """
    if raw is None:
        return ParseResult(ok=True, value=[])
    if isinstance(raw, (list, tuple)):
        return _items_from(raw)

    txt = str(raw).strip()
    if not txt:
        return ParseResult(ok=True, value=[])

    if txt.startswith("["):
        try:
            obj = json.loads(txt)
        except ValueError:
            obj = None
        if isinstance(obj, list):
            return _items_from(obj)
        if "- [" not in txt:
            return ParseResult(ok=False, value=[])

    if "- [" in txt:
        lines = [ln for ln in txt.splitlines() if ln.strip()]
        return ParseResult(ok=True, value=[_item_from_line(ln) for ln in lines])

    return ParseResult(ok=False, value=[])


def format_acceptance(items: Iterable[AcItem]) -> str:
    return "\n".join(f"- [{'x' if it.checked else ' '}] {it.content}" for it in items)


def unchecked_count(task: Task) -> int:
    res = parse_acceptance(task.get("acceptanceCriteria"))
    if not res.ok:
        warn("schedule", f"unreadable acceptanceCriteria id={task.get('id')!r}")
    return sum(1 for it in res.value if not it.checked)


def acceptance_satisfied(task: Task) -> bool:
    return unchecked_count(task) == 0


def check_status_transition(task: Task, new_status: str) -> List[Issue]:
    """The Done gate: every acceptance item must be checked first."""
    if new_status != STATUS_DONE:
        return []
    n = unchecked_count(task)
    if n == 0:
        return []
    return [
        Issue(
            code="ac_incomplete",
            message=f"cannot mark Done: {n} acceptance criteria item(s) unchecked",
            ref=str(task.get("id") or "") or None,
        )
    ]


# --- Views ----------------------------------------------------------------------


def derive_view(task: Task, today: str, *, highlight: bool = True) -> Task:
    """Copy of `task` with startDate/badge/highlight/daysLate attached.

    startDate is always due date minus duration; a stored value moves to
    plannedStart.
    """
    v = dict(task)
    stored = v.get("startDate")
    if stored:
        v["plannedStart"] = stored
    v["startDate"] = _derived_start(task)
    v["badge"] = status_badge_class(task, today)
    v["highlight"] = row_highlight(task, highlight, today)
    v["daysLate"] = days_late(task, today) if v["badge"] == BADGE_OVERDUE else 0
    return v


def derive_views(tasks: Iterable[Task], today: str, *, highlight: bool = True) -> List[Task]:
    return [derive_view(t, today, highlight=highlight) for t in tasks if isinstance(t, dict)]


__all__ = [
    "today_str",
    "add_days",
    "start_date",
    "status_badge_class",
    "row_highlight",
    "days_late",
    "parse_acceptance",
    "format_acceptance",
    "unchecked_count",
    "acceptance_satisfied",
    "check_status_transition",
    "derive_view",
    "derive_views",
]
