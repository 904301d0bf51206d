# tasktrack/snapshot.py
"""Weekly snapshot comparison.

Snapshots are flat rows, either our own task dicts or the exported form
(ID / Status / DueDate columns, `_SnapshotDate` marker). Both shapes are
read through the same tolerant getters so an old export can be diffed
against the live task list.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

from .model import (
    FINISHED_STATUSES,
    DateChange,
    DiffReport,
    StatusChange,
    STATUS_TODO,
    Task,
)
from .normalize import normalize_date
from .util.dates import parse_ymd

SNAPSHOT_MARKER = "_SnapshotDate"
UNKNOWN_SNAPSHOT_DATE = "unknown"


def _get(task: Task, *keys: str) -> Any:
    for k in keys:
        v = task.get(k)
        if v is not None and v != "":
            return v
    return None


def _sid(task: Task) -> str:
    v = _get(task, "id", "ID")
    return "" if v is None else str(v).strip()


def _status(task: Task) -> str:
    v = _get(task, "status", "Status")
    return str(v).strip() if v is not None else STATUS_TODO


def _due(task: Task) -> str:
    return normalize_date(_get(task, "date", "DueDate"))


def _title(task: Task) -> str:
    return str(_get(task, "task", "Task") or "")


def _owner(task: Task) -> str:
    return str(_get(task, "owner", "Owner") or "")


def _rows(seq: Optional[Iterable[Any]]) -> List[Task]:
    return [t for t in seq or [] if isinstance(t, dict)]


def _by_id(rows: Sequence[Task]) -> Dict[str, Task]:
    # First record wins on duplicate ids, as in dependency_index and build_tree.
    out: Dict[str, Task] = {}
    for t in rows:
        out.setdefault(_sid(t), t)
    return out


def snapshot_date_of(rows: Sequence[Any]) -> str:
    first = rows[0] if rows else None
    if isinstance(first, dict):
        v = first.get(SNAPSHOT_MARKER)
        if v not in (None, ""):
            return normalize_date(v) or str(v)
    return UNKNOWN_SNAPSHOT_DATE


def is_snapshot(rows: Any) -> bool:
    """True when the first row carries the export marker column."""
    if not isinstance(rows, (list, tuple)) or not rows:
        return False
    first = rows[0]
    return isinstance(first, dict) and SNAPSHOT_MARKER in first


def diff_snapshots(old: Iterable[Any], new: Iterable[Any], *, report_date: str) -> DiffReport:
    """Classify every task of two snapshots, matched by id.

    completed wins over status_changed; date_changed is independent of both.
    delayed looks only at the new snapshot.
    """
    old_rows = _rows(old)
    new_rows = _rows(new)
    old_map = _by_id(old_rows)
    new_map = _by_id(new_rows)

    added = [t for sid, t in new_map.items() if sid not in old_map]
    removed = [t for sid, t in old_map.items() if sid not in new_map]

    completed: List[Task] = []
    status_changed: List[StatusChange] = []
    date_changed: List[DateChange] = []

    for sid, nt in new_map.items():
        ot = old_map.get(sid)
        if ot is None:
            continue
        os_, ns = _status(ot), _status(nt)
        if os_ not in FINISHED_STATUSES and ns in FINISHED_STATUSES:
            completed.append(nt)
        elif os_ != ns:
            status_changed.append(StatusChange(task=nt, old_status=os_, new_status=ns))

        od, nd = _due(ot), _due(nt)
        if od != nd:
            date_changed.append(DateChange(task=nt, old_date=od, new_date=nd))

    delayed = [
        t
        for t in new_rows
        if _due(t) and _due(t) < report_date and _status(t) not in FINISHED_STATUSES
    ]

    return DiffReport(
        snapshot_date=snapshot_date_of(old_rows),
        report_date=report_date,
        added=tuple(added),
        removed=tuple(removed),
        completed=tuple(completed),
        status_changed=tuple(status_changed),
        date_changed=tuple(date_changed),
        delayed=tuple(delayed),
    )


# --- Markdown --------------------------------------------------------------------


def _cell(v: Any) -> str:
    s = "" if v is None else str(v)
    return s.replace("\r", " ").replace("\n", " ").replace("|", "\\|")


def _row(*cells: Any) -> str:
    return "| " + " | ".join(_cell(c) for c in cells) + " |"


def _table(lines: List[str], title: str, header: Sequence[str], rows: List[Sequence[Any]]) -> None:
    if not rows:
        return
    lines.append(f"## {title}")
    lines.append("| " + " | ".join(header) + " |")
    lines.append("|" + "---|" * len(header))
    for r in rows:
        lines.append(_row(*r))
    lines.append("")


def _late_by(due: str, report_date: str) -> int:
    d, r = parse_ymd(due), parse_ymd(report_date)
    if d is None or r is None:
        return 0
    return (r - d).days


def render_markdown(report: DiffReport) -> str:
    """Weekly report as Markdown. Same report in, same text out."""
    lines: List[str] = []
    lines.append("# Weekly Task Report")
    lines.append(f"> Snapshot date: {report.snapshot_date} | Report date: {report.report_date}")
    lines.append("")

    c = report.counts()
    lines.append("## Summary")
    lines.append("| Category | Count |")
    lines.append("|---|---|")
    lines.append(_row("Added", c["added"]))
    lines.append(_row("Removed", c["removed"]))
    lines.append(_row("Completed", c["completed"]))
    lines.append(_row("Date changed", c["dateChanged"]))
    lines.append(_row("Status changed", c["statusChanged"]))
    lines.append(_row("Delayed", c["delayed"]))
    lines.append("")

    _table(
        lines,
        "Added this week",
        ("ID", "Task", "Owner", "Due Date"),
        [(_sid(t), _title(t), _owner(t), _due(t)) for t in report.added],
    )
    _table(
        lines,
        "Completed this week",
        ("ID", "Task", "Owner"),
        [(_sid(t), _title(t), _owner(t)) for t in report.completed],
    )
    _table(
        lines,
        "Date changes",
        ("ID", "Task", "Old Date", "New Date"),
        [(_sid(d.task), _title(d.task), d.old_date, d.new_date) for d in report.date_changed],
    )
    _table(
        lines,
        "Status changes",
        ("ID", "Task", "Old Status", "New Status"),
        [(_sid(s.task), _title(s.task), s.old_status, s.new_status) for s in report.status_changed],
    )
    _table(
        lines,
        "Delayed",
        ("ID", "Task", "Owner", "Due Date", "Days Late"),
        [
            (_sid(t), _title(t), _owner(t), _due(t), _late_by(_due(t), report.report_date))
            for t in report.delayed
        ],
    )
    _table(
        lines,
        "Removed",
        ("ID", "Task"),
        [(_sid(t), _title(t)) for t in report.removed],
    )

    return "\n".join(lines)


# --- Export ----------------------------------------------------------------------


def _flag(v: Any) -> str:
    return "TRUE" if v is True or str(v).strip().lower() in {"true", "1", "yes"} else "FALSE"


def export_snapshot(tasks: Iterable[Any], snapshot_date: str) -> List[Dict[str, Any]]:
    """Flat export rows, each stamped with the snapshot marker."""
    out: List[Dict[str, Any]] = []
    for t in _rows(tasks):
        out.append(
            {
                "ID": _sid(t),
                "Team": str(t.get("team") or ""),
                "Project": str(t.get("project") or ""),
                "Task": str(t.get("task") or ""),
                "Owner": str(t.get("owner") or ""),
                "StartDate": str(t.get("startDate") or ""),
                "DueDate": str(t.get("date") or ""),
                "Duration": t.get("duration") or 0,
                "Status": str(t.get("status") or STATUS_TODO),
                "Priority": str(t.get("priority") or "Medium"),
                "Dependency": str(t.get("dependency") or ""),
                "Notes": str(t.get("notes") or ""),
                "IsCheckpoint": _flag(t.get("isCheckpoint")),
                "IssuePool": _flag(t.get("issuePool")),
                SNAPSHOT_MARKER: snapshot_date,
            }
        )
    return out


__all__ = [
    "SNAPSHOT_MARKER",
    "diff_snapshots",
    "render_markdown",
    "export_snapshot",
    "is_snapshot",
    "snapshot_date_of",
]
