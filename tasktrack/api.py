"""tasktrack.api

Stable *library* entrypoint for tasktrack.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Union

from tasktrack.config import EngineConfig, config_from_env
from tasktrack.deps import has_cycle, parse_dependencies, tasks_in_cycles, validate_references
from tasktrack.history import append_if_changed, dump_history, parse_history
from tasktrack.ids import IdentifierGenerator, migrate_legacy_ids, short_task_id
from tasktrack.model import DiffReport, HistoryEntry, Issue, TreeIndex
from tasktrack.normalize import normalize_date, normalize_task, normalize_tasks
from tasktrack.schedule import (
    check_status_transition,
    derive_views,
    parse_acceptance,
    row_highlight,
    start_date,
    status_badge_class,
    today_str,
)
from tasktrack.snapshot import diff_snapshots, export_snapshot, is_snapshot, render_markdown
from tasktrack.store import SaveResult, SerializedStore, TaskStore
from tasktrack.tree import build_tree, move_task, reorder, would_create_cycle
from tasktrack.validate import validate_save, validate_task

JsonPath = Union[str, Path]


def load_tasks_from_json(path: JsonPath) -> List[dict]:
    """Read a JSON task list ({"tasks": [...]} or a bare array) and normalize it."""
    p = Path(path)
    obj: Any = json.loads(p.read_text(encoding="utf-8"))
    if isinstance(obj, dict):
        obj = obj.get("tasks")
    if not isinstance(obj, list):
        raise ValueError(f"{p}: expected a JSON array of tasks or an object with a 'tasks' array")
    return normalize_tasks(obj)


# --- Public API exports -----------------------------------------------------
_PUBLIC_EXPORTS = (
    "DiffReport",
    "EngineConfig",
    "HistoryEntry",
    "IdentifierGenerator",
    "Issue",
    "SaveResult",
    "SerializedStore",
    "TaskStore",
    "TreeIndex",
    "append_if_changed",
    "build_tree",
    "check_status_transition",
    "config_from_env",
    "derive_views",
    "diff_snapshots",
    "dump_history",
    "export_snapshot",
    "has_cycle",
    "is_snapshot",
    "load_tasks_from_json",
    "migrate_legacy_ids",
    "move_task",
    "normalize_date",
    "normalize_task",
    "normalize_tasks",
    "parse_acceptance",
    "parse_dependencies",
    "parse_history",
    "render_markdown",
    "reorder",
    "row_highlight",
    "short_task_id",
    "start_date",
    "status_badge_class",
    "tasks_in_cycles",
    "today_str",
    "validate_references",
    "validate_save",
    "validate_task",
    "would_create_cycle",
)

__all__ = [n for n in _PUBLIC_EXPORTS if n in globals()]
# --- /Public API exports ----------------------------------------------------
