#!/usr/bin/env python3
"""Audit a stored task list the way a save would.

Exit codes: 0 clean (warnings allowed), 1 blocking issues found, 2 usage/input error.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Tuple

from tasktrack.config import config_from_env
from tasktrack.deps import tasks_in_cycles
from tasktrack.model import Issue
from tasktrack.schedule import today_str
from tasktrack.tools._io import read_rows, write_json
from tasktrack.tree import parent_cycles
from tasktrack.util.dates import parse_ymd
from tasktrack.validate import blocking, validate_save


def _die(msg: str, rc: int = 2) -> int:
    print(f"[tasktrack-check-tasks] ERROR: {msg}", file=sys.stderr)
    return rc


def check_rows(rows: List[dict], today: str) -> List[Tuple[str, Issue]]:
    cfg = config_from_env()
    found: List[Tuple[str, Issue]] = []

    seen: Dict[str, int] = {}
    for t in rows:
        tid = str(t.get("id") or t.get("ID") or "").strip()
        seen[tid] = seen.get(tid, 0) + 1
    for tid, n in seen.items():
        if tid and n > 1:
            found.append((tid, Issue("duplicate_id", f"id used by {n} tasks", ref=tid)))

    for t in rows:
        tid = str(t.get("id") or t.get("ID") or "").strip()
        issues = validate_save(
            t,
            rows,
            today=today,
            max_dependencies=cfg.max_dependencies,
            max_cycle_steps=cfg.max_cycle_steps,
            max_title_len=cfg.max_title_len,
            max_duration_days=cfg.max_duration_days,
            date_range_years=cfg.date_range_years,
        )
        # Cycles are reported once per task below, from the stored edges.
        found.extend((tid, i) for i in issues if i.code != "dependency_cycle")

    for tid in tasks_in_cycles(rows, max_steps=cfg.max_cycle_steps):
        found.append((tid, Issue("dependency_cycle", f"{tid} depends on itself through its dependencies", ref=tid)))

    for tid in parent_cycles(rows):
        found.append((tid, Issue("tree_cycle", f"{tid} is its own ancestor through parentId", ref=tid)))

    return found


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="tasktrack-check-tasks", description="Validate every task in a task list JSON.")
    ap.add_argument("--in", dest="in_json", required=True, help="Task list JSON")
    ap.add_argument("--today", default=None, help="Reference date YYYY-MM-DD (default: today in TASKTRACK_TZ)")
    ap.add_argument("--json-out", dest="json_out", default=None, help="Optional JSON issue list output path")
    ns = ap.parse_args(argv)

    today = ns.today or today_str()
    if parse_ymd(today) is None:
        return _die(f"--today must be YYYY-MM-DD; got {today!r}")

    p = Path(ns.in_json)
    if not p.exists():
        return _die(f"Missing JSON file: {p}")
    try:
        rows = read_rows(p)
    except Exception as e:
        return _die(f"Failed to read task JSON: {p} ({e})")

    found = check_rows(rows, today)
    for tid, issue in found:
        level = "ERROR" if issue.blocking else "WARN"
        print(f"{level} {tid or '<no id>'}: {issue.code}: {issue.message}")

    if ns.json_out:
        write_json(Path(ns.json_out), [dict(issue.to_dict(), task=tid) for tid, issue in found])

    n_block = len(blocking(i for _, i in found))
    print(f"[tasktrack-check-tasks] {len(rows)} task(s), {n_block} blocking, {len(found) - n_block} warning(s)")
    return 1 if n_block else 0


if __name__ == "__main__":
    raise SystemExit(main())
