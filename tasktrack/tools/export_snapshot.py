#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from tasktrack.schedule import today_str
from tasktrack.snapshot import export_snapshot
from tasktrack.tools._io import read_rows, write_json
from tasktrack.util.dates import parse_ymd


def _die(msg: str, rc: int = 2) -> int:
    print(f"[tasktrack-export-snapshot] ERROR: {msg}", file=sys.stderr)
    return rc


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="tasktrack-export-snapshot", description="Write the task list as dated snapshot rows.")
    ap.add_argument("--in", dest="in_json", required=True, help="Task list JSON")
    ap.add_argument("--out", required=True, help="Output snapshot JSON path")
    ap.add_argument("--date", default=None, help="Snapshot date YYYY-MM-DD (default: today in TASKTRACK_TZ)")
    ns = ap.parse_args(argv)

    snap_date = ns.date or today_str()
    if parse_ymd(snap_date) is None:
        return _die(f"--date must be YYYY-MM-DD; got {snap_date!r}")

    p = Path(ns.in_json)
    if not p.exists():
        return _die(f"Missing JSON file: {p}")
    try:
        tasks = read_rows(p)
    except Exception as e:
        return _die(f"Failed to read task JSON: {p} ({e})")
    if not tasks:
        return _die("No tasks to export", rc=3)

    out_path = Path(ns.out)
    write_json(out_path, export_snapshot(tasks, snap_date))
    print(f"[tasktrack-export-snapshot] OK: wrote {out_path} ({len(tasks)} rows)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
