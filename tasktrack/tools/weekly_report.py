#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from tasktrack.schedule import today_str
from tasktrack.snapshot import diff_snapshots, is_snapshot, render_markdown
from tasktrack.tools._io import read_rows, write_json, write_text
from tasktrack.util.dates import parse_ymd


def _die(msg: str, rc: int = 2) -> int:
    print(f"[tasktrack-weekly-report] ERROR: {msg}", file=sys.stderr)
    return rc


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="tasktrack-weekly-report", description="Compare a saved snapshot with the current task list.")
    ap.add_argument("--old", required=True, help="Older snapshot JSON (exported rows or task list)")
    ap.add_argument("--new", required=True, help="Current task list JSON")
    ap.add_argument("--today", default=None, help="Report date YYYY-MM-DD (default: today in TASKTRACK_TZ)")
    ap.add_argument("--out", required=True, help="Output Markdown path")
    ap.add_argument("--json-out", dest="json_out", default=None, help="Optional JSON diff output path")
    ns = ap.parse_args(argv)

    report_date = ns.today or today_str()
    if parse_ymd(report_date) is None:
        return _die(f"--today must be YYYY-MM-DD; got {report_date!r}")

    rows = {}
    for label, raw in (("old", ns.old), ("new", ns.new)):
        p = Path(raw)
        if not p.exists():
            return _die(f"Missing {label} file: {p}")
        try:
            rows[label] = read_rows(p)
        except Exception as e:
            return _die(f"Failed to read {label} JSON: {p} ({e})")

    if not is_snapshot(rows["old"]):
        print("[tasktrack-weekly-report] WARN: old file has no _SnapshotDate column; snapshot date will be 'unknown'", file=sys.stderr)

    report = diff_snapshots(rows["old"], rows["new"], report_date=report_date)

    out_path = Path(ns.out)
    write_text(out_path, render_markdown(report))
    if ns.json_out:
        write_json(Path(ns.json_out), report.to_dict())

    c = report.counts()
    print(
        f"[tasktrack-weekly-report] OK: wrote {out_path} "
        f"(added={c['added']} completed={c['completed']} delayed={c['delayed']} removed={c['removed']})"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
