# tasktrack/normalize.py
from __future__ import annotations

import datetime as dt
import re
from typing import Any, Dict, Iterable, List, Optional

from .history import load_history
from .model import PRIORITIES, STATUSES, STATUS_IN_PROGRESS, STATUS_PENDING, STATUS_TODO, Task
from .util.console import warn
from .util.dates import parse_ymd

# Spreadsheet day 0. Serial 1 is 1899-12-31, serial 60 the phantom 1900-02-29.
_SERIAL_EPOCH = dt.date(1899, 12, 30)
_SERIAL_MAX = 2958465  # 9999-12-31

_ISO_TIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}")
_YMD_LOOSE_RE = re.compile(r"^(\d{4})[/.\-](\d{1,2})[/.\-](\d{1,2})(?:[ T].*)?$")
_MDY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})(?:[ T].*)?$")
_SERIAL_STR_RE = re.compile(r"^\d{5}(?:\.\d+)?$")
_TEXT_FORMATS = ("%b %d, %Y", "%B %d, %Y", "%d %b %Y", "%d %B %Y")

# Legacy spreadsheet status words (lower-cased).
_STATUS_ALIASES = {
    "": STATUS_TODO,
    "pending": STATUS_PENDING,
    "ongoing": STATUS_IN_PROGRESS,
    "planning": STATUS_TODO,
}
_STATUS_BY_LOWER = {s.lower(): s for s in STATUSES}

_BOOL_TRUE = {"true", "1", "yes", "on"}


def _from_serial(n: float) -> str:
    if n < 0 or n > _SERIAL_MAX:
        return ""
    return (_SERIAL_EPOCH + dt.timedelta(days=int(n))).isoformat()


def _safe_date(y: int, m: int, d: int) -> str:
    try:
        return dt.date(y, m, d).isoformat()
    except ValueError:
        return ""


def _from_iso_time(s: str) -> str:
    txt = s.replace(" ", "T", 1)
    if txt.endswith("Z") or txt.endswith("z"):
        txt = txt[:-1] + "+00:00"
    try:
        ts = dt.datetime.fromisoformat(txt)
    except ValueError:
        # Fractions longer than fromisoformat accepts on older interpreters.
        m = re.match(r"^(\d{4}-\d{2}-\d{2})T", txt)
        d = parse_ymd(m.group(1)) if m else None
        return d.isoformat() if d else ""
    if ts.tzinfo is not None:
        ts = ts.astimezone(dt.timezone.utc)
    return ts.date().isoformat()


def normalize_date(value: Any) -> str:
    """Coerce a heterogeneous date input into YYYY-MM-DD, or "" when unusable.

    Accepted inputs:
      - "YYYY-MM-DD" (validated)
      - date / datetime objects
      - spreadsheet serial numbers (int/float, or a 5-digit numeric string)
      - ISO strings with a time part; aware values are taken in UTC
      - "YYYY/M/D", "YYYY.M.D", "M/D/YYYY", "Jan 5, 2025", "5 Jan 2025"

    "TBD..." placeholders and blanks give "". Never raises.
    """
    if value is None or isinstance(value, bool):
        return ""

    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt.timezone.utc)
        return value.date().isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()

    if isinstance(value, (int, float)):
        if value != value:  # NaN
            return ""
        return _from_serial(float(value))

    s = str(value).strip()
    if not s or s.upper().startswith("TBD"):
        return ""

    d = parse_ymd(s)
    if d is not None:
        return d.isoformat()

    if _ISO_TIME_RE.match(s):
        return _from_iso_time(s)

    m = _YMD_LOOSE_RE.match(s)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _MDY_RE.match(s)
    if m:
        return _safe_date(int(m.group(3)), int(m.group(1)), int(m.group(2)))

    if _SERIAL_STR_RE.match(s):
        return _from_serial(float(s))

    for fmt in _TEXT_FORMATS:
        try:
            return dt.datetime.strptime(s, fmt).date().isoformat()
        except ValueError:
            continue

    warn("normalize", f"unparseable date value={value!r}")
    return ""


def normalize_status(value: Any) -> str:
    s = str(value or "").strip()
    canon = _STATUS_BY_LOWER.get(s.lower())
    if canon:
        return canon
    alias = _STATUS_ALIASES.get(s.lower())
    if alias:
        return alias
    warn("normalize", f"unknown status={value!r}; using {STATUS_TODO}")
    return STATUS_TODO


def normalize_priority(value: Any) -> str:
    """Map P0..P4, words and small integers onto Low/Medium/High (default Medium)."""
    s = str(value or "").strip().upper()
    if s in ("P0", "P1", "HIGH"):
        return "High"
    if s in ("P2", "MEDIUM", "MED"):
        return "Medium"
    if s in ("P3", "P4", "LOW"):
        return "Low"
    try:
        n = int(float(s))
    except ValueError:
        return "Medium"
    if n <= 1:
        return "High"
    if n == 2:
        return "Medium"
    return "Low"


def clamp_duration(value: Any) -> int:
    """Duration in days, always >= 1."""
    if isinstance(value, bool):
        return 1
    try:
        n = int(float(value))
    except (TypeError, ValueError):
        return 1
    return n if n >= 1 else 1


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value or "").strip().lower() in _BOOL_TRUE


def _dependency_text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(x).strip() for x in value if str(x).strip())
    return str(value or "").strip()


def normalize_task(raw: Dict[str, Any], *, now: Optional[str] = None) -> Task:
    """Return a display-ready copy of `raw` (the input is left untouched)."""
    t: Task = dict(raw)

    tid = raw.get("id")
    if tid is None or str(tid).strip() == "":
        tid = raw.get("ID")
    t["id"] = "" if tid is None else str(tid).strip()

    due = normalize_date(raw.get("date"))
    t["date"] = due
    t["issueDate"] = normalize_date(raw.get("issueDate"))
    t["startDate"] = normalize_date(raw.get("startDate"))
    t["duration"] = clamp_duration(raw.get("duration"))
    t["status"] = normalize_status(raw.get("status"))
    pr = raw.get("priority")
    t["priority"] = pr if pr in PRIORITIES else normalize_priority(pr)
    t["dependency"] = _dependency_text(raw.get("dependency"))
    t["isCheckpoint"] = coerce_bool(raw.get("isCheckpoint"))
    t["issuePool"] = coerce_bool(raw.get("issuePool"))
    t["notes"] = str(raw.get("notes") or "")
    t["parentId"] = str(raw.get("parentId") or "").strip()

    history = load_history(raw.get("dateHistory"), due, now=now, task_id=t["id"])
    t["dateHistory"] = [h.to_dict() for h in history]

    if "acceptanceCriteria" not in t or t["acceptanceCriteria"] is None:
        t["acceptanceCriteria"] = ""

    try:
        t["sortOrder"] = int(raw.get("sortOrder") or 0)
    except (TypeError, ValueError):
        t["sortOrder"] = 0

    return t


def normalize_tasks(raws: Iterable[Any], *, now: Optional[str] = None) -> List[Task]:
    out: List[Task] = []
    for r in raws or []:
        if not isinstance(r, dict):
            warn("normalize", f"skipping non-object task record type={type(r).__name__}")
            continue
        out.append(normalize_task(r, now=now))
    return out
