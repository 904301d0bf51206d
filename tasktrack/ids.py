# tasktrack/ids.py
from __future__ import annotations

import datetime as dt
import re
import threading
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .model import Task
from .util.console import warn

# Team name (as entered in the sheet) -> department code.
TEAM_TO_DEPT: Dict[str, str] = {
    "晶片": "CHIP",
    "機構": "MECH",
    "軟體": "SOFT",
    "電控": "CTRL",
    "流道": "FLOW",
    "生醫": "BIO",
    "QA": "QA",
    "管理": "MGT",
    "issue": "ISS",
    # English names used by newer sheets.
    "Chip": "CHIP",
    "Mechanism": "MECH",
    "Software": "SOFT",
    "Control": "CTRL",
    "Fluidics": "FLOW",
    "Biomedical": "BIO",
    "Management": "MGT",
    "Issue": "ISS",
}
FALLBACK_DEPT = "OTH"

STRUCTURED_ID_RE = re.compile(r"^[A-Z]{2,4}-\d{4}-\d{2}-\d{4}$")
LEGACY_NUMERIC_ID_RE = re.compile(r"^\d+$")
IMPORT_ID_RE = re.compile(r"^\d{3}_[a-zA-Z0-9_]+$")

# Looser than STRUCTURED_ID_RE so seeding also sees sequences past 9999.
_SEED_RE = re.compile(r"^([A-Z]{2,4})-(\d{4})-(\d{2})-(\d{4,})$")
_SHORT_RE = re.compile(r"^([A-Z]+)-\d{4}-(\d{2})-(\d+)$")
_IMPORT_PREFIX_RE = re.compile(r"^(\d{3})_")


def is_structured_id(task_id: object) -> bool:
    return isinstance(task_id, str) and bool(STRUCTURED_ID_RE.match(task_id))


def is_legacy_numeric_id(task_id: object) -> bool:
    return isinstance(task_id, str) and bool(LEGACY_NUMERIC_ID_RE.match(task_id))


def is_import_id(task_id: object) -> bool:
    return isinstance(task_id, str) and bool(IMPORT_ID_RE.match(task_id))


def is_known_id_shape(task_id: object) -> bool:
    return is_structured_id(task_id) or is_legacy_numeric_id(task_id) or is_import_id(task_id)


def short_task_id(task_id: object) -> str:
    """Compact display form.

    SOFT-2025-12-0003 -> #SOFT-12-0003, 016_pump_ctrl -> #016,
    long numeric ids keep their last 6 digits, anything else is cut at 10 chars.
    """
    if task_id is None or task_id == "":
        return ""
    s = str(task_id)

    m = _SHORT_RE.match(s)
    if m:
        return f"#{m.group(1)}-{m.group(2)}-{m.group(3)}"

    m = _IMPORT_PREFIX_RE.match(s)
    if m:
        return f"#{m.group(1)}"

    if LEGACY_NUMERIC_ID_RE.match(s) and len(s) > 6:
        return f"#...{s[-6:]}"

    if len(s) > 10:
        return f"#{s[:10]}..."
    return f"#{s}"


def dept_code(team: object, table: Optional[Mapping[str, str]] = None) -> str:
    tbl = TEAM_TO_DEPT if table is None else table
    key = str(team or "").strip()
    return tbl.get(key) or FALLBACK_DEPT


def year_month(issue_date: object, now: dt.datetime) -> str:
    """YYYY-MM from the first two "-" parts of issue_date, else from `now`."""
    if issue_date is not None:
        parts = str(issue_date).strip().split("-")
        if len(parts) >= 2:
            y, m = parts[0].strip(), parts[1].strip()
            if len(y) == 4 and y.isdigit() and 1 <= len(m) <= 2 and m.isdigit() and 1 <= int(m) <= 12:
                return f"{y}-{m.zfill(2)}"
    return f"{now.year:04d}-{now.month:02d}"


class IdentifierGenerator:
    """Allocates DEPT-YYYY-MM-NNNN ids with one counter per DEPT-YYYY-MM.

    Counters live for the life of the instance. Call `seed()` with the ids
    already in storage before generating after a restart. Thread-safe.
    """

    def __init__(
        self,
        team_codes: Optional[Mapping[str, str]] = None,
        clock: Optional[Callable[[], dt.datetime]] = None,
    ) -> None:
        self._table = dict(TEAM_TO_DEPT if team_codes is None else team_codes)
        self._clock = clock or dt.datetime.now
        self._counters: Dict[str, int] = {}
        self._lock = threading.Lock()

    def generate(self, team: object, issue_date: object = None) -> str:
        dept = dept_code(team, self._table)
        ym = year_month(issue_date, self._clock())
        key = f"{dept}-{ym}"
        with self._lock:
            seq = self._counters.get(key, 0) + 1
            self._counters[key] = seq
        return f"{key}-{seq:04d}"

    def seed(self, ids: Iterable[object]) -> int:
        """Raise counters to the highest sequence seen per key; returns ids used."""
        seen = 0
        with self._lock:
            for raw in ids:
                m = _SEED_RE.match(str(raw or "").strip())
                if not m:
                    continue
                key = f"{m.group(1)}-{m.group(2)}-{m.group(3)}"
                seq = int(m.group(4))
                if seq > self._counters.get(key, 0):
                    self._counters[key] = seq
                seen += 1
        return seen

    def counters(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)


def _rewrite_refs(dep: object, mapping: Mapping[str, str]) -> str:
    if isinstance(dep, (list, tuple)):
        parts = [str(p).strip() for p in dep]
    else:
        parts = [p.strip() for p in str(dep or "").split(",")]
    return ",".join(mapping.get(p, p) for p in parts if p)


def migrate_legacy_ids(tasks: Iterable[Task], generator: IdentifierGenerator) -> Tuple[List[Task], Dict[str, str]]:
    """Give canonical ids to tasks that still carry numeric or import ids.

    The previous id goes to `legacyId`; `dependency` and `parentId`
    references across the whole set follow the new ids. Returns copies.
    """
    src = [dict(t) for t in tasks if isinstance(t, dict)]
    generator.seed(str(t.get("id") or "") for t in src)

    mapping: Dict[str, str] = {}
    for t in src:
        old = str(t.get("id") or "").strip()
        if not old or is_structured_id(old) or old in mapping:
            continue
        if not (is_legacy_numeric_id(old) or is_import_id(old)):
            warn("ids", f"leaving unrecognized id shape as-is id={old!r}")
            continue
        mapping[old] = generator.generate(t.get("team"), t.get("issueDate"))

    out: List[Task] = []
    for t in src:
        old = str(t.get("id") or "").strip()
        if old in mapping:
            t["legacyId"] = old
            t["id"] = mapping[old]
        if t.get("dependency"):
            t["dependency"] = _rewrite_refs(t.get("dependency"), mapping)
        parent = str(t.get("parentId") or "").strip()
        if parent in mapping:
            t["parentId"] = mapping[parent]
        out.append(t)
    return out, mapping


__all__ = [
    "TEAM_TO_DEPT",
    "FALLBACK_DEPT",
    "IdentifierGenerator",
    "dept_code",
    "year_month",
    "is_structured_id",
    "is_legacy_numeric_id",
    "is_import_id",
    "is_known_id_shape",
    "short_task_id",
    "migrate_legacy_ids",
]
