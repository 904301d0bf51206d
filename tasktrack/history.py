# tasktrack/history.py
"""Append-only due-date history per task.

Storage format is a JSON array of {date, changedAt, reason, version}.
Older rows may carry a legacy text log appended after the array
("[...];2024-01-01 -> 2024-02-01"); everything from "];" on is dropped.
"""

from __future__ import annotations

import json
from typing import Any, List, Optional, Sequence

from .model import HistoryEntry, ParseResult, REASON_DEFAULT, REASON_INITIAL
from .util.console import warn
from .util.dates import utc_now_iso


def _as_int(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    try:
        return int(str(v).strip())
    except ValueError:
        return None


def _entry_from(obj: Any, position: int) -> Optional[HistoryEntry]:
    if isinstance(obj, HistoryEntry):
        return obj
    if not isinstance(obj, dict):
        return None
    date = str(obj.get("date") or "").strip()
    if not date:
        return None
    version = _as_int(obj.get("version"))
    return HistoryEntry(
        date=date,
        changed_at=str(obj.get("changedAt") or obj.get("changed_at") or ""),
        reason=str(obj.get("reason") or ""),
        version=version if version is not None else position + 1,
    )


def _entries_from(items: Sequence[Any]) -> ParseResult[List[HistoryEntry]]:
    out: List[HistoryEntry] = []
    clean = True
    for obj in items:
        e = _entry_from(obj, len(out))
        if e is None:
            clean = False
            continue
        out.append(e)
    return ParseResult(ok=clean, value=out)


def parse_history(raw: Any) -> ParseResult[List[HistoryEntry]]:
    """Tolerant parser for a stored dateHistory value. Never raises.

    None/blank -> ok with an empty list. Unusable input -> ok=False, [].
    Entries that are not objects or have no date are dropped (ok=False).
    """
    if raw is None:
        return ParseResult(ok=True, value=[])
    if isinstance(raw, (list, tuple)):
        return _entries_from(raw)

    txt = str(raw).strip()
    if not txt:
        return ParseResult(ok=True, value=[])
    if not txt.startswith("["):
        return ParseResult(ok=False, value=[])

    cut = txt.find("];")
    if cut != -1:
        txt = txt[: cut + 1]

    try:
        obj = json.loads(txt)
    except ValueError:
        return ParseResult(ok=False, value=[])
    if not isinstance(obj, list):
        return ParseResult(ok=False, value=[])

    res = _entries_from(obj)
    if cut != -1:
        return ParseResult(ok=False, value=res.value)
    return res


def append_if_changed(
    history: Sequence[HistoryEntry],
    old_date: Optional[str],
    new_date: str,
    reason: Optional[str],
    is_new_task: bool,
    *,
    now: Optional[str] = None,
) -> List[HistoryEntry]:
    """Return history with one more entry when the due date moved (or the task is new).

    The input sequence is never modified.
    """
    out = list(history)
    if not is_new_task and old_date == new_date:
        return out

    if is_new_task:
        why = REASON_INITIAL
    else:
        why = (reason or "").strip() or REASON_DEFAULT

    out.append(
        HistoryEntry(
            date=new_date,
            changed_at=now or utc_now_iso(),
            reason=why,
            version=len(out) + 1,
        )
    )
    return out


def ensure_seeded(
    history: Sequence[HistoryEntry],
    current_date: Optional[str],
    *,
    now: Optional[str] = None,
) -> List[HistoryEntry]:
    out = list(history)
    if not out and current_date:
        out.append(HistoryEntry(date=current_date, changed_at=now or utc_now_iso(), reason=REASON_INITIAL, version=1))
    return out


def load_history(
    raw: Any,
    current_date: Optional[str],
    *,
    now: Optional[str] = None,
    task_id: Optional[str] = None,
) -> List[HistoryEntry]:
    """parse_history + ensure_seeded; logs when the stored value had to be recovered."""
    res = parse_history(raw)
    if not res.ok:
        warn("history", f"recovered dateHistory id={task_id!r} kept={len(res.value)} raw={str(raw)[:80]!r}")
    return ensure_seeded(res.value, current_date, now=now)


def dump_history(history: Sequence[HistoryEntry]) -> str:
    return json.dumps([h.to_dict() for h in history], ensure_ascii=False)


def is_monotonic(history: Sequence[HistoryEntry]) -> bool:
    return all(h.version == i + 1 for i, h in enumerate(history))


__all__ = [
    "parse_history",
    "append_if_changed",
    "ensure_seeded",
    "load_history",
    "dump_history",
    "is_monotonic",
]
