# tasktrack/util/dates.py
from __future__ import annotations

import datetime as dt
import re
from typing import Optional

try:
    from zoneinfo import ZoneInfo
except Exception:  # pragma: no cover
    ZoneInfo = None  # type: ignore

_YMD_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_ymd(s: object) -> Optional[dt.date]:
    """Strict YYYY-MM-DD -> date, None for anything else."""
    if not isinstance(s, str) or not _YMD_RE.match(s):
        return None
    try:
        return dt.datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        return None


def fmt_ymd(d: dt.date) -> str:
    return d.isoformat()


def resolve_tz(name: Optional[str]) -> dt.tzinfo:
    """Resolve "UTC", "local" or an IANA zone name; unknown names fall back to UTC."""
    s = str(name or "").strip()
    if not s or s.lower() in {"utc", "z", "gmt"}:
        return dt.timezone.utc
    if s.lower() == "local":
        return dt.datetime.now().astimezone().tzinfo or dt.timezone.utc
    if ZoneInfo is not None:
        try:
            return ZoneInfo(s)
        except Exception:
            return dt.timezone.utc
    return dt.timezone.utc


def today_in(tz_name: Optional[str]) -> str:
    return dt.datetime.now(tz=resolve_tz(tz_name)).date().isoformat()


def utc_now_iso() -> str:
    return dt.datetime.now(tz=dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
