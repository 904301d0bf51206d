# tasktrack/tools/_io.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List


def read_rows(p: Path) -> List[dict]:
    """JSON array of objects, or an object with a "tasks" array."""
    obj: Any = json.loads(p.read_text(encoding="utf-8", errors="replace"))
    if isinstance(obj, dict):
        obj = obj.get("tasks")
    if not isinstance(obj, list):
        raise ValueError(f"expected a JSON array (or {{\"tasks\": [...]}}); got {type(obj).__name__}")
    return [r for r in obj if isinstance(r, dict)]


def write_text(p: Path, txt: str) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(txt if txt.endswith("\n") else txt + "\n", encoding="utf-8", newline="\n")


def write_json(p: Path, obj: Any, *, pretty: bool = True) -> None:
    write_text(p, json.dumps(obj, ensure_ascii=False, indent=2 if pretty else None))
