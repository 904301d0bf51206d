# tasktrack/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

DEFAULT_TZ = "Asia/Taipei"


@dataclass(frozen=True)
class EngineConfig:
    """Limits and defaults shared by the validators and derivers.

    Library functions take these as keyword overrides; the dataclass only
    collects the defaults in one place so hosts can build one from env.
    """

    max_dependencies: int = 10
    max_cycle_steps: int = 100
    max_title_len: int = 100
    max_duration_days: int = 365
    date_range_years: int = 5
    tz: str = DEFAULT_TZ


DEFAULT_CONFIG = EngineConfig()


def config_from_env(env: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """Build a config from TASKTRACK_* variables (unset/invalid values keep defaults)."""
    src = os.environ if env is None else env
    cfg = DEFAULT_CONFIG

    tz = (src.get("TASKTRACK_TZ") or "").strip()
    if tz:
        cfg = replace(cfg, tz=tz)

    for key, field in (
        ("TASKTRACK_MAX_DEPENDENCIES", "max_dependencies"),
        ("TASKTRACK_MAX_CYCLE_STEPS", "max_cycle_steps"),
    ):
        raw = (src.get(key) or "").strip()
        if not raw:
            continue
        try:
            v = int(raw)
        except ValueError:
            continue
        if v > 0:
            cfg = replace(cfg, **{field: v})

    return cfg
