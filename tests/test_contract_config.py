from __future__ import annotations

import io
import os
import unittest
from contextlib import redirect_stderr
from unittest import mock

from tasktrack.config import DEFAULT_CONFIG, config_from_env
from tasktrack.util.console import warn
from tasktrack.util.dates import resolve_tz, utc_now_iso


class TestConfigContract(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = config_from_env({})
        self.assertEqual(cfg, DEFAULT_CONFIG)
        self.assertEqual(cfg.tz, "Asia/Taipei")
        self.assertEqual(cfg.max_dependencies, 10)
        self.assertEqual(cfg.max_cycle_steps, 100)

    def test_env_overrides_and_bad_values(self) -> None:
        cfg = config_from_env(
            {
                "TASKTRACK_TZ": "UTC",
                "TASKTRACK_MAX_DEPENDENCIES": "3",
                "TASKTRACK_MAX_CYCLE_STEPS": "lots",
            }
        )
        self.assertEqual(cfg.tz, "UTC")
        self.assertEqual(cfg.max_dependencies, 3)
        self.assertEqual(cfg.max_cycle_steps, 100)
        self.assertEqual(config_from_env({"TASKTRACK_MAX_DEPENDENCIES": "-1"}).max_dependencies, 10)

    def test_unknown_zone_falls_back_to_utc(self) -> None:
        import datetime as dt

        self.assertIs(resolve_tz("Not/AZone"), dt.timezone.utc)
        self.assertIs(resolve_tz(""), dt.timezone.utc)

    def test_utc_now_iso_shape(self) -> None:
        s = utc_now_iso()
        self.assertRegex(s, r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class TestObservabilityContract(unittest.TestCase):
    def test_warn_is_silent_by_default(self) -> None:
        buf = io.StringIO()
        with mock.patch.dict(os.environ, {"TASKTRACK_OBS_LOG": ""}), redirect_stderr(buf):
            warn("normalize", "hello")
        self.assertEqual(buf.getvalue(), "")

    def test_warn_prefix_when_enabled(self) -> None:
        buf = io.StringIO()
        with mock.patch.dict(os.environ, {"TASKTRACK_OBS_LOG": "1"}), redirect_stderr(buf):
            warn("normalize", "hello")
        self.assertEqual(buf.getvalue(), "[tasktrack.normalize] WARN: hello\n")


if __name__ == "__main__":
    unittest.main(verbosity=2)
