from __future__ import annotations

import datetime as dt
import unittest

from tasktrack.normalize import (
    clamp_duration,
    coerce_bool,
    normalize_date,
    normalize_priority,
    normalize_status,
    normalize_task,
    normalize_tasks,
)

NOW = "2025-01-02T03:04:05.000Z"


class TestNormalizeDateContract(unittest.TestCase):
    def test_accepted_shapes(self) -> None:
        cases = [
            ("2025-01-05", "2025-01-05"),
            ("2025/1/5", "2025-01-05"),
            ("2025.01.05", "2025-01-05"),
            ("1/5/2025", "2025-01-05"),
            ("Jan 5, 2025", "2025-01-05"),
            ("5 Jan 2025", "2025-01-05"),
            (45658, "2025-01-01"),
            ("45658", "2025-01-01"),
            (dt.date(2025, 1, 5), "2025-01-05"),
            ("2025-01-05T23:30:00-02:00", "2025-01-06"),
            ("2025-01-05T10:00:00Z", "2025-01-05"),
        ]
        for raw, want in cases:
            self.assertEqual(normalize_date(raw), want, raw)

    def test_unusable_values_are_blank(self) -> None:
        for raw in (None, "", "TBD", "tbd later", "garbage", "2025-02-30", True, float("nan"), -5):
            self.assertEqual(normalize_date(raw), "", raw)

    def test_aware_datetime_is_taken_in_utc(self) -> None:
        tz = dt.timezone(dt.timedelta(hours=8))
        self.assertEqual(normalize_date(dt.datetime(2025, 1, 6, 3, 0, tzinfo=tz)), "2025-01-05")


class TestNormalizeFieldsContract(unittest.TestCase):
    def test_status(self) -> None:
        self.assertEqual(normalize_status("DONE"), "Done")
        self.assertEqual(normalize_status("inprogress"), "InProgress")
        self.assertEqual(normalize_status("ongoing"), "InProgress")
        self.assertEqual(normalize_status("planning"), "Todo")
        self.assertEqual(normalize_status(None), "Todo")
        self.assertEqual(normalize_status("weird"), "Todo")

    def test_priority(self) -> None:
        self.assertEqual(normalize_priority("P0"), "High")
        self.assertEqual(normalize_priority("p2"), "Medium")
        self.assertEqual(normalize_priority("P4"), "Low")
        self.assertEqual(normalize_priority(1), "High")
        self.assertEqual(normalize_priority("?"), "Medium")

    def test_duration_and_bool(self) -> None:
        self.assertEqual(clamp_duration("4"), 4)
        self.assertEqual(clamp_duration(0), 1)
        self.assertEqual(clamp_duration(None), 1)
        self.assertTrue(coerce_bool("TRUE"))
        self.assertTrue(coerce_bool(1))
        self.assertFalse(coerce_bool("no"))


class TestNormalizeTaskContract(unittest.TestCase):
    def test_record_is_cleaned_without_mutating_input(self) -> None:
        raw = {
            "ID": 12,
            "date": 45658,
            "status": "pending",
            "priority": "P1",
            "dependency": ["A", " B "],
            "duration": "",
            "isCheckpoint": "TRUE",
            "sortOrder": "3",
            "dateHistory": "",
        }
        t = normalize_task(raw, now=NOW)

        self.assertEqual(t["id"], "12")
        self.assertEqual(t["date"], "2025-01-01")
        self.assertEqual(t["status"], "Pending")
        self.assertEqual(t["priority"], "High")
        self.assertEqual(t["dependency"], "A,B")
        self.assertEqual(t["duration"], 1)
        self.assertTrue(t["isCheckpoint"])
        self.assertEqual(t["sortOrder"], 3)
        self.assertEqual(t["acceptanceCriteria"], "")
        self.assertEqual(t["dateHistory"], [{"date": "2025-01-01", "changedAt": NOW, "reason": "initial plan", "version": 1}])
        self.assertEqual(raw["date"], 45658)

    def test_non_objects_are_skipped(self) -> None:
        out = normalize_tasks([{"id": "A"}, "junk", None, 3], now=NOW)
        self.assertEqual([t["id"] for t in out], ["A"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
