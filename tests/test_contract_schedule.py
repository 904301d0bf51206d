from __future__ import annotations

import json
import unittest

from tasktrack.schedule import (
    acceptance_satisfied,
    add_days,
    check_status_transition,
    days_late,
    derive_view,
    format_acceptance,
    parse_acceptance,
    row_highlight,
    start_date,
    status_badge_class,
    today_str,
)
from tasktrack.util.dates import parse_ymd

TODAY = "2025-01-15"


def _t(status: str, date: str, duration: int = 0) -> dict:
    return {"id": "T", "status": status, "date": date, "duration": duration}


class TestStartDateContract(unittest.TestCase):
    def test_start_date_round_trip(self) -> None:
        for end, n in (("2025-01-10", 5), ("2024-03-01", 1), ("2025-12-31", 365), ("2025-06-01", 0)):
            s = start_date(end, n)
            self.assertEqual(add_days(s, n), end)

    def test_start_date_crosses_leap_day(self) -> None:
        self.assertEqual(start_date("2024-03-01", 1), "2024-02-29")

    def test_missing_or_bad_inputs(self) -> None:
        self.assertEqual(start_date("", 3), "")
        self.assertEqual(start_date("2025-01-10", None), "")
        self.assertEqual(start_date("2025-01-10", -2), "")
        self.assertEqual(start_date("01/10/2025", 2), "")
        self.assertEqual(start_date("2025-01-10", "3"), "2025-01-07")

    def test_today_str_shape(self) -> None:
        self.assertIsNotNone(parse_ymd(today_str("UTC")))


class TestStatusBadgeContract(unittest.TestCase):
    def test_closed_and_pending_never_overdue(self) -> None:
        self.assertEqual(status_badge_class(_t("Closed", "2020-01-01"), TODAY), "not_executing")
        self.assertEqual(status_badge_class(_t("Pending", "2020-01-01"), TODAY), "on_hold")

    def test_past_due_is_overdue_unless_done(self) -> None:
        self.assertEqual(status_badge_class(_t("Todo", "2025-01-14"), TODAY), "overdue")
        self.assertEqual(status_badge_class(_t("InProgress", "2025-01-01"), TODAY), "overdue")
        self.assertEqual(status_badge_class(_t("Done", "2025-01-01"), TODAY), "done")

    def test_due_today_is_not_overdue(self) -> None:
        self.assertEqual(status_badge_class(_t("InProgress", TODAY), TODAY), "in_progress")

    def test_should_start(self) -> None:
        self.assertEqual(status_badge_class(_t("Todo", "2025-01-20", 10), TODAY), "should_start")
        self.assertEqual(status_badge_class(_t("Todo", "2025-01-20", 5), TODAY), "should_start")
        self.assertEqual(status_badge_class(_t("Todo", "2025-01-20", 4), TODAY), "todo")

    def test_plain_status_labels(self) -> None:
        self.assertEqual(status_badge_class(_t("Delayed", "2025-02-01"), TODAY), "delayed")
        self.assertEqual(status_badge_class(_t("Whatever", "2025-02-01"), TODAY), "other")


class TestRowHighlightContract(unittest.TestCase):
    def test_disabled(self) -> None:
        self.assertEqual(row_highlight(_t("Todo", "2020-01-01"), False, TODAY), "")

    def test_red_for_delayed_flag_or_past_due(self) -> None:
        self.assertEqual(row_highlight(_t("Delayed", "2025-12-01"), True, TODAY), "overdue")
        self.assertEqual(row_highlight(_t("InProgress", "2025-01-01"), True, TODAY), "overdue")

    def test_exempt_statuses(self) -> None:
        for st in ("Done", "Closed", "Pending"):
            self.assertEqual(row_highlight(_t(st, "2020-01-01"), True, TODAY), "", st)

    def test_yellow_when_started_window_open(self) -> None:
        self.assertEqual(row_highlight(_t("Todo", "2025-01-20", 7), True, TODAY), "should_start")
        self.assertEqual(row_highlight(_t("Todo", "2025-01-20", 2), True, TODAY), "")
        self.assertEqual(row_highlight(_t("InProgress", "2025-01-20", 7), True, TODAY), "")

    def test_days_late(self) -> None:
        self.assertEqual(days_late(_t("Todo", "2025-01-10"), TODAY), 5)
        self.assertEqual(days_late(_t("Todo", "2025-01-20"), TODAY), 0)
        self.assertEqual(days_late(_t("Todo", ""), TODAY), 0)


class TestAcceptanceCriteriaContract(unittest.TestCase):
    def test_json_array(self) -> None:
        raw = json.dumps([{"content": "drawing reviewed", "checked": True}, {"content": "bench test", "checked": False}])
        res = parse_acceptance(raw)
        self.assertTrue(res.ok)
        self.assertEqual([(i.content, i.checked) for i in res.value], [("drawing reviewed", True), ("bench test", False)])

    def test_checkbox_lines(self) -> None:
        res = parse_acceptance("- [x] drawing signed\n- [ ] parts ordered\n\n- [X] BOM frozen")
        self.assertTrue(res.ok)
        self.assertEqual([i.checked for i in res.value], [True, False, True])
        self.assertEqual(res.value[1].content, "parts ordered")
        self.assertEqual(format_acceptance(res.value), "- [x] drawing signed\n- [ ] parts ordered\n- [x] BOM frozen")

    def test_blank_and_unrecognized(self) -> None:
        self.assertTrue(parse_acceptance("").ok)
        self.assertEqual(parse_acceptance(None).value, [])
        res = parse_acceptance("just some notes")
        self.assertFalse(res.ok)
        self.assertEqual(res.value, [])
        self.assertFalse(parse_acceptance("[not json").ok)

    def test_done_gate(self) -> None:
        open_task = {"id": "T", "acceptanceCriteria": "- [x] a\n- [ ] b\n- [ ] c"}
        issues = check_status_transition(open_task, "Done")
        self.assertEqual([i.code for i in issues], ["ac_incomplete"])
        self.assertIn("2", issues[0].message)
        self.assertTrue(issues[0].blocking)

        self.assertEqual(check_status_transition(open_task, "InProgress"), [])

        closed = {"id": "T", "acceptanceCriteria": "- [x] a\n- [x] b"}
        self.assertEqual(check_status_transition(closed, "Done"), [])
        self.assertTrue(acceptance_satisfied({"id": "T"}))


class TestDeriveViewContract(unittest.TestCase):
    def test_view_fields(self) -> None:
        task = _t("Todo", "2025-01-10", 3)
        v = derive_view(task, TODAY)
        self.assertEqual(v["startDate"], "2025-01-07")
        self.assertEqual(v["badge"], "overdue")
        self.assertEqual(v["highlight"], "overdue")
        self.assertEqual(v["daysLate"], 5)
        self.assertNotIn("badge", task)

    def test_start_date_is_always_derived(self) -> None:
        task = dict(_t("Todo", "2025-01-20", 3), startDate="2025-01-01")
        v = derive_view(task, "2025-01-17")
        self.assertEqual(v["startDate"], "2025-01-17")
        self.assertEqual(v["plannedStart"], "2025-01-01")
        self.assertEqual(v["badge"], "should_start")
        self.assertNotIn("plannedStart", derive_view(_t("Todo", "2025-01-20", 3), TODAY))


if __name__ == "__main__":
    unittest.main(verbosity=2)
