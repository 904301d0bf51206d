from __future__ import annotations

import unittest

from tasktrack.snapshot import diff_snapshots, export_snapshot, is_snapshot, render_markdown


def _ids(rows):
    return [str(t.get("id") or t.get("ID")) for t in rows]


class TestSnapshotDiffContract(unittest.TestCase):
    def test_single_completion(self) -> None:
        old = [{"id": "A", "status": "Todo", "date": "2025-03-01"}, {"id": "B", "status": "Todo", "date": "2025-03-01"}]
        new = [{"id": "A", "status": "Done", "date": "2025-03-01"}, {"id": "B", "status": "Todo", "date": "2025-03-01"}]
        r = diff_snapshots(old, new, report_date="2025-01-12")

        self.assertEqual(_ids(r.completed), ["A"])
        self.assertEqual(r.status_changed, ())
        self.assertEqual(r.added, ())
        self.assertEqual(r.removed, ())
        self.assertEqual(r.date_changed, ())

    def test_end_to_end_weekly_scenario(self) -> None:
        old = [{"id": "A", "status": "Todo", "date": "2025-01-10"}]
        new = [{"id": "A", "status": "Done", "date": "2025-01-10"}, {"id": "B", "status": "Todo", "date": "2025-01-05"}]
        r = diff_snapshots(old, new, report_date="2025-01-12")

        self.assertEqual(_ids(r.added), ["B"])
        self.assertEqual(_ids(r.completed), ["A"])
        self.assertEqual(_ids(r.delayed), ["B"])
        self.assertEqual(r.date_changed, ())
        self.assertEqual(r.removed, ())
        self.assertEqual(r.report_date, "2025-01-12")
        self.assertEqual(r.snapshot_date, "unknown")

    def test_duplicate_ids_use_first_record(self) -> None:
        old = [{"id": "A", "status": "Todo", "date": "2025-03-01"}]
        new = [{"id": "A", "status": "Done", "date": "2025-03-01"}, {"id": "A", "status": "Todo", "date": "2025-03-09"}]
        r = diff_snapshots(old, new, report_date="2025-01-12")
        self.assertEqual(_ids(r.completed), ["A"])
        self.assertEqual(r.date_changed, ())

    def test_status_and_date_changes_are_independent(self) -> None:
        old = [{"id": "A", "status": "Todo", "date": "2025-01-10"}, {"id": "C", "status": "Todo"}]
        new = [{"id": "A", "status": "InProgress", "date": "2025-01-20"}]
        r = diff_snapshots(old, new, report_date="2025-01-12")

        self.assertEqual(len(r.status_changed), 1)
        self.assertEqual((r.status_changed[0].old_status, r.status_changed[0].new_status), ("Todo", "InProgress"))
        self.assertEqual(len(r.date_changed), 1)
        self.assertEqual((r.date_changed[0].old_date, r.date_changed[0].new_date), ("2025-01-10", "2025-01-20"))
        self.assertEqual(_ids(r.removed), ["C"])
        self.assertEqual(r.completed, ())

    def test_export_shape_matches_live_shape(self) -> None:
        old = [{"ID": "A", "Status": "Todo", "DueDate": "2025-01-10", "_SnapshotDate": "2025-01-06"}]
        new = [{"id": "A", "status": "Todo", "date": "2025-01-10"}]
        r = diff_snapshots(old, new, report_date="2025-01-08")

        self.assertEqual(r.snapshot_date, "2025-01-06")
        self.assertEqual(sum(r.counts().values()), 0)

    def test_missing_status_defaults_to_todo(self) -> None:
        old = [{"id": "A", "date": "2025-01-10"}]
        new = [{"id": "A", "status": "Todo", "date": "2025-01-10"}]
        r = diff_snapshots(old, new, report_date="2025-01-08")
        self.assertEqual(r.status_changed, ())

    def test_to_dict_counts(self) -> None:
        r = diff_snapshots([], [{"id": "X", "status": "Todo", "date": "2025-01-01"}], report_date="2025-01-02")
        d = r.to_dict()
        self.assertEqual(d["counts"], {"added": 1, "removed": 0, "completed": 0, "dateChanged": 0, "statusChanged": 0, "delayed": 1})
        self.assertEqual(d["reportDate"], "2025-01-02")


class TestReportMarkdownContract(unittest.TestCase):
    def setUp(self) -> None:
        old = [
            {"id": "A", "task": "Pump", "owner": "Lin", "status": "Todo", "date": "2025-01-10", "_SnapshotDate": "2025-01-05"},
            {"id": "C", "task": "Old|item", "status": "InProgress", "date": "2025-01-10"},
            {"id": "D", "task": "Valve", "status": "Todo", "date": "2025-01-20"},
        ]
        new = [
            {"id": "A", "task": "Pump", "owner": "Lin", "status": "Done", "date": "2025-01-10"},
            {"id": "B", "task": "Flow cell", "owner": "Wu", "status": "Todo", "date": "2025-01-05"},
            {"id": "D", "task": "Valve", "status": "Pending", "date": "2025-01-25"},
        ]
        self.report = diff_snapshots(old, new, report_date="2025-01-12")

    def test_deterministic(self) -> None:
        self.assertEqual(render_markdown(self.report), render_markdown(self.report))

    def test_section_order(self) -> None:
        md = render_markdown(self.report)
        heads = [ln for ln in md.splitlines() if ln.startswith("## ")]
        self.assertEqual(
            heads,
            ["## Summary", "## Added this week", "## Completed this week", "## Date changes", "## Status changes", "## Delayed", "## Removed"],
        )
        self.assertIn("> Snapshot date: 2025-01-05 | Report date: 2025-01-12", md)

    def test_cells_escape_pipes_and_show_days_late(self) -> None:
        md = render_markdown(self.report)
        self.assertIn("| C | Old\\|item |", md)
        self.assertIn("| B | Flow cell | Wu | 2025-01-05 | 7 |", md)

    def test_empty_sections_are_omitted(self) -> None:
        r = diff_snapshots([{"id": "A", "status": "Todo"}], [{"id": "A", "status": "Todo"}], report_date="2025-01-12")
        heads = [ln for ln in render_markdown(r).splitlines() if ln.startswith("## ")]
        self.assertEqual(heads, ["## Summary"])


class TestSnapshotExportContract(unittest.TestCase):
    def test_export_rows_are_marked(self) -> None:
        rows = export_snapshot([{"id": "A", "task": "Pump", "date": "2025-01-10", "isCheckpoint": True}], "2025-01-06")
        self.assertTrue(is_snapshot(rows))
        self.assertEqual(rows[0]["ID"], "A")
        self.assertEqual(rows[0]["Status"], "Todo")
        self.assertEqual(rows[0]["Priority"], "Medium")
        self.assertEqual(rows[0]["IsCheckpoint"], "TRUE")
        self.assertEqual(rows[0]["IssuePool"], "FALSE")
        self.assertEqual(rows[0]["_SnapshotDate"], "2025-01-06")

    def test_is_snapshot_rejects_plain_lists(self) -> None:
        self.assertFalse(is_snapshot([]))
        self.assertFalse(is_snapshot([{"id": "A"}]))
        self.assertFalse(is_snapshot(None))

    def test_export_diffs_clean_against_source(self) -> None:
        tasks = [{"id": "A", "status": "InProgress", "date": "2025-01-10"}]
        r = diff_snapshots(export_snapshot(tasks, "2025-01-06"), tasks, report_date="2025-01-08")
        self.assertEqual(sum(r.counts().values()), 0)
        self.assertEqual(r.snapshot_date, "2025-01-06")


if __name__ == "__main__":
    unittest.main(verbosity=2)
