from __future__ import annotations

import importlib
import subprocess
import sys
import unittest
from pathlib import Path


REPO_ROOT = Path(__file__).resolve().parent.parent


class TestCompileAllContract(unittest.TestCase):
    def test_compileall_tasktrack_package(self):
        pkg_dir = REPO_ROOT / "tasktrack"
        self.assertTrue(pkg_dir.exists(), f"Missing package dir: {pkg_dir}")

        cmd = [sys.executable, "-m", "compileall", "-q", str(pkg_dir)]
        p = subprocess.run(cmd, cwd=str(REPO_ROOT), capture_output=True, text=True)

        combined = (p.stdout or "") + "\n" + (p.stderr or "")
        self.assertEqual(
            p.returncode,
            0,
            "compileall failed:\n"
            f"cmd: {cmd}\n"
            f"stdout/stderr:\n{combined}",
        )

    def test_compileall_covers_tool_entrypoints(self):
        tools_dir = REPO_ROOT / "tasktrack" / "tools"
        for name in ("weekly_report", "export_snapshot", "check_tasks"):
            path = tools_dir / f"{name}.py"
            self.assertTrue(path.exists(), f"Missing tool module: {path}")
            mod = importlib.import_module(f"tasktrack.tools.{name}")
            self.assertTrue(callable(getattr(mod, "main", None)), f"{name} has no main()")


if __name__ == "__main__":
    unittest.main(verbosity=2)
