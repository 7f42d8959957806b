from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
SCRIPT = REPO_ROOT / "scripts" / "solve_scanners.py"


def test_cli_solves_sample_and_writes_run_folder(sample_path: Path, tmp_path: Path):
    cmd = [
        sys.executable,
        str(SCRIPT),
        "--input",
        str(sample_path),
        "--name",
        "sample",
        "--runs-dir",
        str(tmp_path),
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    assert proc.returncode == 0, proc.stderr
    assert "Beacons: 79" in proc.stdout
    assert "Max scanner distance: 3621" in proc.stdout

    run_dirs = [p for p in tmp_path.iterdir() if p.is_dir()]
    assert len(run_dirs) == 1
    run_dir = run_dirs[0]
    assert (run_dir / "input" / sample_path.name).exists()

    alignment = json.loads((run_dir / "artifacts" / "alignment.json").read_text())
    assert alignment["beacon_count"] == 79
    assert len(alignment["beacons"]) == 79
    assert len(alignment["scanners"]) == 5

    manifest = json.loads((run_dir / "manifest.json").read_text())
    assert manifest["config"] == {"distance_prefilter": True, "min_overlap": 12}
    assert Path(manifest["artifacts"]["decision_log"]).exists()
    assert len(manifest["artifacts"]["checkpoints"]) == 2

    metrics = json.loads((run_dir / "metrics.json").read_text())
    assert metrics["counts"] == {"reports": 5, "scanners": 5, "beacons": 79}
    assert "Max scanner distance: 3621" in (run_dir / "summary.md").read_text()

    latest = json.loads((tmp_path / "latest.json").read_text())
    assert latest["run_id"] == run_dir.name
    assert latest["beacon_count"] == 79


def test_cli_rejects_malformed_input(tmp_path: Path):
    bad = tmp_path / "bad.txt"
    bad.write_text("--- scanner 0 ---\n1,2\n", encoding="utf-8")
    proc = subprocess.run(
        [sys.executable, str(SCRIPT), "--input", str(bad), "--runs-dir", str(tmp_path / "runs")],
        capture_output=True,
        text=True,
    )
    assert proc.returncode == 1
    assert "Invalid input" in proc.stderr
    assert not (tmp_path / "runs").exists()


def test_cli_reports_no_solution(tmp_path: Path):
    lines = ["--- scanner 0 ---"] + [f"{i},{i * i},{-i}" for i in range(12)]
    lines += ["", "--- scanner 1 ---", "1,1,1"]
    puzzle = tmp_path / "unsolvable.txt"
    puzzle.write_text("\n".join(lines) + "\n", encoding="utf-8")
    proc = subprocess.run(
        [sys.executable, str(SCRIPT), "--input", str(puzzle), "--runs-dir", str(tmp_path / "runs")],
        capture_output=True,
        text=True,
    )
    assert proc.returncode == 1
    assert "No solution" in proc.stderr
