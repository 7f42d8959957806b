"""Run folders for solver invocations.

    <runs-root>/<utc-stamp>_<name>_<input-sha8>/
        input/<puzzle file>
        artifacts/alignment.json, decision log, checkpoints
        manifest.json, metrics.json, summary.md
    <runs-root>/latest.json    answers and location of the newest run

The input hash is part of the run id, so runs of the same puzzle group
together when listed.
"""

from __future__ import annotations

import json
import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from beacon_alignment.audit import AuditTrail, sha256_file
from beacon_alignment.contracts import MIN_OVERLAP, AlignmentConfig, Report
from beacon_alignment.model import GlobalModel


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.strip().lower()).strip("-") or "run"


def _dump(path: Path, payload: dict) -> None:
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


@dataclass
class RunFolder:
    """Directory holding the input, answers and audit trail of one solve."""

    run_id: str
    runs_root: Path
    input_path: Path
    input_sha256: str

    @classmethod
    def create(cls, runs_root: str, run_name: str, source: Path) -> "RunFolder":
        """Make the folder and stage a copy of *source* in ``input/``."""
        digest = sha256_file(source)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
        run_id = f"{stamp}_{_slug(run_name)}_{digest[:8]}"
        folder = cls(
            run_id=run_id,
            runs_root=Path(runs_root),
            input_path=Path(runs_root) / run_id / "input" / source.name,
            input_sha256=digest,
        )
        folder.input_path.parent.mkdir(parents=True, exist_ok=True)
        folder.artifacts_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, folder.input_path)
        return folder

    @property
    def run_dir(self) -> Path:
        return self.runs_root / self.run_id

    @property
    def artifacts_dir(self) -> Path:
        return self.run_dir / "artifacts"

    @property
    def alignment_path(self) -> Path:
        return self.artifacts_dir / "alignment.json"

    @property
    def manifest_path(self) -> Path:
        return self.run_dir / "manifest.json"

    @property
    def metrics_path(self) -> Path:
        return self.run_dir / "metrics.json"

    @property
    def summary_path(self) -> Path:
        return self.run_dir / "summary.md"

    @property
    def latest_path(self) -> Path:
        return self.runs_root / "latest.json"

    def audit_trail(self) -> AuditTrail:
        return AuditTrail(run_id=self.run_id, artifacts_dir=self.artifacts_dir)

    def write_results(
        self,
        *,
        model: GlobalModel,
        reports: Sequence[Report],
        config: AlignmentConfig,
        audit: AuditTrail,
        elapsed_s: float,
    ) -> None:
        """Write the answers, run metrics, summary and manifest."""
        _dump(self.alignment_path, model.to_payload())
        _dump(
            self.metrics_path,
            {
                "run_id": self.run_id,
                "elapsed_s": round(elapsed_s, 3),
                "input_sha256": self.input_sha256,
                "counts": {
                    "reports": len(reports),
                    "scanners": len(model.scanners),
                    "beacons": model.beacon_count(),
                },
                "max_scanner_distance": model.max_scanner_distance(),
            },
        )
        self.summary_path.write_text(
            "\n".join(
                [
                    f"# Run {self.run_id}",
                    "",
                    f"- Duration: {elapsed_s:.2f}s",
                    f"- Scanners: {len(model.scanners)} of {len(reports)} reports",
                    f"- Placement order: {[s.scanner_id for s in model.scanners]}",
                    f"- Beacons: {model.beacon_count()}",
                    f"- Max scanner distance: {model.max_scanner_distance()}",
                    "",
                ]
            ),
            encoding="utf-8",
        )
        _dump(
            self.manifest_path,
            {
                "run_id": self.run_id,
                "created_utc": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
                "input": str(self.input_path),
                "input_sha256": self.input_sha256,
                "config": {
                    "distance_prefilter": config.distance_prefilter,
                    "min_overlap": MIN_OVERLAP,
                },
                "artifacts": {
                    "alignment": str(self.alignment_path),
                    "metrics": str(self.metrics_path),
                    "summary": str(self.summary_path),
                    "checkpoints": [str(c.path) for c in audit.checkpoints],
                    "decision_log": str(audit.decision_log_path),
                    "decision_hash_chain": str(audit.hash_chain_path),
                },
            },
        )
        _dump(
            self.latest_path,
            {
                "run_id": self.run_id,
                "run_dir": str(self.run_dir),
                "input_sha256": self.input_sha256,
                "beacon_count": model.beacon_count(),
                "max_scanner_distance": model.max_scanner_distance(),
            },
        )
