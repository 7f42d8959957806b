"""Audit trail for alignment runs.

Placements of the final model are appended to ``decision_log.jsonl``; each
record carries the hash of its predecessor so the log can be replayed and
checked. Phase checkpoints go to ``checkpoints/`` and ``finalize`` writes the
chain summary.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from beacon_alignment.contracts import ScannerState

GENESIS_HASH = "0" * 64


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def canonical_json(payload: Dict[str, object]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def sha256_file(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


@dataclass
class CheckpointHandle:
    phase_index: int
    phase_name: str
    path: Path
    payload_sha256: str


class AuditTrail:
    """Append-only writer for the placements and phase summaries of one run."""

    def __init__(self, run_id: str, artifacts_dir: Path):
        self.run_id = run_id
        self.artifacts_dir = Path(artifacts_dir)
        self.checkpoints_dir = self.artifacts_dir / "checkpoints"
        self.checkpoints_dir.mkdir(parents=True, exist_ok=True)
        self.decision_log_path = self.artifacts_dir / "decision_log.jsonl"
        self.hash_chain_path = self.artifacts_dir / "decision_hash_chain.json"
        self._sequence = 0
        self._prev_hash = GENESIS_HASH
        self._chain: List[Dict[str, object]] = []
        self._checkpoints: List[CheckpointHandle] = []

    @property
    def checkpoints(self) -> List[CheckpointHandle]:
        return list(self._checkpoints)

    def record_placement(self, state: ScannerState, placement_order: int) -> Dict[str, object]:
        """Log one resolved scanner. The seed scanner has order 0."""
        self._sequence += 1
        rotation = state.rotation
        payload: Dict[str, object] = {
            "schema_version": "beacon_alignment.placement.v1",
            "run_id": self.run_id,
            "seq": self._sequence,
            "timestamp_utc": _utc_now_iso(),
            "scanner_id": state.scanner_id,
            "placement_order": placement_order,
            "reason": "seed_frame" if placement_order == 0 else "overlap_threshold_met",
            "rotation": [
                list(rotation.x.as_tuple()),
                list(rotation.y.as_tuple()),
                list(rotation.z.as_tuple()),
            ],
            "position": list(state.position.as_tuple()),
            "overlap": state.overlap,
            "previous_hash": self._prev_hash,
        }
        digest = sha256_text(canonical_json(payload))
        payload["hash"] = digest

        with self.decision_log_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload, sort_keys=True) + "\n")

        self._chain.append(
            {"seq": self._sequence, "hash": digest, "previous_hash": self._prev_hash}
        )
        self._prev_hash = digest
        return payload

    def write_checkpoint(
        self,
        *,
        phase_index: int,
        phase_name: str,
        counts: Dict[str, int],
        metrics: Dict[str, float],
        outputs: Dict[str, object],
        input_hashes: Optional[Dict[str, str]] = None,
    ) -> CheckpointHandle:
        slug = phase_name.lower().replace(" ", "_")
        path = self.checkpoints_dir / f"phase_{phase_index:02d}_{slug}.json"
        payload: Dict[str, object] = {
            "schema_version": "beacon_alignment.checkpoint.v1",
            "run_id": self.run_id,
            "phase_index": int(phase_index),
            "phase_name": phase_name,
            "timestamp_utc": _utc_now_iso(),
            "input_hashes": input_hashes or {},
            "counts": counts,
            "metrics": metrics,
            "outputs": outputs,
        }
        payload_sha = sha256_text(canonical_json(payload))
        payload["payload_sha256"] = payload_sha
        path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")

        handle = CheckpointHandle(
            phase_index=phase_index, phase_name=phase_name, path=path, payload_sha256=payload_sha
        )
        self._checkpoints.append(handle)
        return handle

    def finalize(self) -> None:
        payload = {
            "schema_version": "beacon_alignment.hash_chain.v1",
            "run_id": self.run_id,
            "final_hash": self._prev_hash,
            "placement_count": self._sequence,
            "entries": self._chain,
            "checkpoint_hashes": [
                {
                    "phase_index": c.phase_index,
                    "phase_name": c.phase_name,
                    "path": str(c.path),
                    "payload_sha256": c.payload_sha256,
                }
                for c in self._checkpoints
            ],
        }
        self.hash_chain_path.write_text(
            json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8"
        )
