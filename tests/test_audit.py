from __future__ import annotations

import hashlib
import json
from pathlib import Path

from beacon_alignment import solve_reports
from beacon_alignment.audit import GENESIS_HASH, AuditTrail


def _canonical(payload: dict) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def test_alignment_decision_log_and_hash_chain(sample_reports, tmp_path: Path):
    audit = AuditTrail(run_id="audit_case", artifacts_dir=tmp_path / "artifacts")
    model = solve_reports(sample_reports, audit=audit)

    records = [
        json.loads(line)
        for line in audit.decision_log_path.read_text(encoding="utf-8").splitlines()
        if line.strip()
    ]
    assert [r["seq"] for r in records] == list(range(1, len(model.scanners) + 1))
    assert [r["scanner_id"] for r in records] == [s.scanner_id for s in model.scanners]
    assert records[0]["reason"] == "seed_frame"
    assert records[0]["position"] == [0, 0, 0]
    assert all(r["overlap"] >= 12 for r in records[1:])

    prev_hash = GENESIS_HASH
    for record in records:
        assert record["previous_hash"] == prev_hash
        payload = {k: v for k, v in record.items() if k != "hash"}
        digest = hashlib.sha256(_canonical(payload).encode("utf-8")).hexdigest()
        assert digest == record["hash"]
        prev_hash = digest

    chain = json.loads(audit.hash_chain_path.read_text(encoding="utf-8"))
    assert chain["placement_count"] == len(records)
    assert chain["final_hash"] == prev_hash


def test_alignment_checkpoints(sample_reports, tmp_path: Path):
    audit = AuditTrail(run_id="checkpoint_case", artifacts_dir=tmp_path)
    solve_reports(sample_reports, audit=audit)

    handles = audit.checkpoints
    assert [h.phase_name for h in handles] == ["input", "alignment"]

    input_payload = json.loads(handles[0].path.read_text(encoding="utf-8"))
    assert input_payload["counts"] == {"reports": 5, "beacons_reported": 127}

    alignment = json.loads(handles[1].path.read_text(encoding="utf-8"))
    assert alignment["counts"]["beacons"] == 79
    assert alignment["metrics"]["max_scanner_distance"] == 3621.0
    assert alignment["input_hashes"]["prev_checkpoint_sha256"] == handles[0].payload_sha256

    stored = alignment.pop("payload_sha256")
    digest = hashlib.sha256(_canonical(alignment).encode("utf-8")).hexdigest()
    assert digest == stored
