"""Alignment search: resolve every scanner report into the shared frame.

Depth-first backtracking over immutable ``GlobalModel`` snapshots. At each
level one unplaced report is matched against the known beacons: for every
rotation, each (local beacon, known beacon) pair votes for the translation
that makes them coincide. A translation with at least ``MIN_OVERLAP`` votes
places the report and the search recurses on the extended model.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from beacon_alignment.audit import AuditTrail
from beacon_alignment.contracts import (
    MIN_OVERLAP,
    AlignmentConfig,
    Report,
    Rotation,
    ScannerState,
    SearchStats,
    Vector3D,
    vectors_to_array,
)
from beacon_alignment.errors import InvariantViolation, NoSolutionError
from beacon_alignment.model import GlobalModel, pair_distances
from beacon_alignment.rotations import ROTATIONS

logger = logging.getLogger(__name__)

# Pairs among MIN_OVERLAP coincident beacons; each keeps its distance.
MIN_SHARED_DISTANCES = MIN_OVERLAP * (MIN_OVERLAP - 1) // 2


def _may_overlap(report_arr: np.ndarray, known_distances: np.ndarray) -> bool:
    """False only when the report cannot share MIN_OVERLAP beacons."""
    shared = np.isin(pair_distances(report_arr), known_distances).sum()
    return int(shared) >= MIN_SHARED_DISTANCES


def _hypotheses(
    report_arr: np.ndarray,
    known_arr: np.ndarray,
    rotation: Rotation,
    stats: SearchStats,
) -> List[Tuple[Vector3D, int]]:
    """Translations that make at least MIN_OVERLAP beacons coincide.

    Sorted by descending overlap, ties in lexicographic order.
    """
    rotated = report_arr @ rotation.matrix().T
    votes = (known_arr[:, None, :] - rotated[None, :, :]).reshape(-1, 3)
    stats.hypotheses += len(votes)
    translations, counts = np.unique(votes, axis=0, return_counts=True)
    keep = counts >= MIN_OVERLAP
    translations, counts = translations[keep], counts[keep]
    order = np.argsort(-counts, kind="stable")
    return [
        (Vector3D(*(int(v) for v in translations[i])), int(counts[i])) for i in order
    ]


def _verified_state(
    model: GlobalModel,
    report: Report,
    rotation: Rotation,
    position: Vector3D,
    votes: int,
) -> ScannerState:
    state = ScannerState(
        scanner_id=report.scanner_id, rotation=rotation, position=position, overlap=votes
    )
    matched = sum(1 for b in report.beacons if state.transform(b) in model.beacons)
    if matched != votes or matched < MIN_OVERLAP:
        raise InvariantViolation(
            f"Scanner {report.scanner_id}: accepted {votes} votes but {matched} "
            f"beacons coincide (threshold {MIN_OVERLAP})"
        )
    return state


def align(
    model: GlobalModel,
    rotations: Sequence[Rotation] = ROTATIONS,
    config: Optional[AlignmentConfig] = None,
    stats: Optional[SearchStats] = None,
) -> Optional[GlobalModel]:
    """Place every remaining report, or return None if that is impossible.

    A model with nothing left to place is returned unchanged.
    """
    if config is None:
        config = AlignmentConfig()
    if stats is None:
        stats = SearchStats()
    if model.is_complete:
        return model

    known_arr = model.beacon_array()
    if len(known_arr) < MIN_OVERLAP:
        return None
    known_distances = None
    if config.distance_prefilter:
        known_distances = np.fromiter(
            model.distances, dtype=np.int64, count=len(model.distances)
        )

    for report in model.remaining:
        if len(report.beacons) < MIN_OVERLAP:
            logger.debug(
                "Scanner %d has %d beacons, cannot overlap",
                report.scanner_id,
                len(report.beacons),
            )
            continue
        report_arr = vectors_to_array(report.beacons)
        if known_distances is not None and not _may_overlap(report_arr, known_distances):
            stats.pruned += 1
            logger.debug("Scanner %d skipped by distance prefilter", report.scanner_id)
            continue

        for rotation in rotations:
            for position, votes in _hypotheses(report_arr, known_arr, rotation, stats):
                state = _verified_state(model, report, rotation, position, votes)
                stats.placements += 1
                logger.info(
                    "Aligned scanner %d at %s (%d overlapping beacons, %d reports left)",
                    report.scanner_id,
                    position,
                    votes,
                    len(model.remaining) - 1,
                )
                result = align(model.place(report, state), rotations, config, stats)
                if result is not None:
                    return result
                stats.backtracks += 1
                logger.debug(
                    "Backtracking: scanner %d at %s leads to a dead end",
                    report.scanner_id,
                    position,
                )

    return None


def _record_audit(
    audit: AuditTrail,
    model: GlobalModel,
    reports: Sequence[Report],
    stats: SearchStats,
    config: AlignmentConfig,
) -> None:
    input_checkpoint = audit.write_checkpoint(
        phase_index=0,
        phase_name="input",
        counts={
            "reports": len(reports),
            "beacons_reported": sum(len(r.beacons) for r in reports),
        },
        metrics={},
        outputs={"scanner_ids": [r.scanner_id for r in reports]},
    )
    for order, state in enumerate(model.scanners):
        audit.record_placement(state, order)
    audit.write_checkpoint(
        phase_index=1,
        phase_name="alignment",
        counts={
            "scanners": len(model.scanners),
            "beacons": model.beacon_count(),
            **stats.as_dict(),
        },
        metrics={"max_scanner_distance": float(model.max_scanner_distance())},
        outputs={
            "placement_order": [s.scanner_id for s in model.scanners],
            "min_overlap": MIN_OVERLAP,
            "distance_prefilter": config.distance_prefilter,
        },
        input_hashes={"prev_checkpoint_sha256": input_checkpoint.payload_sha256},
    )
    audit.finalize()


def solve_reports(
    reports: Sequence[Report],
    config: Optional[AlignmentConfig] = None,
    audit: Optional[AuditTrail] = None,
) -> GlobalModel:
    """Align all reports into the frame of the first one.

    Raises:
        NoSolutionError: if some report cannot be placed.
    """
    if config is None:
        config = AlignmentConfig()
    stats = SearchStats()
    seed = GlobalModel.seed(reports)
    logger.info(
        "Aligning %d scanner reports against scanner %d",
        len(reports),
        seed.scanners[0].scanner_id,
    )

    model = align(seed, ROTATIONS, config, stats)
    if model is None:
        logger.warning(
            "No alignment places all %d reports (%d hypotheses, %d backtracks)",
            len(reports),
            stats.hypotheses,
            stats.backtracks,
        )
        raise NoSolutionError(
            f"Could not align all {len(reports)} scanner reports into one frame"
        )

    logger.info(
        "Resolved %d scanners, %d beacons, max scanner distance %d "
        "(%d hypotheses, %d backtracks, %d pruned)",
        len(model.scanners),
        model.beacon_count(),
        model.max_scanner_distance(),
        stats.hypotheses,
        stats.backtracks,
        stats.pruned,
    )
    if audit is not None:
        _record_audit(audit, model, reports, stats, config)
    return model
