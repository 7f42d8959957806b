"""Global model: beacons and scanners resolved into the shared frame."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import FrozenSet, Optional, Sequence, Tuple

import numpy as np

from beacon_alignment.contracts import Report, ScannerState, Vector3D, vectors_to_array
from beacon_alignment.rotations import IDENTITY


def pair_distances(points: np.ndarray) -> np.ndarray:
    """Squared euclidean distance of every unordered pair of rows in *points*.

    Invariant under the lattice rotations and under translation.
    """
    if len(points) < 2:
        return np.empty(0, dtype=np.int64)
    diff = points[:, None, :] - points[None, :, :]
    sq = np.einsum("ijk,ijk->ij", diff, diff)
    rows, cols = np.triu_indices(len(points), k=1)
    return sq[rows, cols]


def _cross_distances(new: np.ndarray, old: np.ndarray) -> np.ndarray:
    if len(new) == 0 or len(old) == 0:
        return np.empty(0, dtype=np.int64)
    diff = new[:, None, :] - old[None, :, :]
    return np.einsum("ijk,ijk->ij", diff, diff).ravel()


@dataclass(frozen=True)
class GlobalModel:
    """Immutable snapshot of one search branch.

    ``place`` returns a new model, so sibling branches never share state.
    """

    beacons: FrozenSet[Vector3D]
    scanners: Tuple[ScannerState, ...]
    remaining: Tuple[Report, ...]
    # Squared pairwise distances among beacons. Derived when not supplied.
    distances: Optional[FrozenSet[int]] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.distances is None:
            derived = frozenset(int(d) for d in pair_distances(self.beacon_array()))
            object.__setattr__(self, "distances", derived)

    @classmethod
    def seed(cls, reports: Sequence[Report]) -> "GlobalModel":
        """Fix the first report at the origin with the identity rotation."""
        if not reports:
            raise ValueError("Cannot seed a model without reports")
        first, rest = reports[0], tuple(reports[1:])
        state = ScannerState(
            scanner_id=first.scanner_id, rotation=IDENTITY, position=Vector3D.zero()
        )
        beacons = frozenset(state.transform(b) for b in first.beacons)
        return cls(beacons=beacons, scanners=(state,), remaining=rest)

    @property
    def is_complete(self) -> bool:
        return not self.remaining

    def beacon_array(self) -> np.ndarray:
        """Known beacons as an (N, 3) array in sorted order."""
        return vectors_to_array(sorted(self.beacons))

    def place(self, report: Report, state: ScannerState) -> "GlobalModel":
        """Return a new model with *report* resolved by *state*."""
        world = {state.transform(b) for b in report.beacons}
        added = sorted(world - self.beacons)
        if added:
            added_arr = vectors_to_array(added)
            old_arr = self.beacon_array()
            new_distances = np.concatenate(
                [pair_distances(added_arr), _cross_distances(added_arr, old_arr)]
            )
            distances = self.distances | frozenset(int(d) for d in new_distances)
        else:
            distances = self.distances
        return GlobalModel(
            beacons=self.beacons | world,
            scanners=self.scanners + (state,),
            remaining=tuple(r for r in self.remaining if r.scanner_id != report.scanner_id),
            distances=distances,
        )

    def beacon_count(self) -> int:
        return len(self.beacons)

    def max_scanner_distance(self) -> int:
        """Largest Manhattan distance between two resolved scanner positions."""
        return max(
            (
                (a.position - b.position).manhattan()
                for a, b in combinations(self.scanners, 2)
            ),
            default=0,
        )

    def to_payload(self) -> dict:
        return {
            "beacon_count": self.beacon_count(),
            "max_scanner_distance": self.max_scanner_distance(),
            "scanners": [
                {
                    "scanner_id": s.scanner_id,
                    "position": list(s.position.as_tuple()),
                    "rotation": [
                        list(s.rotation.x.as_tuple()),
                        list(s.rotation.y.as_tuple()),
                        list(s.rotation.z.as_tuple()),
                    ],
                    "overlap": s.overlap,
                }
                for s in self.scanners
            ],
            "beacons": [list(b.as_tuple()) for b in sorted(self.beacons)],
        }
