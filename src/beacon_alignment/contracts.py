"""Value types shared by the parser, the model and the alignment search."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

# Two scanners overlap only when at least this many beacons coincide.
MIN_OVERLAP = 12

Vec3 = Tuple[int, int, int]


def vectors_to_array(vectors: Iterable["Vector3D"]) -> np.ndarray:
    """(N, 3) int64 array, one row per vector, in iteration order."""
    return np.array([v.as_tuple() for v in vectors], dtype=np.int64).reshape(-1, 3)


@dataclass(frozen=True, order=True)
class Vector3D:
    """Integer 3-vector. Used for beacon positions and rotation axes."""

    x: int
    y: int
    z: int

    @classmethod
    def zero(cls) -> "Vector3D":
        return cls(0, 0, 0)

    def __add__(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> "Vector3D":
        return Vector3D(-self.x, -self.y, -self.z)

    def __mul__(self, factor: int) -> "Vector3D":
        return Vector3D(self.x * factor, self.y * factor, self.z * factor)

    __rmul__ = __mul__

    def cross(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def dot(self, other: "Vector3D") -> int:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def manhattan(self) -> int:
        return abs(self.x) + abs(self.y) + abs(self.z)

    def as_tuple(self) -> Vec3:
        return (self.x, self.y, self.z)

    def __str__(self) -> str:
        return f"{self.x},{self.y},{self.z}"


@dataclass(frozen=True)
class Rotation:
    """Orthonormal right-handed basis (x, y, z) of the integer lattice.

    Applying it to a vector is a change of basis from a scanner's local
    frame into the shared world frame.
    """

    x: Vector3D
    y: Vector3D
    z: Vector3D

    def apply(self, v: Vector3D) -> Vector3D:
        return self.x * v.x + self.y * v.y + self.z * v.z

    def compose(self, other: "Rotation") -> "Rotation":
        """Rotation equivalent to applying *other* first, then *self*."""
        return Rotation(self.apply(other.x), self.apply(other.y), self.apply(other.z))

    def inverse(self) -> "Rotation":
        # Orthonormal, so the inverse is the transpose.
        return Rotation(
            Vector3D(self.x.x, self.y.x, self.z.x),
            Vector3D(self.x.y, self.y.y, self.z.y),
            Vector3D(self.x.z, self.y.z, self.z.z),
        )

    def determinant(self) -> int:
        return self.x.cross(self.y).dot(self.z)

    def matrix(self) -> np.ndarray:
        """(3, 3) integer matrix with the basis vectors as columns."""
        return np.array(
            [self.x.as_tuple(), self.y.as_tuple(), self.z.as_tuple()], dtype=np.int64
        ).T


@dataclass(frozen=True)
class Report:
    """Beacons seen by one scanner, in its own unoriented frame."""

    scanner_id: int
    beacons: Tuple[Vector3D, ...]


@dataclass(frozen=True)
class ScannerState:
    """A scanner whose orientation and position in the world frame are known."""

    scanner_id: int
    rotation: Rotation
    position: Vector3D
    overlap: int = 0  # coincident beacons at placement time, 0 for the seed

    def transform(self, relative_beacon: Vector3D) -> Vector3D:
        return self.rotation.apply(relative_beacon) + self.position


@dataclass(frozen=True)
class AlignmentConfig:
    """Configuration for the alignment search."""

    # Skip reports that cannot share MIN_OVERLAP beacons with the known set,
    # judged by pairwise distances. Never changes the result.
    distance_prefilter: bool = True


@dataclass
class SearchStats:
    """Counters collected during one solve."""

    hypotheses: int = 0
    placements: int = 0
    backtracks: int = 0
    pruned: int = 0

    def as_dict(self) -> dict:
        return {
            "hypotheses": self.hypotheses,
            "placements": self.placements,
            "backtracks": self.backtracks,
            "pruned": self.pruned,
        }
