"""The 24 proper rotations of the integer lattice (cube rotation group)."""

from __future__ import annotations

from itertools import product
from typing import Tuple

from beacon_alignment.contracts import Rotation, Vector3D
from beacon_alignment.errors import InvariantViolation

AXES: Tuple[Vector3D, ...] = (
    Vector3D(1, 0, 0),
    Vector3D(0, 1, 0),
    Vector3D(0, 0, 1),
)


def build_rotations() -> Tuple[Rotation, ...]:
    """Enumerate every right-handed basis made of signed coordinate axes.

    An ordered pair of distinct axes, each with either sign, fixes x and y;
    z is their cross product. The first entry is the identity.
    """
    rotations = []
    for x_unit, y_unit in product(AXES, AXES):
        if x_unit == y_unit:
            continue
        for x, y in product((x_unit, -x_unit), (y_unit, -y_unit)):
            rotations.append(Rotation(x, y, x.cross(y)))

    if len(rotations) != 24 or len(set(rotations)) != 24:
        raise InvariantViolation(
            f"Expected 24 distinct rotations, built {len(set(rotations))}"
        )
    if any(r.determinant() != 1 for r in rotations):
        raise InvariantViolation("Rotation set contains a reflection")
    return tuple(rotations)


ROTATIONS: Tuple[Rotation, ...] = build_rotations()
IDENTITY: Rotation = ROTATIONS[0]
