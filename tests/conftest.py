"""
Shared test fixtures for the beacon alignment tests.
"""
import sys
from pathlib import Path

import numpy as np
import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from beacon_alignment.contracts import Report, Rotation, Vector3D
from beacon_alignment.parsing import parse_reports

DATA_DIR = Path(__file__).parent / "data"


def random_points(seed, count, low=-1000, high=1000):
    """*count* distinct integer points with no structure to speak of."""
    rng = np.random.default_rng(seed)
    points = []
    seen = set()
    while len(points) < count:
        p = Vector3D(*(int(v) for v in rng.integers(low, high, size=3)))
        if p not in seen:
            seen.add(p)
            points.append(p)
    return points


def observe(scanner_id, world_points, rotation, position):
    """Report a scanner at (*rotation*, *position*) would produce for *world_points*."""
    to_local = rotation.inverse()
    return Report(
        scanner_id=scanner_id,
        beacons=tuple(to_local.apply(p - position) for p in world_points),
    )


@pytest.fixture
def sample_path():
    """Canonical five-scanner example input."""
    return DATA_DIR / "scanner_sample.txt"


@pytest.fixture
def sample_reports(sample_path):
    return parse_reports(sample_path.read_text(encoding="utf-8"))


@pytest.fixture
def quarter_turn_z():
    """90 degrees about +Z: x -> y, y -> -x."""
    return Rotation(Vector3D(0, 1, 0), Vector3D(-1, 0, 0), Vector3D(0, 0, 1))
