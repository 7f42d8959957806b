"""Public API for scanner/beacon alignment."""

from beacon_alignment.contracts import (
    MIN_OVERLAP,
    AlignmentConfig,
    Report,
    Rotation,
    ScannerState,
    Vector3D,
)
from beacon_alignment.errors import InvariantViolation, NoSolutionError, ParseError
from beacon_alignment.model import GlobalModel
from beacon_alignment.parsing import parse_report, parse_reports
from beacon_alignment.rotations import ROTATIONS
from beacon_alignment.search import align, solve_reports

__all__ = [
    "MIN_OVERLAP",
    "ROTATIONS",
    "AlignmentConfig",
    "GlobalModel",
    "InvariantViolation",
    "NoSolutionError",
    "ParseError",
    "Report",
    "Rotation",
    "ScannerState",
    "Vector3D",
    "align",
    "parse_report",
    "parse_reports",
    "solve_reports",
]
