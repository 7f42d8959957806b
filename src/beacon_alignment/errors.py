"""Error types raised by the beacon alignment package."""


class ParseError(ValueError):
    """Puzzle input does not follow the scanner report grammar."""


class NoSolutionError(RuntimeError):
    """Alignment search could not place every scanner report."""


class InvariantViolation(RuntimeError):
    """An internal invariant was broken. Always a programming defect."""
