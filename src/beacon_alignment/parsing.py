"""Parse puzzle input into scanner reports."""

from __future__ import annotations

import re
from typing import List

from beacon_alignment.contracts import Report, Vector3D
from beacon_alignment.errors import ParseError

_HEADER_RE = re.compile(r"^--- scanner (\d+) ---$")
MAX_SCANNER_ID = 255


def parse_report(block: str) -> Report:
    """Parse one ``--- scanner N ---`` block followed by ``x,y,z`` lines."""
    lines = [line.strip() for line in block.strip().splitlines() if line.strip()]
    if not lines:
        raise ParseError("Empty scanner block")

    match = _HEADER_RE.match(lines[0])
    if match is None:
        raise ParseError(f"Malformed scanner header: {lines[0]!r}")
    scanner_id = int(match.group(1))
    if scanner_id > MAX_SCANNER_ID:
        raise ParseError(
            f"Scanner id {scanner_id} out of range 0..{MAX_SCANNER_ID}: {lines[0]!r}"
        )

    beacons: List[Vector3D] = []
    seen = set()
    for line in lines[1:]:
        parts = line.split(",")
        if len(parts) != 3:
            raise ParseError(
                f"Scanner {scanner_id}: expected 3 coordinates, got {len(parts)}: {line!r}"
            )
        try:
            beacon = Vector3D(*(int(p) for p in parts))
        except ValueError as exc:
            raise ParseError(f"Scanner {scanner_id}: bad coordinate in {line!r}") from exc
        if beacon in seen:
            raise ParseError(f"Scanner {scanner_id}: duplicate beacon {line!r}")
        seen.add(beacon)
        beacons.append(beacon)

    return Report(scanner_id=scanner_id, beacons=tuple(beacons))


def parse_reports(text: str) -> List[Report]:
    """Parse the whole puzzle input. Blocks are separated by blank lines."""
    normalized = text.replace("\r\n", "\n").strip()
    if not normalized:
        raise ParseError("Input contains no scanner reports")

    blocks = re.split(r"\n\s*\n", normalized)
    reports = [parse_report(block) for block in blocks]

    ids = [r.scanner_id for r in reports]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise ParseError(f"Duplicate scanner ids: {duplicates}")
    return reports
