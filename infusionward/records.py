"""Bed records kept as colon-separated lines in a text file.

Each line has the form ``bed:name:doctor:nurses:capacity`` followed by a
newline. Line ``n`` of the file normally belongs to bed ``n``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Union

PathLike = Union[str, "os.PathLike[str]"]

FIELD_SEPARATOR = ":"
FIELD_COUNT = 5


def _lenient_int(text: str) -> int:
    """Parse an integer the forgiving way: surrounding blanks allowed, 0 on failure."""
    try:
        return int(text.strip())
    except ValueError:
        return 0


@dataclass
class PatientRecord:
    """One bed's patient, doctor, nurse and infusion capacity in millilitres."""

    bed: int
    name: str
    doctor: str
    nurses: str
    capacity: int

    @classmethod
    def from_line(cls, line: str) -> "PatientRecord":
        """Parse one stored line; an unreadable capacity counts as 0."""
        fields = line.rstrip("\r\n").split(FIELD_SEPARATOR)
        if len(fields) < FIELD_COUNT:
            raise ValueError(
                f"expected {FIELD_COUNT} ':'-separated fields, got {len(fields)}: {line!r}"
            )
        try:
            bed = int(fields[0].strip())
        except ValueError as exc:
            raise ValueError(f"bed number is not an integer: {fields[0]!r}") from exc
        if bed < 1:
            raise ValueError(f"bed number must be at least 1, got {bed}")
        return cls(
            bed=bed,
            name=fields[1],
            doctor=fields[2],
            nurses=fields[3],
            capacity=_lenient_int(fields[4]),
        )

    def to_line(self) -> str:
        """Render the record as one stored line, newline included."""
        fields = (self.bed, self.name, self.doctor, self.nurses, self.capacity)
        return FIELD_SEPARATOR.join(str(field) for field in fields) + "\n"


def read_lines(path: PathLike) -> List[str]:
    """Return every line of the file with its line ending kept."""
    with open(path, "r", encoding="utf-8", newline="") as handle:
        return list(handle)


def write_lines(path: PathLike, lines: Iterable[str]) -> None:
    """Replace the file's contents with the given lines, written as they are."""
    with open(path, "w", encoding="utf-8", newline="") as handle:
        handle.writelines(lines)


def upsert_line(lines: Iterable[str], bed: int, line: str) -> List[str]:
    """Return a copy of ``lines`` with ``line`` stored for ``bed``.

    A bed number below the number of lines replaces line ``bed``; any
    other bed number appends the line at the end.
    """
    if bed < 1:
        raise ValueError(f"bed number must be at least 1, got {bed}")
    result = list(lines)
    if bed < len(result):
        result[bed - 1] = line
    else:
        result.append(line)
    return result


class RecordBook:
    """The bed record file, loaded into memory and written back on request."""

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)
        self.lines: List[str] = read_lines(self.path)

    def add(self, bed: int, name: str, doctor: str, nurses: str, capacity: int) -> None:
        """Store or replace the record for a bed, in memory only."""
        record = PatientRecord(bed, name, doctor, nurses, capacity)
        self.lines = upsert_line(self.lines, bed, record.to_line())

    def save(self) -> None:
        """Write the in-memory lines back to the file."""
        write_lines(self.path, self.lines)