from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

HEX_DIGITS = frozenset("0123456789abcdef")


@dataclass
class VerifyReport:
    lines: int = 0
    missing: int = 0
    duplicates: int = 0
    malformed: int = 0
    ascending: bool = True

    @property
    def ok(self) -> bool:
        return self.missing == 0 and self.duplicates == 0 and self.malformed == 0

    def summary(self) -> str:
        return (
            f"lines={self.lines} missing={self.missing} duplicates={self.duplicates} "
            f"malformed={self.malformed} ascending={self.ascending}"
        )


def verify_lines(lines: Iterable[str], end: int) -> VerifyReport:
    """
    Check that every integer in [0, end] appears exactly once as a zero-padded
    lowercase hex line. `lines` may keep their trailing "\\n".

    Uses a bytearray bitmap, one byte per integer.
    """
    seen = bytearray(end + 1)
    rep = VerifyReport()
    prev = -1

    for raw in lines:
        rep.lines += 1
        s = raw[:-1] if raw.endswith("\n") else raw
        if not s or not HEX_DIGITS.issuperset(s):
            rep.malformed += 1
            continue
        v = int(s, 16)
        if v > end or s != f"{v:06x}":
            rep.malformed += 1
            continue
        if seen[v]:
            rep.duplicates += 1
        else:
            seen[v] = 1
        if v <= prev:
            rep.ascending = False
        prev = v

    rep.missing = seen.count(0)
    return rep


def verify_file(path: str | Path, end: int) -> VerifyReport:
    with open(path, "r", encoding="ascii", errors="replace", newline="\n") as f:
        return verify_lines(f, end)
