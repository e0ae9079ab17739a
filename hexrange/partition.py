"""
Split the closed interval [0, end] into contiguous ranges, one per worker.

Each range spans `end // workers + 1` integers and the last one is clamped to
`end`, so it absorbs the remainder and is usually a bit shorter:

    partition(25, 4) -> [0-6] [7-13] [14-20] [21-25]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class Range:
    start: int
    end: int  # inclusive

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end + 1))

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


def partition(end: int, workers: int) -> list[Range]:
    if end < 0:
        raise ValueError("end must be >= 0")
    if workers < 1:
        raise ValueError("workers must be >= 1")

    step = end // workers + 1
    out: list[Range] = []
    i = 0
    while i <= end:
        out.append(Range(i, min(i + step - 1, end)))
        i += step
    # small end / large workers can yield fewer ranges than workers
    return out
