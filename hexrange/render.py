from __future__ import annotations

from dataclasses import dataclass

from hexrange.partition import Range


def format_line(i: int) -> str:
    return f"{i:06x}\n"


def render_chunk(r: Range) -> str:
    # whole range in one buffer; the writer gets it as a single unit
    return "".join([format_line(i) for i in r])


@dataclass(frozen=True)
class Chunk:
    start: int
    lines: int
    text: str

    @classmethod
    def of(cls, r: Range) -> "Chunk":
        return cls(start=r.start, lines=len(r), text=render_chunk(r))
