"""
The aggregating writer's side of the hand-off: the only code that writes to
the output sink in `writer` mode.

ordered=False appends chunks in arrival order (file is NOT sorted across
ranges). ordered=True holds a chunk back until every lower range has been
written, which costs memory for out-of-order chunks but yields a sorted file.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from hexrange.partition import Range
from hexrange.render import Chunk


class Sink(Protocol):
    def write(self, s: str, /) -> object: ...


class ChunkWriter:
    def __init__(self, sink: Sink, ranges: Sequence[Range], ordered: bool = False) -> None:
        self.sink = sink
        self.ordered = ordered
        self.chunks_written = 0
        self.lines_written = 0
        self.bytes_written = 0

        self._order = sorted(r.start for r in ranges)
        self._next = 0
        self._held: dict[int, Chunk] = {}

    def accept(self, chunk: Chunk) -> None:
        if not self.ordered:
            self._write(chunk)
            return

        self._held[chunk.start] = chunk
        while self._next < len(self._order) and self._order[self._next] in self._held:
            self._write(self._held.pop(self._order[self._next]))
            self._next += 1

    def finish(self) -> int:
        if self.ordered and self._next < len(self._order):
            missing = self._order[self._next]
            raise RuntimeError(f"ordered writer: chunk starting at {missing} never arrived")
        return self.chunks_written

    def _write(self, chunk: Chunk) -> None:
        self.sink.write(chunk.text)
        self.chunks_written += 1
        self.lines_written += chunk.lines
        self.bytes_written += len(chunk.text)
