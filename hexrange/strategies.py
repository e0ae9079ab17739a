"""
The two simpler approaches that `writer` mode replaces.

- sequential: one loop, one write per line. Correct, single core.
- naive     : one thread per range, every thread writes its lines straight to
              the shared sink. Lines from different ranges interleave, and a
              sink that is not thread-safe can corrupt output. Kept as the
              counter-example for the single-writer pipeline.
"""

from __future__ import annotations

import queue
import threading
from typing import Sequence

from hexrange.partition import Range
from hexrange.pipeline import ProgressFn, RunStats, print_progress
from hexrange.render import format_line
from hexrange.sink import Sink


def run_sequential(sink: Sink, end: int) -> RunStats:
    if end < 0:
        raise ValueError("end must be >= 0")
    stats = RunStats(ranges=1)
    for i in range(end + 1):
        line = format_line(i)
        sink.write(line)
        stats.bytes_written += len(line)
    stats.lines_written = end + 1
    return stats


def run_naive(
    sink: Sink,
    ranges: Sequence[Range],
    *,
    on_progress: ProgressFn = print_progress,
) -> RunStats:
    stats = RunStats(ranges=len(ranges))
    q_done: queue.Queue[int] = queue.Queue(maxsize=1)

    def worker(r: Range) -> None:
        written = 0
        for i in r:
            line = format_line(i)
            sink.write(line)  # many writers, no coordination
            written += len(line)
        q_done.put(written)

    workers = [threading.Thread(target=worker, args=(r,), name=f"worker-{i}") for i, r in enumerate(ranges)]
    for t in workers:
        t.start()

    for n in range(1, len(ranges) + 1):
        stats.bytes_written += q_done.get()
        stats.completions = n
        on_progress(n)

    for t in workers:
        t.join()

    stats.lines_written = sum(len(r) for r in ranges)
    return stats
