"""
hexrange: write [0, END] as zero-padded hex lines using concurrent workers
and a single aggregating writer.
"""

from __future__ import annotations

from hexrange.partition import Range, partition
from hexrange.pipeline import RunStats, run, run_async, run_processes, run_threads
from hexrange.render import Chunk, format_line, render_chunk

__all__ = [
    "Chunk",
    "Range",
    "RunStats",
    "format_line",
    "partition",
    "render_chunk",
    "run",
    "run_async",
    "run_processes",
    "run_threads",
]
