"""
Workers render ranges -> size-1 hand-off queue -> single writer owns the sink.

Driver (same on every backend):
  1. start the writer
  2. start one worker per range
  3. receive one completion signal per range, reporting progress after each
  4. close the hand-off queue (sentinel) and wait for the writer's own signal

Backends:
- threads   : threading + queue.Queue. Simple; formatting is GIL-bound.
- processes : multiprocessing workers, writer thread in the driver process.
- async     : asyncio tasks; rendering offloaded to an executor.

There is no ordering across workers unless ordered=True (see sink.ChunkWriter).
No cancellation or timeouts: a stuck worker stalls the run.
"""

from __future__ import annotations

import asyncio
import queue
import threading
from concurrent.futures import Executor, ProcessPoolExecutor
from dataclasses import dataclass
from multiprocessing import get_context
from typing import Callable, Sequence

from hexrange.partition import Range
from hexrange.render import Chunk
from hexrange.sink import ChunkWriter, Sink

ProgressFn = Callable[[int], None]

CLOSE = None  # hand-off sentinel: no more chunks


@dataclass
class RunStats:
    ranges: int = 0
    completions: int = 0
    writer_signals: int = 0
    chunks_written: int = 0
    lines_written: int = 0
    bytes_written: int = 0

    def absorb(self, writer: ChunkWriter) -> "RunStats":
        self.chunks_written = writer.chunks_written
        self.lines_written = writer.lines_written
        self.bytes_written = writer.bytes_written
        return self


def print_progress(n: int) -> None:
    print(f"finish {n} go routine")


def render(r: Range) -> Chunk:
    # module-level so process pools can pickle it
    return Chunk.of(r)


# ---------------- threads ----------------
def run_threads(
    sink: Sink,
    ranges: Sequence[Range],
    *,
    ordered: bool = False,
    on_progress: ProgressFn = print_progress,
) -> RunStats:
    stats = RunStats(ranges=len(ranges))
    writer = ChunkWriter(sink, ranges, ordered)

    q_chunks: queue.Queue[Chunk | None] = queue.Queue(maxsize=1)
    q_done: queue.Queue[None] = queue.Queue(maxsize=1)
    q_writer_done: queue.Queue[None] = queue.Queue(maxsize=1)

    def writer_loop() -> None:
        while True:
            item = q_chunks.get()
            if item is CLOSE:
                break
            writer.accept(item)
        q_writer_done.put(None)

    def worker(r: Range) -> None:
        q_chunks.put(render(r))
        q_done.put(None)

    tw = threading.Thread(target=writer_loop, name="writer")
    tw.start()

    workers = [threading.Thread(target=worker, args=(r,), name=f"worker-{i}") for i, r in enumerate(ranges)]
    for t in workers:
        t.start()

    for n in range(1, len(ranges) + 1):
        q_done.get()
        stats.completions = n
        on_progress(n)

    q_chunks.put(CLOSE)
    q_writer_done.get()
    stats.writer_signals += 1

    tw.join()
    for t in workers:
        t.join()

    writer.finish()
    return stats.absorb(writer)


# ---------------- processes ----------------
def _process_worker(r: Range, q_chunks, q_done) -> None:
    q_chunks.put(render(r))
    q_done.put(None)


def _terminate(ps) -> None:
    for p in ps:
        if p.is_alive():
            p.terminate()
    for p in ps:
        p.join()


def run_processes(
    sink: Sink,
    ranges: Sequence[Range],
    *,
    ordered: bool = False,
    on_progress: ProgressFn = print_progress,
    start_method: str = "spawn",
    poll_s: float = 0.5,
) -> RunStats:
    """
    Workers are processes (real parallelism for the formatting loop); the writer
    stays a thread in this process so the sink never crosses a process boundary.

    Unlike the other backends, a worker process that dies is detected while
    waiting for completion signals and raises RuntimeError instead of hanging.
    """
    stats = RunStats(ranges=len(ranges))
    writer = ChunkWriter(sink, ranges, ordered)

    ctx = get_context(start_method)
    q_chunks = ctx.Queue(maxsize=1)
    q_done = ctx.Queue()
    q_writer_done: queue.Queue[None] = queue.Queue(maxsize=1)

    def writer_loop() -> None:
        while True:
            item = q_chunks.get()
            if item is CLOSE:
                break
            writer.accept(item)
        q_writer_done.put(None)

    tw = threading.Thread(target=writer_loop, name="writer")
    tw.start()

    ps = []
    for i, r in enumerate(ranges):
        p = ctx.Process(target=_process_worker, args=(r, q_chunks, q_done), name=f"worker-{i}")
        p.start()
        ps.append(p)

    n = 0
    while n < len(ranges):
        try:
            q_done.get(timeout=poll_s)
        except queue.Empty:
            dead = [p.exitcode for p in ps if p.exitcode not in (None, 0)]
            if dead:
                # Always stop writer, then the survivors: an unread chunk blocks their exit
                q_chunks.put(CLOSE)
                tw.join()
                _terminate(ps)
                q_chunks.cancel_join_thread()
                raise RuntimeError(f"workers failed, exitcodes={dead}")
            continue
        n += 1
        stats.completions = n
        on_progress(n)

    q_chunks.put(CLOSE)
    q_writer_done.get()
    stats.writer_signals += 1
    tw.join()

    failed = []
    for p in ps:
        p.join()
        if p.exitcode != 0:
            failed.append(p.exitcode)
    if failed:
        raise RuntimeError(f"workers failed, exitcodes={failed}")

    writer.finish()
    return stats.absorb(writer)


# ---------------- async ----------------
async def run_async(
    sink: Sink,
    ranges: Sequence[Range],
    *,
    ordered: bool = False,
    on_progress: ProgressFn = print_progress,
    executor: Executor | None = None,
) -> RunStats:
    """
    Rendering is CPU work, so it runs in `executor` (a process pool sized to
    the number of ranges when not given). Sink writes go through
    asyncio.to_thread, awaited one at a time by the single writer task.
    """
    stats = RunStats(ranges=len(ranges))
    writer = ChunkWriter(sink, ranges, ordered)
    loop = asyncio.get_running_loop()

    q_chunks: asyncio.Queue[Chunk | None] = asyncio.Queue(maxsize=1)
    q_done: asyncio.Queue[None] = asyncio.Queue(maxsize=1)
    q_writer_done: asyncio.Queue[None] = asyncio.Queue(maxsize=1)

    owned = executor is None
    pool = ProcessPoolExecutor(max_workers=max(len(ranges), 1)) if owned else executor

    async def writer_task() -> None:
        while True:
            item = await q_chunks.get()
            if item is CLOSE:
                break
            await asyncio.to_thread(writer.accept, item)
        await q_writer_done.put(None)

    async def worker(r: Range) -> None:
        chunk = await loop.run_in_executor(pool, render, r)
        await q_chunks.put(chunk)
        await q_done.put(None)

    try:
        async with asyncio.TaskGroup() as tg:
            tg.create_task(writer_task(), name="writer")
            for i, r in enumerate(ranges):
                tg.create_task(worker(r), name=f"worker-{i}")

            for n in range(1, len(ranges) + 1):
                await q_done.get()
                stats.completions = n
                on_progress(n)

            await q_chunks.put(CLOSE)
            await q_writer_done.get()
            stats.writer_signals += 1
    finally:
        if owned:
            pool.shutdown()

    writer.finish()
    return stats.absorb(writer)


BACKENDS = ("threads", "processes", "async")


def run(sink: Sink, ranges: Sequence[Range], backend: str = "threads", **kw) -> RunStats:
    if backend == "threads":
        return run_threads(sink, ranges, **kw)
    if backend == "processes":
        return run_processes(sink, ranges, **kw)
    if backend == "async":
        return asyncio.run(run_async(sink, ranges, **kw))
    raise ValueError(f"unknown backend: {backend!r} (choose from {', '.join(BACKENDS)})")
