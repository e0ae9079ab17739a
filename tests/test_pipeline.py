from __future__ import annotations

import asyncio
import multiprocessing
import queue
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace

import pytest

import hexrange.pipeline as pipeline
from hexrange.partition import Range, partition
from hexrange.pipeline import RunStats, print_progress, run, run_async, run_processes, run_threads
from hexrange.render import Chunk

from conftest import hex_lines


def assert_complete(stats: RunStats, sink, end: int, n_ranges: int) -> None:
    assert sorted(sink.lines()) == hex_lines(end)
    assert stats.ranges == n_ranges
    assert stats.completions == n_ranges
    assert stats.writer_signals == 1
    assert stats.chunks_written == n_ranges
    assert stats.lines_written == end + 1
    assert stats.bytes_written == 7 * (end + 1)


def test_threads_two_workers_scenario(sink, progress):
    stats = run_threads(sink, partition(6, 2), on_progress=progress)

    assert_complete(stats, sink, 6, 2)
    assert progress.seen == [1, 2]
    # each chunk arrives whole
    assert sorted(sink.parts) == ["000000\n000001\n000002\n000003\n", "000004\n000005\n000006\n"]


def test_threads_only_the_writer_touches_the_sink(sink, progress):
    stats = run_threads(sink, partition(9999, 10), on_progress=progress)

    assert_complete(stats, sink, 9999, 10)
    assert sink.writers == {"writer"}
    assert progress.seen == list(range(1, 11))


def test_threads_ordered_output_is_sorted(sink, progress):
    run_threads(sink, partition(4999, 7), ordered=True, on_progress=progress)
    assert sink.lines() == hex_lines(4999)


def test_threads_waits_for_ranges_actually_produced(sink, progress):
    ranges = partition(3, 3)
    stats = run_threads(sink, ranges, on_progress=progress)

    assert len(ranges) == 2
    assert progress.seen == [1, 2]
    assert_complete(stats, sink, 3, 2)


def test_threads_closes_handoff_only_after_every_completion(sink, monkeypatch):
    log: list[tuple] = []
    lock = threading.Lock()
    labels = iter(["chunks", "done", "writer_done"])  # creation order in run_threads

    class LoggedQueue(queue.Queue):
        def __init__(self, maxsize: int = 0) -> None:
            super().__init__(maxsize)
            self.label = next(labels)

        def put(self, item, block=True, timeout=None):
            if self.label == "chunks" and item is None:
                with lock:
                    log.append(("close",))
            elif self.label == "writer_done":
                with lock:
                    log.append(("writer-done",))
            super().put(item, block, timeout)

        def get(self, block=True, timeout=None):
            item = super().get(block, timeout)
            if self.label == "done":
                with lock:
                    log.append(("completion",))
            return item

    def on_progress(n: int) -> None:
        with lock:
            log.append(("progress", n))

    monkeypatch.setattr(pipeline, "queue", SimpleNamespace(Queue=LoggedQueue, Empty=queue.Empty))
    run_threads(sink, partition(999, 5), on_progress=on_progress)

    kinds = [e[0] for e in log]
    assert kinds.count("completion") == 5
    assert kinds.count("close") == 1
    assert kinds.count("writer-done") == 1

    close = kinds.index("close")
    assert all(i < close for i, k in enumerate(kinds) if k in ("completion", "progress"))
    assert close < kinds.index("writer-done")
    assert [e[1] for e in log if e[0] == "progress"] == [1, 2, 3, 4, 5]
    assert sorted(sink.lines()) == hex_lines(999)


def test_async_with_thread_executor(sink, progress):
    ranges = partition(2999, 5)
    with ThreadPoolExecutor(max_workers=5) as ex:
        stats = asyncio.run(run_async(sink, ranges, on_progress=progress, executor=ex))

    assert_complete(stats, sink, 2999, 5)
    assert progress.seen == [1, 2, 3, 4, 5]


def test_async_ordered(sink, progress):
    with ThreadPoolExecutor(max_workers=4) as ex:
        asyncio.run(run_async(sink, partition(25, 4), ordered=True, on_progress=progress, executor=ex))
    assert sink.lines() == hex_lines(25)


def test_processes_backend(sink, progress):
    stats = run_processes(sink, partition(1999, 4), on_progress=progress)

    assert_complete(stats, sink, 1999, 4)
    assert sink.writers == {"writer"}
    assert progress.seen == [1, 2, 3, 4]


def _explode(r: Range):
    raise RuntimeError(f"boom {r}")


@pytest.mark.skipif(sys.platform != "linux", reason="needs fork to patch the worker")
def test_processes_dead_worker_raises_instead_of_hanging(sink, progress, monkeypatch):
    monkeypatch.setattr(pipeline, "render", _explode)

    with pytest.raises(RuntimeError, match="exitcodes"):
        run_processes(sink, partition(99, 2), on_progress=progress, start_method="fork", poll_s=0.1)
    assert sink.parts == []


def _fail_first_range(r: Range) -> Chunk:
    if r.start == 0:
        raise RuntimeError("boom")
    time.sleep(1.0)
    return Chunk.of(r)


@pytest.mark.skipif(sys.platform != "linux", reason="needs fork to patch the worker")
def test_processes_dead_worker_leaves_no_survivors(sink, progress, monkeypatch):
    monkeypatch.setattr(pipeline, "render", _fail_first_range)

    with pytest.raises(RuntimeError, match=r"exitcodes=\[1\]"):
        run_processes(sink, partition(199999, 2), on_progress=progress, start_method="fork", poll_s=0.1)

    # survivors are terminated and joined, so nothing blocks interpreter exit
    assert multiprocessing.active_children() == []
    assert progress.seen == []


def test_run_dispatches_by_backend(sink, progress):
    stats = run(sink, partition(99, 3), backend="threads", on_progress=progress)
    assert_complete(stats, sink, 99, 3)


def test_run_rejects_unknown_backend(sink):
    with pytest.raises(ValueError, match="unknown backend"):
        run(sink, partition(9, 2), backend="gevent")


def test_print_progress(capsys):
    print_progress(3)
    assert capsys.readouterr().out == "finish 3 go routine\n"
