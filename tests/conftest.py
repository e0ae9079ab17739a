from __future__ import annotations

import threading

import pytest


class RecordingSink:
    """Thread-safe stand-in for the output file; remembers who wrote what."""

    def __init__(self) -> None:
        self.parts: list[str] = []
        self.writers: set[str] = set()
        self._lock = threading.Lock()

    def write(self, s: str) -> int:
        with self._lock:
            self.parts.append(s)
            self.writers.add(threading.current_thread().name)
        return len(s)

    def text(self) -> str:
        return "".join(self.parts)

    def lines(self) -> list[str]:
        return self.text().splitlines()


class Progress:
    def __init__(self) -> None:
        self.seen: list[int] = []

    def __call__(self, n: int) -> None:
        self.seen.append(n)


def hex_lines(end: int) -> list[str]:
    return [f"{i:06x}" for i in range(end + 1)]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def progress() -> Progress:
    return Progress()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("HEXRANGE_END", "HEXRANGE_WORKERS", "HEXRANGE_OUTPUT", "HEXRANGE_BACKEND"):
        monkeypatch.delenv(name, raising=False)
