"""
Settings from env / .env (python-dotenv), overridable by CLI flags.

  HEXRANGE_END      inclusive upper bound (decimal or 0x...), default 0xFFFFFF
  HEXRANGE_WORKERS  number of ranges/workers, default 10
  HEXRANGE_OUTPUT   output path, default depends on --mode
  HEXRANGE_BACKEND  threads | processes | async, default threads
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from hexrange.pipeline import BACKENDS

DEFAULT_END = 0xFFFFFF
DEFAULT_WORKERS = 10
DEFAULT_BACKEND = "threads"
DEFAULT_OUTPUTS = {
    "sequential": "numbers.txt",
    "naive": "numbers2.txt",
    "writer": "numbers3.txt",
}


@dataclass(frozen=True)
class Settings:
    end: int = DEFAULT_END
    workers: int = DEFAULT_WORKERS
    output: str | None = None
    backend: str = DEFAULT_BACKEND

    def validate(self) -> "Settings":
        if self.end < 0:
            raise ValueError(f"end must be >= 0, got {self.end}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.backend not in BACKENDS:
            raise ValueError(f"unknown backend {self.backend!r} (choose from {', '.join(BACKENDS)})")
        return self

    def output_for(self, mode: str) -> str:
        return self.output or DEFAULT_OUTPUTS[mode]


def parse_int(s: str) -> int:
    # "16777215" or "0xFFFFFF"
    try:
        return int(s.strip(), 0)
    except ValueError:
        raise ValueError(f"not an integer: {s!r}") from None


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    try:
        return parse_int(v)
    except ValueError as e:
        raise ValueError(f"{name}: {e}") from None


def load_settings(
    dotenv_path: str | None = None,
    *,
    end: int | None = None,
    workers: int | None = None,
    output: str | None = None,
    backend: str | None = None,
) -> Settings:
    """
    Keyword arguments win over the environment; env is only read for fields
    they leave as None. The result is not validated: call .validate().

    Without dotenv_path, .env is looked up from the current directory upwards.
    """
    load_dotenv(dotenv_path or find_dotenv(usecwd=True))
    return Settings(
        end=end if end is not None else _env_int("HEXRANGE_END", DEFAULT_END),
        workers=workers if workers is not None else _env_int("HEXRANGE_WORKERS", DEFAULT_WORKERS),
        output=output or os.getenv("HEXRANGE_OUTPUT") or None,
        backend=backend or os.getenv("HEXRANGE_BACKEND", DEFAULT_BACKEND),
    )
