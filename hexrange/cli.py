"""
Write [0, END] as 6-digit lowercase hex lines.

Run:
  hexrange                                   # writer mode, 10 threads -> numbers3.txt
  hexrange --backend processes --workers 8   # real CPU parallelism for formatting
  hexrange --mode naive                      # many writers on one file handle (the bug)
  hexrange --mode sequential --verify
  hexrange --end 0xFFFF --ordered --bench

Expected:
- sequential: correct and sorted, one core.
- naive: every line written, but lines from different workers interleave.
- writer: chunks arrive in completion order; --ordered restores sorted output.
"""

from __future__ import annotations

import argparse
from typing import TextIO

from hexrange._bench import measure, print_results
from hexrange.config import DEFAULT_OUTPUTS, Settings, load_settings, parse_int
from hexrange.partition import partition
from hexrange.pipeline import BACKENDS, RunStats, run
from hexrange.strategies import run_naive, run_sequential
from hexrange.verify import verify_file

MODES = tuple(DEFAULT_OUTPUTS)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="hexrange", description="Write [0, END] as zero-padded hex lines.")
    ap.add_argument("--mode", choices=MODES, default="writer")
    ap.add_argument("--backend", choices=BACKENDS, default=None, help="writer mode only (default: threads)")
    ap.add_argument("--end", type=parse_int, default=None, help="inclusive upper bound, e.g. 16777215 or 0xFFFFFF")
    ap.add_argument("--workers", type=int, default=None, help="number of ranges/workers (default: 10)")
    ap.add_argument("--output", default=None, help="output path (default depends on --mode)")
    ap.add_argument("--ordered", action="store_true", help="writer mode: emit chunks in ascending order")
    ap.add_argument("--verify", action="store_true", help="re-read the output and check every line")
    ap.add_argument("--bench", action="store_true", help="print wall time / RSS / CPU summary")
    ap.add_argument("--env-file", default=None, help="dotenv file with HEXRANGE_* settings")
    return ap


def open_output(path: str) -> TextIO:
    # truncating create: repeated runs do not append
    try:
        return open(path, "w", encoding="ascii", newline="\n")
    except OSError as e:
        raise SystemExit(f"err: {e}") from e


def execute(mode: str, settings: Settings, f: TextIO, *, ordered: bool = False) -> RunStats:
    if mode == "sequential":
        return run_sequential(f, settings.end)
    ranges = partition(settings.end, settings.workers)
    if mode == "naive":
        return run_naive(f, ranges)
    return run(f, ranges, backend=settings.backend, ordered=ordered)


def main(argv: list[str] | None = None) -> None:
    ap = build_parser()
    args = ap.parse_args(argv)

    if args.mode != "writer":
        if args.ordered:
            ap.error("--ordered only applies to --mode writer")
        if args.backend is not None:
            ap.error("--backend only applies to --mode writer")

    try:
        settings = load_settings(
            args.env_file, end=args.end, workers=args.workers, output=args.output, backend=args.backend
        ).validate()
    except ValueError as e:
        ap.error(str(e))

    path = settings.output_for(args.mode)
    results = []
    with open_output(path) as f:
        if args.bench:
            name = args.mode if args.mode == "sequential" else f"{args.mode} w={settings.workers}"
            if args.mode == "writer":
                name += f" {settings.backend}"
            results.append(measure(name, lambda: execute(args.mode, settings, f, ordered=args.ordered)))
        else:
            execute(args.mode, settings, f, ordered=args.ordered)
    print("finished!!")

    if results:
        print_results(results)

    if args.verify:
        rep = verify_file(path, settings.end)
        print(f"verify {path}: {rep.summary()}")
        if not rep.ok:
            raise SystemExit(f"verify failed: {path}")


if __name__ == "__main__":
    main()
