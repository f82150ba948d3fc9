"""Compile an envelope script and print every export sampled over a time range."""

from __future__ import annotations

import argparse
import json
import math
import sys
from pathlib import Path

from boenthoescript import BoenthoeError, parse, sample
from boenthoescript.script import build, decode_source


def _times(start: float, end: float, step: float) -> list[float]:
    count = int(math.floor((end - start) / step + 1e-9))
    return [start + i * step for i in range(count + 1)]


def _format_row(values: list[float]) -> str:
    return "(" + ", ".join(f"{v:.4f}" for v in values) + ")"


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", help="script file to compile")
    parser.add_argument("--start", type=float, default=0.0, help="first sampled time")
    parser.add_argument("--end", type=float, default=4.9, help="last sampled time")
    parser.add_argument("--step", type=float, default=0.1, help="time between samples")
    parser.add_argument("--show-ast", action="store_true", help="print the parsed syntax tree")
    parser.add_argument("--json-out", default=None, help="where to write sampled values as JSON")
    args = parser.parse_args()
    if args.step <= 0:
        parser.error("--step must be positive")

    try:
        source = decode_source(Path(args.path).read_bytes())
        print(f"SCRIPT:\n\n{source}\n")
        if args.show_ast:
            print(f"AST:\n\n{parse(source)!r}\n")
        exports = build(source)
    except (BoenthoeError, SyntaxError) as exc:
        print(exc, file=sys.stderr)
        return 1

    times = _times(args.start, args.end, args.step)
    samples = {name: sample(envelope, times).tolist() for name, envelope in exports.items()}
    for i, t in enumerate(times):
        print(f"At {t:.3f}:")
        for name in exports:
            print(f"  {name}: {_format_row(samples[name][i])}")

    if args.json_out:
        out = Path(args.json_out)
        out.parent.mkdir(parents=True, exist_ok=True)
        payload = {"times": times, "exports": samples}
        out.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"\nWrote {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
