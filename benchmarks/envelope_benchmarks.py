"""Benchmark script compilation and envelope evaluation against composition depth."""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Callable

from boenthoescript import build, sample, value_at
from _bench_utils import Timing, host_metadata, time_call


@dataclass(frozen=True)
class BenchCase:
    section: str
    name: str
    source_builder: Callable[[int], str]


@dataclass(frozen=True)
class BenchRow:
    section: str
    name: str
    depth: int
    mean_ms: float
    stdev_ms: float
    p50_ms: float
    p95_ms: float
    repeats: int
    samples: int


def _nested_concat(depth: int) -> str:
    expr = "linear(0, 1, 1)"
    for _ in range(depth):
        expr = f"concat(hold(0, 0.5), {expr})"
    return f"out curve = {expr}\n"


def _nested_repeat(depth: int) -> str:
    expr = "linear([0, 0, 0], [1, 2, 3], 1)"
    for _ in range(depth):
        expr = f"repeat(2, {expr})"
    return f"out curve = loop({expr})\n"


def _partial_chain(depth: int) -> str:
    lines = ["p0 = linear(0)"]
    for i in range(1, depth + 1):
        lines.append(f"p{i} = p{i - 1}()")
    lines.append(f"out curve = p{depth}(1, 2)")
    return "\n".join(lines) + "\n"


CASES = (
    BenchCase("concat", "nested_concat", _nested_concat),
    BenchCase("repeat", "nested_repeat_loop", _nested_repeat),
    BenchCase("partial", "partial_chain", _partial_chain),
)


def _depths_from_arg(raw: str) -> tuple[int, ...]:
    out = tuple(int(part) for part in raw.split(",") if part.strip())
    if not out:
        raise ValueError("at least one depth must be provided")
    return out


def _row(section: str, name: str, depth: int, timing: Timing) -> BenchRow:
    return BenchRow(
        section=section,
        name=name,
        depth=depth,
        mean_ms=timing.mean_ms,
        stdev_ms=timing.stdev_ms,
        p50_ms=timing.quantile_ms(0.5),
        p95_ms=timing.quantile_ms(0.95),
        repeats=timing.repeats,
        samples=len(timing.samples_ms),
    )


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--depths", default="1,8,32", help="comma-separated composition depths")
    parser.add_argument("--samples", type=int, default=5, help="timing samples per case")
    parser.add_argument("--warmup", type=int, default=2, help="warmup rounds before timing")
    parser.add_argument("--points", type=int, default=256, help="time points per batch sample")
    parser.add_argument("--json-out", default="", help="optional path for machine-readable output")
    args = parser.parse_args()

    times = [i / 64 for i in range(args.points)]
    results: list[BenchRow] = []
    for case in CASES:
        for depth in _depths_from_arg(args.depths):
            source = case.source_builder(depth)
            timed = {"samples": args.samples, "warmup": args.warmup}
            results.append(_row(case.section, f"{case.name}:build", depth, time_call(build, source, **timed)))
            curve = build(source)["curve"]
            results.append(_row(case.section, f"{case.name}:value", depth, time_call(value_at, curve, 3.25, **timed)))
            results.append(_row(case.section, f"{case.name}:sample", depth, time_call(sample, curve, times, **timed)))

    print(f"{'section':<10} {'case':<28} {'depth':>5} {'mean ms':>10} {'p95 ms':>10}")
    for row in results:
        print(f"{row.section:<10} {row.name:<28} {row.depth:>5} {row.mean_ms:>10.4f} {row.p95_ms:>10.4f}")

    if args.json_out:
        out = Path(args.json_out)
        out.parent.mkdir(parents=True, exist_ok=True)
        payload = {"host": host_metadata(), "rows": [asdict(row) for row in results]}
        out.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Wrote {out}")


if __name__ == "__main__":
    main()
