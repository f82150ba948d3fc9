"""Timing and host-description helpers shared by the envelope benchmarks."""

from __future__ import annotations

import os
import platform
import statistics
import time
from dataclasses import dataclass
from typing import Any, Callable

import jax
import jax.numpy as jnp


def host_metadata() -> dict[str, Any]:
    return {
        "platform": platform.platform(),
        "python": platform.python_version(),
        "jax": getattr(jax, "__version__", "unknown"),
        "backend": jax.default_backend(),
        "float_dtype": str(jnp.zeros(()).dtype),
        "cpu_count": os.cpu_count(),
    }


def _ready(value: object) -> None:
    # Batch samples are jax arrays and may still be in flight.
    if hasattr(value, "block_until_ready"):
        value.block_until_ready()


@dataclass(frozen=True)
class Timing:
    """Per-call wall time in milliseconds, one entry per timed batch."""

    repeats: int
    samples_ms: tuple[float, ...]

    @property
    def mean_ms(self) -> float:
        return statistics.fmean(self.samples_ms)

    @property
    def stdev_ms(self) -> float:
        if len(self.samples_ms) < 2:
            return 0.0
        return statistics.stdev(self.samples_ms)

    def quantile_ms(self, q: float) -> float:
        if len(self.samples_ms) < 2:
            return self.samples_ms[0]
        cuts = statistics.quantiles(self.samples_ms, n=100, method="inclusive")
        return cuts[min(98, max(0, round(q * 100) - 1))]


def time_call(
    fn: Callable[..., object],
    *args: object,
    target_sample_ms: float = 10.0,
    warmup: int = 2,
    samples: int = 5,
    max_repeats: int = 100_000,
) -> Timing:
    """Time ``fn(*args)``, batching calls so one sample lasts about ``target_sample_ms``."""
    for _ in range(max(0, warmup)):
        _ready(fn(*args))

    start = time.perf_counter()
    _ready(fn(*args))
    once_ms = max((time.perf_counter() - start) * 1e3, 1e-3)
    repeats = max(1, min(max_repeats, int(target_sample_ms / once_ms)))

    rows: list[float] = []
    for _ in range(max(1, samples)):
        start = time.perf_counter()
        for _ in range(repeats):
            _ready(fn(*args))
        rows.append((time.perf_counter() - start) * 1e3 / repeats)
    return Timing(repeats=repeats, samples_ms=tuple(rows))
