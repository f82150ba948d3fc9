"""Envelope runtime: composable pure functions of time.

The variant set is closed (hold, linear, concat, repeat, loop), so evaluation
is a single exhaustive switch in :func:`duration_of` and :func:`value_at`
rather than per-class overrides.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Union

import jax.numpy as jnp

from .vector import VECTOR_LENGTH, Vector


class _EnvelopeOps:
    __slots__ = ()

    def duration(self) -> float:
        return duration_of(self)  # type: ignore[arg-type]

    def value(self, time: float) -> Vector:
        return value_at(self, time)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Hold(_EnvelopeOps):
    length: float
    level: Vector


@dataclass(frozen=True)
class Linear(_EnvelopeOps):
    length: float
    start: Vector
    end: Vector


@dataclass(frozen=True)
class Concat(_EnvelopeOps):
    parts: tuple["Envelope", ...]
    total: float = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "total", sum((duration_of(p) for p in self.parts), 0.0))


@dataclass(frozen=True)
class Repeat(_EnvelopeOps):
    count: int
    body: "Envelope"
    total: float = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "total", duration_of(self.body) * self.count)


@dataclass(frozen=True)
class Loop(_EnvelopeOps):
    body: "Envelope"


Envelope = Union[Hold, Linear, Concat, Repeat, Loop]


def _wrap(time: float, period: float) -> float:
    if period == 0:
        return 0.0
    return math.fmod(time, period)


def duration_of(envelope: Envelope) -> float:
    if isinstance(envelope, (Hold, Linear)):
        return envelope.length
    if isinstance(envelope, (Concat, Repeat)):
        return envelope.total
    if isinstance(envelope, Loop):
        return math.inf
    raise TypeError(f"Unsupported envelope: {type(envelope)!r}")


def value_at(envelope: Envelope, time: float) -> Vector:
    if isinstance(envelope, Hold):
        return envelope.level

    if isinstance(envelope, Linear):
        if envelope.length == 0:
            return envelope.end
        progress = min(time / envelope.length, 1.0)
        return envelope.start + (envelope.end - envelope.start).scale(progress)

    if isinstance(envelope, Concat):
        if not envelope.parts:
            return Vector.zero()
        before = 0.0
        for part in envelope.parts:
            end = before + duration_of(part)
            if time < end:
                return value_at(part, time - before)
            before = end
        # Past the end: the last part clamps on its own.
        last = envelope.parts[-1]
        return value_at(last, time - (before - duration_of(last)))

    if isinstance(envelope, Repeat):
        if time > envelope.total:
            return value_at(envelope.body, time)
        return value_at(envelope.body, _wrap(time, duration_of(envelope.body)))

    if isinstance(envelope, Loop):
        return value_at(envelope.body, _wrap(time, duration_of(envelope.body)))

    raise TypeError(f"Unsupported envelope: {type(envelope)!r}")


def sample(envelope: Envelope, times: Iterable[float]):
    """Evaluate ``envelope`` at every time, as a ``(len(times), 4)`` jax array.

    Values are computed in double precision and converted once, so the
    array carries jax's default float dtype.
    """
    rows = [value_at(envelope, float(t)).tolist() for t in times]
    if not rows:
        return jnp.zeros((0, VECTOR_LENGTH))
    return jnp.asarray(rows)


def hold(duration: float, value: Vector) -> Hold:
    return Hold(length=duration, level=value)


def linear(duration: float, start: Vector, end: Vector) -> Linear:
    return Linear(length=duration, start=start, end=end)


def concat(parts: Iterable[Envelope]) -> Concat:
    return Concat(parts=tuple(parts))


def repeat(count: int, body: Envelope) -> Repeat:
    return Repeat(count=count, body=body)


def loop(body: Envelope) -> Loop:
    return Loop(body=body)
