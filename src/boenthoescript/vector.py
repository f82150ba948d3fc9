"""Fixed-size numeric value produced by every envelope."""

from __future__ import annotations

import math
import numbers
from collections.abc import Iterable
from typing import Final

import jax.numpy as jnp

VECTOR_LENGTH: Final[int] = 4


def _padded(values: Iterable[float]) -> list[float]:
    out = [float(v) for _, v in zip(range(VECTOR_LENGTH), values)]
    out.extend(0.0 for _ in range(VECTOR_LENGTH - len(out)))
    return out


def _divide(a: float, b: float) -> float:
    # IEEE-754 division, matching what a jax or numpy array would produce.
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a) * math.copysign(1.0, b)


class Vector:
    """Four double-precision slots.

    Shorter inputs are zero-filled, longer inputs are truncated to the first
    four elements. Arithmetic combines two vectors slot by slot and always
    returns a new vector. Slots stay Python floats so authored numbers keep
    full precision; :attr:`array` hands them to jax.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Iterable[float]) -> None:
        values = tuple(float(v) for v in data)
        if len(values) != VECTOR_LENGTH:
            raise ValueError(f"Vector data must have {VECTOR_LENGTH} elements, got {len(values)}")
        self._data = values

    @classmethod
    def zero(cls) -> "Vector":
        return cls((0.0,) * VECTOR_LENGTH)

    @classmethod
    def from_scalar(cls, value: float) -> "Vector":
        return cls(_padded((value,)))

    @classmethod
    def from_values(cls, values: Iterable[float]) -> "Vector":
        return cls(_padded(values))

    @property
    def array(self):
        """The slots as a jax array in jax's default float dtype."""
        return jnp.asarray(self._data)

    def x(self) -> float:
        return self._data[0]

    def xy(self) -> tuple[float, float]:
        return self._data[0], self._data[1]

    def xyz(self) -> tuple[float, float, float]:
        return self._data[0], self._data[1], self._data[2]

    def xyzw(self) -> tuple[float, float, float, float]:
        a, b, c, d = self._data
        return a, b, c, d

    def tolist(self) -> list[float]:
        return list(self._data)

    def scale(self, factor: float) -> "Vector":
        return Vector(v * factor for v in self._data)

    def __add__(self, other: "Vector") -> "Vector":
        if not isinstance(other, Vector):
            return NotImplemented
        return Vector(a + b for a, b in zip(self._data, other._data))

    def __sub__(self, other: "Vector") -> "Vector":
        if not isinstance(other, Vector):
            return NotImplemented
        return Vector(a - b for a, b in zip(self._data, other._data))

    def __mul__(self, other: "Vector | float") -> "Vector":
        if isinstance(other, Vector):
            return Vector(a * b for a, b in zip(self._data, other._data))
        if isinstance(other, numbers.Real):
            return self.scale(float(other))
        return NotImplemented

    def __rmul__(self, other: float) -> "Vector":
        if isinstance(other, numbers.Real):
            return self.scale(float(other))
        return NotImplemented

    def __truediv__(self, other: "Vector") -> "Vector":
        if not isinstance(other, Vector):
            return NotImplemented
        return Vector(_divide(a, b) for a, b in zip(self._data, other._data))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    def __iter__(self):
        return iter(self._data)

    def __len__(self) -> int:
        return VECTOR_LENGTH

    def __repr__(self) -> str:
        return f"Vector({', '.join(repr(v) for v in self._data)})"
