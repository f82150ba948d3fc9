"""Host-facing entry points: build from source, load from disk, sample by name."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Final

from .ast import Form
from .compiler import build as build_ast
from .envelope import Envelope, duration_of, value_at
from .errors import ScriptEncodingError, ScriptParseError
from .parser import ParseError, parse
from .vector import Vector

_PARSE_CACHE_MAX: Final[int] = max(1, int(os.environ.get("BOENTHOESCRIPT_PARSE_CACHE_MAX", "256")))


@lru_cache(maxsize=_PARSE_CACHE_MAX)
def _parse_cached(source: str) -> Form:
    return parse(source)


def parse_cache_info():
    return _parse_cached.cache_info()


def build(source: str) -> dict[str, Envelope]:
    """Parse and compile ``source``; return the exported envelopes by name."""
    try:
        ast = _parse_cached(source)
    except ParseError as exc:
        raise ScriptParseError.from_parse_error(exc) from exc
    return build_ast(ast)


def decode_source(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ScriptEncodingError(valid_up_to=exc.start) from exc


def load(path: str | os.PathLike[str]) -> "Script":
    return Script(build(decode_source(Path(path).read_bytes())))


@dataclass
class Script:
    """Compiled exports plus the values sampled at the last ``set_time``."""

    envelopes: Mapping[str, Envelope]
    state: dict[str, Vector] = field(default_factory=dict)
    time: float | None = None

    @classmethod
    def from_source(cls, source: str) -> "Script":
        return cls(build(source))

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self.envelopes)

    def duration(self) -> float:
        return max((duration_of(e) for e in self.envelopes.values()), default=0.0)

    def set_time(self, time: float) -> None:
        self.time = time
        for name, envelope in self.envelopes.items():
            self.state[name] = value_at(envelope, time)

    def get(self, name: str) -> Vector:
        value = self.state.get(name)
        if value is None:
            return Vector.zero()
        return value

    def __getitem__(self, name: str) -> Vector:
        return self.get(name)
