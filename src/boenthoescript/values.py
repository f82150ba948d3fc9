"""Compile-time value model produced while resolving a script."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from .ast import Expr
from .envelope import Envelope


class ValueKind(str, Enum):
    SYMBOL = "symbol"
    NUMBER_LIST = "number_list"
    ENVELOPE = "envelope"
    UNRESOLVED = "unresolved"
    NOTHING = "nothing"


@dataclass(frozen=True)
class SymbolValue:
    """A name that resolved to no binding."""

    name: str
    kind: ClassVar[ValueKind] = ValueKind.SYMBOL


@dataclass(frozen=True)
class NumberListValue:
    values: tuple[float, ...]
    kind: ClassVar[ValueKind] = ValueKind.NUMBER_LIST


@dataclass(frozen=True)
class EnvelopeValue:
    envelope: Envelope
    kind: ClassVar[ValueKind] = ValueKind.ENVELOPE


@dataclass(frozen=True)
class Unresolved:
    """The still-unevaluated body returned by a definition statement."""

    body: Expr
    kind: ClassVar[ValueKind] = ValueKind.UNRESOLVED


@dataclass(frozen=True)
class _Nothing:
    kind: ClassVar[ValueKind] = ValueKind.NOTHING

    def __repr__(self) -> str:
        return "NOTHING"


NOTHING = _Nothing()

CompileValue = Union[SymbolValue, NumberListValue, EnvelopeValue, Unresolved, _Nothing]

