"""Compiler from parsed scripts to envelope objects.

Names are resolved by reference: a bound symbol recompiles its stored body at
every use, against the scope of the use site. Blocks open a child scope, the
top-level program shares one scope across all of its statements.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator, Mapping, MutableMapping
from dataclasses import dataclass
from typing import Callable, Final

from . import envelope as env
from .ast import KW_ARRAY, KW_BLOCK, KW_DEFINE, KW_EXPORT, KW_ROOT, Comment, Expr, Form, NumberList, Symbol
from .envelope import Envelope
from .errors import (
    CyclicDefinitionError,
    FunctionNotFoundError,
    InvalidRepeatCountError,
    InvalidTypeError,
    MissingArgumentError,
    NotPartialError,
    VariableNotFoundError,
)
from .values import NOTHING, CompileValue, EnvelopeValue, NumberListValue, SymbolValue, Unresolved
from .vector import Vector

logger = logging.getLogger("boenthoescript.compiler")
logger.addHandler(logging.NullHandler())

STD_HOLD: Final[str] = "hold"
STD_LINEAR: Final[str] = "linear"
STD_CONCAT: Final[str] = "concat"
STD_REPEAT: Final[str] = "repeat"
STD_LOOP: Final[str] = "loop"


@dataclass(frozen=True, eq=False)
class Binding:
    body: Expr
    is_exported: bool = False


Active = frozenset  # bindings currently being resolved, compared by identity


@dataclass(frozen=True)
class _Bound:
    """An argument carried into a partial application with its own resolution context."""

    expr: Expr
    active: Active


class Scope(MutableMapping[str, Binding]):
    """Bindings of one block, chained to the enclosing block's scope."""

    def __init__(self, data: Mapping[str, Binding] | None = None, parent: "Scope | None" = None) -> None:
        self.data: dict[str, Binding] = {} if data is None else dict(data)
        self.parent = parent

    def __getitem__(self, key: str) -> Binding:
        binding = self.lookup(key)
        if binding is None:
            raise KeyError(key)
        return binding

    def __setitem__(self, key: str, value: Binding) -> None:
        self.data[key] = value

    def __delitem__(self, key: str) -> None:
        del self.data[key]

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        current: Scope | None = self
        while current is not None:
            for name in current.data:
                if name not in seen:
                    seen.add(name)
                    yield name
            current = current.parent

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.lookup(key) is not None

    def lookup(self, name: str) -> Binding | None:
        current: Scope | None = self
        while current is not None:
            binding = current.data.get(name)
            if binding is not None:
                return binding
            current = current.parent
        return None

    def child(self) -> "Scope":
        return Scope(parent=self)

    def define(self, name: str, body: Expr, *, exported: bool = False) -> Binding:
        binding = Binding(body=body, is_exported=exported)
        self.data[name] = binding
        return binding

    def exports(self) -> dict[str, Binding]:
        return {name: binding for name, binding in self.data.items() if binding.is_exported}


def _unwrap(expr: Expr | _Bound) -> Expr:
    while isinstance(expr, _Bound):
        expr = expr.expr
    return expr


def compile_expr(expr: Expr | _Bound, scope: Scope, active: Active = Active()) -> CompileValue:
    if isinstance(expr, _Bound):
        return compile_expr(expr.expr, scope, expr.active)

    if isinstance(expr, Symbol):
        binding = scope.lookup(expr.name)
        if binding is None:
            return SymbolValue(expr.name)
        if binding in active:
            raise CyclicDefinitionError(expr.name)
        return compile_expr(binding.body, scope, active | {binding})

    if isinstance(expr, NumberList):
        return NumberListValue(expr.values)

    if isinstance(expr, Form):
        return _compile_form(expr.keyword, expr.args, scope, active)

    if isinstance(expr, Comment):
        return NOTHING

    raise TypeError(f"Unsupported expression node: {type(expr)!r}")


def _compile_form(keyword: str, args: tuple, scope: Scope, active: Active) -> CompileValue:
    if keyword == KW_ROOT:
        return _block(args, scope, active)
    if keyword == KW_BLOCK:
        return _block(args, scope.child(), active)
    if keyword == KW_DEFINE:
        return _define(keyword, args, scope, active, exported=False)
    if keyword == KW_EXPORT:
        return _define(keyword, args, scope, active, exported=True)
    if keyword == KW_ARRAY:
        return _number_list(args, scope, active)

    std = _STANDARD_LIBRARY.get(keyword)
    if std is not None:
        return EnvelopeValue(std(keyword, args, scope, active))

    return _apply_partial(keyword, args, scope, active)


def _block(args: tuple, scope: Scope, active: Active) -> CompileValue:
    result: CompileValue = NOTHING
    for expr in args:
        result = compile_expr(expr, scope, active)
    return result


def _define(keyword: str, args: tuple, scope: Scope, active: Active, *, exported: bool) -> CompileValue:
    name = _arg_name(keyword, args, 0, scope, active)
    body = _unwrap(_arg(keyword, args, 1))
    scope.define(name, body, exported=exported)
    return Unresolved(body)


def _number_list(args: tuple, scope: Scope, active: Active) -> CompileValue:
    out: list[float] = []
    for expr in args:
        value = compile_expr(expr, scope, active)
        if not isinstance(value, NumberListValue):
            raise InvalidTypeError("NumberList", value)
        out.extend(value.values)
    return NumberListValue(tuple(out))


def _apply_partial(keyword: str, args: tuple, scope: Scope, active: Active) -> CompileValue:
    binding = scope.lookup(keyword)
    if binding is None:
        raise FunctionNotFoundError(keyword)
    if binding in active:
        raise CyclicDefinitionError(keyword)
    stored = binding.body
    if not isinstance(stored, Form):
        raise NotPartialError(stored)

    inner = active | {binding}
    merged = tuple(_Bound(arg, inner) for arg in stored.args) + tuple(
        arg if isinstance(arg, _Bound) else _Bound(arg, active) for arg in args
    )
    logger.debug("partial application %s -> %s with %d stored and %d new arguments", keyword, stored.keyword, len(stored.args), len(args))
    return _compile_form(stored.keyword, merged, scope, inner)


# Argument helpers


def _arg(function: str, args: tuple, index: int) -> Expr | _Bound:
    if index >= len(args):
        raise MissingArgumentError(function, index)
    return args[index]


def _arg_name(function: str, args: tuple, index: int, scope: Scope, active: Active) -> str:
    expr = _arg(function, args, index)
    plain = _unwrap(expr)
    if isinstance(plain, Symbol):
        return plain.name
    value = compile_expr(expr, scope, active)
    if isinstance(value, SymbolValue):
        return value.name
    raise InvalidTypeError("Symbol", value)


def _arg_number(function: str, args: tuple, index: int, scope: Scope, active: Active) -> float:
    value = compile_expr(_arg(function, args, index), scope, active)
    if isinstance(value, NumberListValue) and len(value.values) == 1:
        return value.values[0]
    if isinstance(value, SymbolValue):
        raise VariableNotFoundError(value.name)
    raise InvalidTypeError("Number", value)


def _arg_number_list(function: str, args: tuple, index: int, scope: Scope, active: Active) -> tuple[float, ...]:
    value = compile_expr(_arg(function, args, index), scope, active)
    if isinstance(value, NumberListValue):
        return value.values
    if isinstance(value, SymbolValue):
        raise VariableNotFoundError(value.name)
    raise InvalidTypeError("NumberList", value)


def _as_envelope(value: CompileValue) -> Envelope:
    if isinstance(value, EnvelopeValue):
        return value.envelope
    if isinstance(value, SymbolValue):
        raise VariableNotFoundError(value.name)
    raise InvalidTypeError("Envelope", value)


def _arg_envelope(function: str, args: tuple, index: int, scope: Scope, active: Active) -> Envelope:
    return _as_envelope(compile_expr(_arg(function, args, index), scope, active))


# Standard library


def _std_hold(name: str, args: tuple, scope: Scope, active: Active) -> Envelope:
    value = _arg_number_list(name, args, 0, scope, active)
    duration = _arg_number(name, args, 1, scope, active)
    return env.hold(duration, Vector.from_values(value))


def _std_linear(name: str, args: tuple, scope: Scope, active: Active) -> Envelope:
    start = _arg_number_list(name, args, 0, scope, active)
    end = _arg_number_list(name, args, 1, scope, active)
    duration = _arg_number(name, args, 2, scope, active)
    return env.linear(duration, Vector.from_values(start), Vector.from_values(end))


def _std_concat(name: str, args: tuple, scope: Scope, active: Active) -> Envelope:
    parts: list[Envelope] = []
    for arg in args:
        # Unlike the positional helpers, a free name here is a type error.
        value = compile_expr(arg, scope, active)
        if not isinstance(value, EnvelopeValue):
            raise InvalidTypeError("Envelope", value)
        parts.append(value.envelope)
    return env.concat(parts)


def _repeat_count(count: float) -> int:
    if not math.isfinite(count) or count < 0:
        raise InvalidRepeatCountError(count)
    return math.trunc(count)


def _std_repeat(name: str, args: tuple, scope: Scope, active: Active) -> Envelope:
    count = _repeat_count(_arg_number(name, args, 0, scope, active))
    body = _arg_envelope(name, args, 1, scope, active)
    return env.repeat(count, body)


def _std_loop(name: str, args: tuple, scope: Scope, active: Active) -> Envelope:
    return env.loop(_arg_envelope(name, args, 0, scope, active))


_STANDARD_LIBRARY: Final[dict[str, Callable[[str, tuple, Scope, Active], Envelope]]] = {
    STD_HOLD: _std_hold,
    STD_LINEAR: _std_linear,
    STD_CONCAT: _std_concat,
    STD_REPEAT: _std_repeat,
    STD_LOOP: _std_loop,
}


def build(ast: Expr) -> dict[str, Envelope]:
    """Compile a parsed script and return its exported envelopes.

    The whole script is compiled first so every top-level definition is
    visible, then each export is recompiled against a child of the final
    top-level scope and must produce an envelope.
    """
    root = Scope()
    compile_expr(ast, root)

    exports: dict[str, Envelope] = {}
    for name, binding in root.exports().items():
        value = compile_expr(binding.body, root.child(), Active({binding}))
        if not isinstance(value, EnvelopeValue):
            raise InvalidTypeError("Envelope", value)
        exports[name] = value.envelope
        logger.debug("compiled export %s (duration %s)", name, env.duration_of(value.envelope))
    return exports
