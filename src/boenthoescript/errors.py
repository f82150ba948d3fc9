"""Structured error types for parse/build separation."""

from __future__ import annotations

from dataclasses import dataclass

from .parser import ParseError


class BoenthoeError(Exception):
    """Base class for structured boenthoescript errors."""


@dataclass(eq=False)
class ScriptParseError(BoenthoeError):
    """Wraps parser failures with explicit parse-stage typing."""

    message: str
    start: int
    end: int
    line: int
    column: int
    expected: tuple[str, ...] = ()
    found: str | None = None

    @classmethod
    def from_parse_error(cls, err: ParseError) -> "ScriptParseError":
        return cls(
            message=err.message,
            start=err.start,
            end=err.end,
            line=err.line,
            column=err.column,
            expected=err.expected,
            found=err.found,
        )

    def __str__(self) -> str:
        expected = ""
        if self.expected:
            expected = f"; expected {', '.join(self.expected)}"
        found = ""
        if self.found is not None:
            found = f"; found {self.found}"
        return f"Could not parse: {self.message} at line {self.line}, column {self.column}{expected}{found}"


@dataclass(eq=False)
class ScriptEncodingError(BoenthoeError):
    """Script bytes are not valid UTF-8."""

    valid_up_to: int

    def __str__(self) -> str:
        return f"UTF-8 error at byte {self.valid_up_to}"


class BuildError(BoenthoeError):
    """Semantic failure while compiling a parsed script."""


class InvalidTypeError(BuildError):
    def __init__(self, expected: str, actual: object) -> None:
        kind = getattr(actual, "kind", None)
        got = kind.value if kind is not None else type(actual).__name__
        super().__init__(f"Invalid type: expected {expected}, got {got} {actual!r}")
        self.expected = expected
        self.actual = actual
        self.actual_kind = kind


class FunctionNotFoundError(BuildError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Function not found: {name!r}")
        self.name = name


class VariableNotFoundError(BuildError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Variable not found: {name!r}")
        self.name = name


class MissingArgumentError(BuildError):
    def __init__(self, function: str | None = None, index: int | None = None) -> None:
        if function is None:
            message = "Missing argument"
        else:
            message = f"Missing argument {index} for {function!r}"
        super().__init__(message)
        self.function = function
        self.index = index


class NotPartialError(BuildError):
    """A name bound to an atomic value was called like a function."""

    def __init__(self, expr: object) -> None:
        super().__init__(f"Not a partial application: {expr!r}")
        self.expr = expr


class CyclicDefinitionError(BuildError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Definition of {name!r} refers to itself")
        self.name = name


class InvalidRepeatCountError(BuildError):
    def __init__(self, count: float) -> None:
        super().__init__(f"Repeat count must be a finite non-negative number, got {count!r}")
        self.count = count
