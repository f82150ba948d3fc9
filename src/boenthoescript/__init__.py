"""boenthoescript public API."""

from .ast import Comment, Expr, Form, NumberList, Symbol
from .compiler import Binding, Scope, compile_expr
from .envelope import Concat, Envelope, Hold, Linear, Loop, Repeat, duration_of, sample, value_at
from .errors import (
    BoenthoeError,
    BuildError,
    CyclicDefinitionError,
    FunctionNotFoundError,
    InvalidRepeatCountError,
    InvalidTypeError,
    MissingArgumentError,
    NotPartialError,
    ScriptEncodingError,
    ScriptParseError,
    VariableNotFoundError,
)
from .parser import ParseError, parse, parse_expr_list, parse_expression
from .script import Script, build, load
from .vector import Vector

__all__ = [
    "parse",
    "parse_expression",
    "parse_expr_list",
    "ParseError",
    "build",
    "load",
    "Script",
    "compile_expr",
    "Scope",
    "Binding",
    "Expr",
    "Symbol",
    "NumberList",
    "Form",
    "Comment",
    "Envelope",
    "Hold",
    "Linear",
    "Concat",
    "Repeat",
    "Loop",
    "duration_of",
    "value_at",
    "sample",
    "Vector",
    "BoenthoeError",
    "BuildError",
    "ScriptParseError",
    "ScriptEncodingError",
    "InvalidTypeError",
    "FunctionNotFoundError",
    "VariableNotFoundError",
    "MissingArgumentError",
    "NotPartialError",
    "CyclicDefinitionError",
    "InvalidRepeatCountError",
]
