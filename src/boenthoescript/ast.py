"""AST nodes for the envelope script language."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

KW_ROOT = ".root"
KW_DEFINE = ".define"
KW_EXPORT = ".export"
KW_ARRAY = ".array"
KW_BLOCK = ".block"


@dataclass(frozen=True)
class Symbol:
    name: str


@dataclass(frozen=True)
class NumberList:
    values: tuple[float, ...]

    @classmethod
    def of(cls, *values: float) -> "NumberList":
        return cls(values=tuple(float(v) for v in values))


@dataclass(frozen=True)
class Form:
    """A call, definition, block or array literal.

    Language constructs use the dotted keywords above; calls use the callee
    name as keyword.
    """

    keyword: str
    args: tuple["Expr", ...] = ()


@dataclass(frozen=True)
class Comment:
    text: str


Expr = Union[Symbol, NumberList, Form, Comment]


def form(keyword: str, *args: Expr) -> Form:
    return Form(keyword=keyword, args=tuple(args))
