"""Tokenization for the envelope script language."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    pos: int
    end: int
    # Whitespace between the previous token and this one; a call's "(" and the
    # name after "out" must stay on the same line as what precedes them.
    spaced: bool = False
    line_break: bool = False


class LexError(SyntaxError):
    def __init__(self, message: str, pos: int, expected: tuple[str, ...] = (), found: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.pos = pos
        self.expected = expected
        self.found = found


_SINGLE_TOKENS = {
    "(": "LPAREN",
    ")": "RPAREN",
    "{": "LBRACE",
    "}": "RBRACE",
    "[": "LBRACK",
    "]": "RBRACK",
    ",": "COMMA",
    "=": "EQUALS",
    ";": "SEMI",
}

_INLINE_SPACE = {" ", "\t"}
_LINE_BREAKS = {"\n", "\r"}
_DIGITS = set("0123456789")
_LETTERS = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")
_SYMBOL_BODY = _LETTERS | _DIGITS | {".", "_"}


def line_col(source: str, pos: int) -> tuple[int, int]:
    """1-based line and column of a character offset."""
    pos = max(0, min(pos, len(source)))
    line = source.count("\n", 0, pos) + 1
    last_break = source.rfind("\n", 0, pos)
    return line, pos - last_break


def _scan_while(source: str, start: int, allowed: set[str]) -> int:
    i = start
    while i < len(source) and source[i] in allowed:
        i += 1
    return i


def _scan_number(source: str, start: int) -> int:
    i = start
    if source[i] in {"+", "-"}:
        i += 1
    int_end = _scan_while(source, i, _DIGITS)
    if int_end == i:
        found = source[i] if i < len(source) else "EOF"
        raise LexError(f"Invalid numeric literal {source[start:i + 1]!r}", start, expected=("digit",), found=found)
    i = int_end
    if i < len(source) and source[i] == ".":
        frac_end = _scan_while(source, i + 1, _DIGITS)
        if frac_end == i + 1:
            found = source[frac_end] if frac_end < len(source) else "EOF"
            raise LexError(f"Invalid numeric literal {source[start:frac_end]!r}", start, expected=("digit",), found=found)
        i = frac_end
    return i


def tokenize(source: str) -> list[Token]:
    tokens: list[Token] = []
    i = 0
    spaced = False
    line_break = False

    while i < len(source):
        ch = source[i]

        if ch in _INLINE_SPACE:
            spaced = True
            i += 1
            continue

        if ch in _LINE_BREAKS:
            spaced = True
            line_break = True
            i += 1
            continue

        if source.startswith("//", i):
            start = i
            while i < len(source) and source[i] != "\n":
                i += 1
            text = source[start + 2 : i]
            tokens.append(Token("COMMENT", text.rstrip("\r"), start, i, spaced, line_break))
            # The terminating newline belongs to the comment.
            if i < len(source):
                i += 1
            spaced = True
            line_break = True
            continue

        if ch in _SINGLE_TOKENS:
            tokens.append(Token(_SINGLE_TOKENS[ch], ch, i, i + 1, spaced, line_break))
            i += 1
        elif ch in _DIGITS or ch in {"+", "-"}:
            end = _scan_number(source, i)
            tokens.append(Token("NUMBER", source[i:end], i, end, spaced, line_break))
            i = end
        elif ch in _LETTERS:
            end = _scan_while(source, i + 1, _SYMBOL_BODY)
            tokens.append(Token("SYMBOL", source[i:end], i, end, spaced, line_break))
            i = end
        else:
            raise LexError(f"Unexpected character {ch!r}", i, expected=("expression",), found=ch)

        spaced = False
        line_break = False

    tokens.append(Token("EOF", "", len(source), len(source), spaced, line_break))
    return tokens
