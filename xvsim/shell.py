"""Parsing of shell command lines into a command tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from xvsim.params import OpenFlag

MAXARGS = 10

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"


class ShellSyntaxError(ValueError):
    """The command line cannot be parsed."""


class TokenKind(Enum):
    """Lexical classes of the command language."""

    WORD = "a"
    PIPE = "|"
    LPAREN = "("
    RPAREN = ")"
    SEMI = ";"
    AMP = "&"
    LT = "<"
    GT = ">"
    APPEND = ">>"


@dataclass(frozen=True)
class Token:
    """One token with its text and its offset in the line."""

    kind: TokenKind
    text: str
    start: int


@dataclass
class ExecCmd:
    """Run a program with arguments; an empty argv does nothing."""

    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    """Run cmd with file descriptor fd reopened on file."""

    cmd: "Command"
    file: str
    mode: OpenFlag
    fd: int


@dataclass
class PipeCmd:
    """Connect the output of left to the input of right."""

    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    """Run left to completion, then right."""

    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    """Run cmd without waiting for it."""

    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]

_SINGLE = {
    "|": TokenKind.PIPE,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    ";": TokenKind.SEMI,
    "&": TokenKind.AMP,
    "<": TokenKind.LT,
}


def _terminated(line: str) -> str:
    return line.split("\0", 1)[0]


def tokenize(line: str) -> list[Token]:
    """Split a line into tokens; '>>' is one token, words end at symbols."""
    line = _terminated(line)
    tokens = []
    i, end = 0, len(line)
    while True:
        while i < end and line[i] in WHITESPACE:
            i += 1
        if i >= end:
            return tokens
        start = i
        c = line[i]
        if c in _SINGLE:
            i += 1
            tokens.append(Token(_SINGLE[c], c, start))
        elif c == ">":
            if line.startswith(">>", i):
                i += 2
                tokens.append(Token(TokenKind.APPEND, ">>", start))
            else:
                i += 1
                tokens.append(Token(TokenKind.GT, ">", start))
        else:
            while i < end and line[i] not in WHITESPACE and line[i] not in SYMBOLS:
                i += 1
            tokens.append(Token(TokenKind.WORD, line[start:i], start))


_REDIRS = {TokenKind.LT, TokenKind.GT, TokenKind.APPEND}
_EXEC_STOP = {TokenKind.PIPE, TokenKind.RPAREN, TokenKind.AMP, TokenKind.SEMI}


class _Parser:
    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    @property
    def rest(self) -> Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def peek(self, *kinds: TokenKind) -> bool:
        tok = self.rest
        return tok is not None and tok.kind in kinds

    def take(self) -> Token | None:
        tok = self.rest
        if tok is not None:
            self._pos += 1
        return tok

    def line(self) -> Command:
        cmd = self.pipe()
        while self.peek(TokenKind.AMP):
            self.take()
            cmd = BackCmd(cmd)
        if self.peek(TokenKind.SEMI):
            self.take()
            cmd = ListCmd(cmd, self.line())
        return cmd

    def pipe(self) -> Command:
        cmd = self.exec()
        if self.peek(TokenKind.PIPE):
            self.take()
            cmd = PipeCmd(cmd, self.pipe())
        return cmd

    def redirs(self, cmd: Command) -> Command:
        while self.peek(*_REDIRS):
            op = self.take()
            target = self.take()
            if target is None or target.kind is not TokenKind.WORD:
                raise ShellSyntaxError("missing file for redirection")
            if op.kind is TokenKind.LT:
                cmd = RedirCmd(cmd, target.text, OpenFlag.RDONLY, 0)
            else:
                cmd = RedirCmd(cmd, target.text, OpenFlag.WRONLY | OpenFlag.CREATE, 1)
        return cmd

    def block(self) -> Command:
        if not self.peek(TokenKind.LPAREN):
            raise ShellSyntaxError("parseblock")
        self.take()
        cmd = self.line()
        if not self.peek(TokenKind.RPAREN):
            raise ShellSyntaxError("syntax - missing )")
        self.take()
        return self.redirs(cmd)

    def exec(self) -> Command:
        if self.peek(TokenKind.LPAREN):
            return self.block()
        node = ExecCmd()
        cmd = self.redirs(node)
        while not self.peek(*_EXEC_STOP):
            tok = self.take()
            if tok is None:
                break
            if tok.kind is not TokenKind.WORD:
                raise ShellSyntaxError("syntax")
            node.argv.append(tok.text)
            if len(node.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            cmd = self.redirs(cmd)
        return cmd


def parse_command(line: str) -> Command:
    """Parse a whole command line; anything left unparsed is an error."""
    line = _terminated(line)
    parser = _Parser(tokenize(line))
    cmd = parser.line()
    leftover = parser.rest
    if leftover is not None:
        raise ShellSyntaxError(f"leftovers: {line[leftover.start:]}")
    return cmd