"""Command-line parser for a small Unix-style shell.

The grammar covers simple commands with arguments, input and output
redirection (``<``, ``>``, ``>>``), pipelines (``|``), sequences
(``;``), background jobs (``&``) and parenthesised blocks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Union

O_RDONLY = 0x000
O_WRONLY = 0x001
O_RDWR = 0x002
O_CREATE = 0x200

MAXARGS = 10

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"
_SINGLE_CHAR_TOKENS = "|();&<"

WORD = "a"
APPEND = "+"
END = ""


class ShellSyntaxError(ValueError):
    """Raised when a command line cannot be parsed."""

    def __init__(self, message: str, leftovers: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.leftovers = leftovers


@dataclass
class ExecCmd:
    """A program name followed by its arguments."""

    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    """Run ``cmd`` with descriptor ``fd`` reopened on ``file``."""

    cmd: "Command"
    file: str
    mode: int
    fd: int


@dataclass
class PipeCmd:
    """Connect the output of ``left`` to the input of ``right``."""

    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    """Run ``left`` to completion, then ``right``."""

    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    """Run ``cmd`` without waiting for it."""

    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]


class Token(NamedTuple):
    """A lexical token: ``kind`` is the symbol, ``"a"`` for a word,
    ``"+"`` for ``>>`` or ``""`` at the end of input."""

    kind: str
    text: str


class Scanner:
    """Splits a command line into tokens."""

    def __init__(self, text: str) -> None:
        end = text.find("\0")
        self.text = text if end < 0 else text[:end]
        self.pos = 0

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    @property
    def rest(self) -> str:
        return self.text[self.pos:]

    def _skip_whitespace(self) -> None:
        while not self.at_end and self.text[self.pos] in WHITESPACE:
            self.pos += 1

    def peek(self, toks: str) -> bool:
        """Skip whitespace; tell whether the next character is one of ``toks``."""
        self._skip_whitespace()
        return not self.at_end and self.text[self.pos] in toks

    def next_token(self) -> Token:
        """Consume and return the next token."""
        self._skip_whitespace()
        start = self.pos
        if self.at_end:
            kind = END
        else:
            c = self.text[self.pos]
            if c in _SINGLE_CHAR_TOKENS:
                kind = c
                self.pos += 1
            elif c == ">":
                kind = ">"
                self.pos += 1
                if not self.at_end and self.text[self.pos] == ">":
                    kind = APPEND
                    self.pos += 1
            else:
                kind = WORD
                while (
                    not self.at_end
                    and self.text[self.pos] not in WHITESPACE
                    and self.text[self.pos] not in SYMBOLS
                ):
                    self.pos += 1
        token = Token(kind, self.text[start:self.pos])
        self._skip_whitespace()
        return token


def parse_cmd(line: str) -> Command:
    """Parse a whole command line into a command tree."""
    scanner = Scanner(line)
    cmd = _parse_line(scanner)
    scanner.peek("")
    if not scanner.at_end:
        raise ShellSyntaxError("syntax", leftovers=scanner.rest)
    return cmd


def _parse_line(scanner: Scanner) -> Command:
    cmd = _parse_pipe(scanner)
    while scanner.peek("&"):
        scanner.next_token()
        cmd = BackCmd(cmd)
    if scanner.peek(";"):
        scanner.next_token()
        cmd = ListCmd(cmd, _parse_line(scanner))
    return cmd


def _parse_pipe(scanner: Scanner) -> Command:
    cmd = _parse_exec(scanner)
    if scanner.peek("|"):
        scanner.next_token()
        cmd = PipeCmd(cmd, _parse_pipe(scanner))
    return cmd


def _parse_redirs(cmd: Command, scanner: Scanner) -> Command:
    while scanner.peek("<>"):
        op = scanner.next_token().kind
        target = scanner.next_token()
        if target.kind != WORD:
            raise ShellSyntaxError("missing file for redirection")
        if op == "<":
            cmd = RedirCmd(cmd, target.text, O_RDONLY, 0)
        else:
            cmd = RedirCmd(cmd, target.text, O_WRONLY | O_CREATE, 1)
    return cmd


def _parse_block(scanner: Scanner) -> Command:
    if not scanner.peek("("):
        raise ShellSyntaxError("parseblock")
    scanner.next_token()
    cmd = _parse_line(scanner)
    if not scanner.peek(")"):
        raise ShellSyntaxError("syntax - missing )")
    scanner.next_token()
    return _parse_redirs(cmd, scanner)


def _parse_exec(scanner: Scanner) -> Command:
    if scanner.peek("("):
        return _parse_block(scanner)
    exec_cmd = ExecCmd()
    ret = _parse_redirs(exec_cmd, scanner)
    while not scanner.peek("|)&;"):
        token = scanner.next_token()
        if token.kind == END:
            break
        if token.kind != WORD:
            raise ShellSyntaxError("syntax")
        exec_cmd.argv.append(token.text)
        if len(exec_cmd.argv) >= MAXARGS:
            raise ShellSyntaxError("too many args")
        ret = _parse_redirs(ret, scanner)
    return ret