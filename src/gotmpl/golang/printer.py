"""Printer - renders validated Go source with space indentation.

Two backends:
- GofmtPrinter runs the Go toolchain's own formatter and converts its tab
  indentation to spaces.
- BuiltinPrinter re-indents by bracket depth without touching anything
  else on a line.

Lines that begin inside a multi-line raw string or block comment are
never modified, so literal text survives printing byte for byte.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Set, Tuple

from gotmpl.config import FormatterConfig
from gotmpl.golang.lexer import CLOSERS, OPENERS, GoSyntaxError, Token, TokenKind, tokenize

log = logging.getLogger(__name__)

# gofmt reports "<standard input>:LINE:COL: message" per error.
GOFMT_DIAGNOSTIC = re.compile(r"^[^:]*:(\d+):(\d+): (.*)$")


def _line_starts(src: str) -> List[int]:
    starts = [0]
    for i, ch in enumerate(src):
        if ch == "\n":
            starts.append(i + 1)
    return starts


def verbatim_lines(tokens: List[Token]) -> Set[int]:
    """Return the 1-based numbers of lines that begin inside a token."""
    lines: Set[int] = set()
    for token in tokens:
        if token.kind in (TokenKind.RAW_STRING, TokenKind.COMMENT):
            newlines = token.value.count("\n")
            lines.update(range(token.line + 1, token.line + newlines + 1))
    return lines


def _squeeze(lines: List[Tuple[str, bool]]) -> str:
    """Join lines, collapsing blank runs outside multi-line tokens."""
    out: List[Tuple[str, bool]] = []
    previous_blank = True  # drops leading blank lines
    for text, verbatim in lines:
        blank = not verbatim and not text
        if blank and previous_blank:
            continue
        previous_blank = blank
        out.append((text, verbatim))
    while out and not out[-1][0] and not out[-1][1]:
        out.pop()
    return "\n".join(text for text, _ in out) + "\n"


class Printer(ABC):
    """Base class for Go source printers."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    @abstractmethod
    def format(self, src: str) -> str:
        """Return the printed form of src.

        Raises:
            GoSyntaxError: If the backend rejects the source.
        """
        pass

    def check(self, src: str) -> None:
        """Validate src without printing it; backends may skip this.

        Raises:
            GoSyntaxError: If the backend rejects the source.
        """


class BuiltinPrinter(Printer):
    """Bracket-depth indentation printer.

    - a line is indented one level deeper than the line that opened the
      innermost unclosed bracket
    - a line starting with a closing bracket aligns with its opener
    - ``case``/``default`` clauses align with their switch
    - a trailing explicit semicolon and trailing blanks are removed
    - runs of blank lines collapse to one
    """

    def format(self, src: str) -> str:
        tokens = tokenize(src)
        verbatim = verbatim_lines(tokens)
        starts = _line_starts(src)

        by_line: Dict[int, List[Token]] = {}
        for token in tokens:
            if token.kind is TokenKind.EOF or token.implicit:
                continue
            by_line.setdefault(token.line, []).append(token)

        stack: List[Tuple[str, int]] = []  # (opener, level of the line it opened on)
        lines: List[Tuple[str, bool]] = []
        level = 0
        for number, start in enumerate(starts, 1):
            end = starts[number] - 1 if number < len(starts) else len(src)
            text = src[start:end]
            line_tokens = by_line.get(number, [])

            if number in verbatim:
                # Continuation of a raw string or comment keeps its level
                # for any brackets that follow it on this line.
                lines.append((text, True))
            else:
                level = self._level(line_tokens, stack)
                text = self._strip_semicolon(text, line_tokens, start)
                if (number + 1) in verbatim:
                    body = text.lstrip(" \t")
                else:
                    body = text.strip(" \t\r")
                lines.append((" " * (self.indent * level) + body if body else "", False))

            for token in line_tokens:
                if token.kind is not TokenKind.OPERATOR:
                    continue
                if token.value in OPENERS:
                    stack.append((token.value, level))
                elif token.value in CLOSERS and stack:
                    stack.pop()

        return _squeeze(lines)

    def _level(self, line_tokens: List[Token], stack: List[Tuple[str, int]]) -> int:
        if not stack:
            return 0
        opener, base = stack[-1]
        first: Optional[Token] = line_tokens[0] if line_tokens else None
        if first is None:
            return base + 1
        if first.kind is TokenKind.OPERATOR and first.value in CLOSERS:
            return base
        if first.kind is TokenKind.IDENT and first.value in ("case", "default") and opener == "{":
            return base
        return base + 1

    @staticmethod
    def _strip_semicolon(text: str, line_tokens: List[Token], line_start: int) -> str:
        code = [t for t in line_tokens if t.kind is not TokenKind.COMMENT]
        if not code or code[-1].kind is not TokenKind.SEMICOLON:
            return text
        index = code[-1].offset - line_start
        return text[:index].rstrip(" \t") + text[index + 1 :]


class GofmtPrinter(Printer):
    """Formats with the Go toolchain's gofmt, then re-indents with spaces."""

    def __init__(self, command: Optional[List[str]] = None, indent: int = 2):
        super().__init__(indent)
        self.command = list(command or ["gofmt"])

    def format(self, src: str) -> str:
        return respace(self._run(self.command, src), self.indent)

    def check(self, src: str) -> None:
        self._run([*self.command, "-e"], src)

    def _run(self, command: List[str], src: str) -> str:
        try:
            result = subprocess.run(
                command,
                input=src,
                capture_output=True,
                encoding="utf-8",
            )
        except OSError as exc:
            raise GoSyntaxError(f"cannot run {command[0]}: {exc}") from exc

        if result.returncode != 0:
            raise self._diagnostic(result.stderr)
        return result.stdout

    @staticmethod
    def _diagnostic(stderr: str) -> GoSyntaxError:
        first = stderr.strip().splitlines()[0] if stderr.strip() else "gofmt failed"
        match = GOFMT_DIAGNOSTIC.match(first)
        if match:
            return GoSyntaxError(match.group(3), int(match.group(1)), int(match.group(2)))
        return GoSyntaxError(first)


def respace(src: str, indent: int = 2) -> str:
    """Replace leading tabs with spaces outside multi-line tokens."""
    verbatim = verbatim_lines(tokenize(src))
    lines = src.split("\n")
    for number, text in enumerate(lines, 1):
        if number in verbatim:
            continue
        body = text.lstrip("\t")
        tabs = len(text) - len(body)
        if tabs:
            lines[number - 1] = " " * (indent * tabs) + body
    return "\n".join(lines)


def make_printer(config: FormatterConfig) -> Printer:
    """Create the printer selected by the formatter configuration."""
    backend = config.backend
    if backend == "auto":
        backend = "gofmt" if shutil.which(config.command[0]) else "builtin"
        log.debug("formatter backend auto-selected: %s", backend)
    if backend == "gofmt":
        return GofmtPrinter(config.command, config.indent)
    return BuiltinPrinter(config.indent)
