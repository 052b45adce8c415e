"""Lexer - splits Go source into tokens.

Follows the Go language specification closely enough to validate
generated programs and to drive the built-in printer:
- comments, interpreted/raw strings and rune literals are single tokens
- automatic semicolon insertion at newlines and end of input
- brackets are reported as operators, keywords as identifiers
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List


KEYWORDS = frozenset(
    {
        "break", "case", "chan", "const", "continue", "default", "defer",
        "else", "fallthrough", "for", "func", "go", "goto", "if", "import",
        "interface", "map", "package", "range", "return", "select", "struct",
        "switch", "type", "var",
    }
)

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {v: k for k, v in OPENERS.items()}

# Longest operators first so that maximal munch works with startswith().
OPERATORS = sorted(
    [
        "<<=", ">>=", "&^=", "...", "&&", "||", "<-", "++", "--", "==", "!=",
        "<=", ">=", ":=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=",
        "<<", ">>", "&^", "+", "-", "*", "/", "%", "&", "|", "^", "<", ">",
        "=", "!", "(", ")", "[", "]", "{", "}", ",", ".", ":", "~",
    ],
    key=len,
    reverse=True,
)

_BLANK = re.compile(r"[ \t\r]+")
_IDENT = re.compile(r"[^\W\d]\w*")
_NUMBER = re.compile(
    r"0[xX][0-9a-fA-F_]*(?:\.[0-9a-fA-F_]*)?(?:[pP][+-]?[0-9_]+)?i?"
    r"|0[bBoO][0-9_]+i?"
    r"|(?:[0-9][0-9_]*(?:\.[0-9_]*)?|\.[0-9][0-9_]*)(?:[eE][+-]?[0-9_]+)?i?"
)


class TokenKind(Enum):
    IDENT = "identifier"
    NUMBER = "number"
    CHAR = "rune"
    STRING = "string"
    RAW_STRING = "raw string"
    COMMENT = "comment"
    OPERATOR = "operator"
    SEMICOLON = "semicolon"
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A single lexical token with its position in the source."""

    kind: TokenKind
    value: str
    offset: int  # character offset of the first character
    line: int
    column: int
    implicit: bool = False  # semicolon inserted at a newline or EOF

    @property
    def end(self) -> int:
        return self.offset + len(self.value)

    def describe(self) -> str:
        """Name the token the way Go's parser does in diagnostics."""
        if self.kind is TokenKind.EOF:
            return "EOF"
        if self.kind is TokenKind.SEMICOLON and self.implicit:
            return "newline"
        if self.kind is TokenKind.IDENT and self.value not in KEYWORDS:
            return self.value
        return f"'{self.value}'"


class GoSyntaxError(Exception):
    """Raised when Go source cannot be tokenized or parsed."""

    def __init__(self, message: str, line: int = 0, column: int = 0, filename: str = "output"):
        self.message = message
        self.line = line
        self.column = column
        self.filename = filename
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.line:
            return f"{self.filename}:{self.line}:{self.column}: {self.message}"
        return f"{self.filename}: {self.message}"


def _ends_statement(token: Token) -> bool:
    """Whether a newline after this token inserts a semicolon."""
    if token.kind in (
        TokenKind.NUMBER,
        TokenKind.CHAR,
        TokenKind.STRING,
        TokenKind.RAW_STRING,
    ):
        return True
    if token.kind is TokenKind.IDENT:
        return token.value not in KEYWORDS or token.value in (
            "break",
            "continue",
            "fallthrough",
            "return",
        )
    if token.kind is TokenKind.OPERATOR:
        return token.value in ("++", "--", ")", "]", "}")
    return False


class Lexer:
    """Tokenizes one Go source text."""

    def __init__(self, src: str, filename: str = "output"):
        self.src = src
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.line_start = 0
        self.tokens: List[Token] = []
        self._last: Token | None = None  # last token that is not a comment

    def tokenize(self) -> List[Token]:
        """Return every token, ending with an EOF token."""
        src = self.src
        while self.pos < len(src):
            ch = src[self.pos]
            blank = _BLANK.match(src, self.pos)
            if blank:
                self.pos = blank.end()
            elif ch == "\n":
                self._newline_semicolon(self.pos)
                self._advance_line(self.pos + 1)
            elif src.startswith("//", self.pos):
                end = src.find("\n", self.pos)
                end = len(src) if end == -1 else end
                self._push(TokenKind.COMMENT, end)
            elif src.startswith("/*", self.pos):
                self._block_comment()
            elif ch == '"':
                self._quoted('"', TokenKind.STRING, "string literal not terminated")
            elif ch == "'":
                self._quoted("'", TokenKind.CHAR, "rune literal not terminated")
            elif ch == "`":
                self._raw_string()
            elif ch == ";":
                self._push(TokenKind.SEMICOLON, self.pos + 1)
            elif ch.isdigit() or (ch == "." and src[self.pos + 1 : self.pos + 2].isdigit()):
                match = _NUMBER.match(src, self.pos)
                self._push(TokenKind.NUMBER, match.end() if match else self.pos + 1)
            elif _IDENT.match(src, self.pos):
                self._push(TokenKind.IDENT, _IDENT.match(src, self.pos).end())
            else:
                for op in OPERATORS:
                    if src.startswith(op, self.pos):
                        self._push(TokenKind.OPERATOR, self.pos + len(op))
                        break
                else:
                    self._error(f"invalid character {ch!r}", self.pos)

        self._newline_semicolon(len(src))
        self.tokens.append(
            Token(TokenKind.EOF, "", len(src), self.line, len(src) - self.line_start + 1)
        )
        return self.tokens

    def _push(self, kind: TokenKind, end: int) -> Token:
        token = Token(
            kind,
            self.src[self.pos : end],
            self.pos,
            self.line,
            self.pos - self.line_start + 1,
        )
        self.tokens.append(token)
        if kind is not TokenKind.COMMENT:
            self._last = token
        self.pos = end
        return token

    def _newline_semicolon(self, offset: int) -> None:
        if self._last is not None and _ends_statement(self._last):
            token = Token(
                TokenKind.SEMICOLON,
                "\n" if offset < len(self.src) else "",
                offset,
                self.line,
                offset - self.line_start + 1,
                implicit=True,
            )
            self.tokens.append(token)
            self._last = token

    def _advance_line(self, new_pos: int) -> None:
        self.pos = new_pos
        self.line += 1
        self.line_start = new_pos

    def _block_comment(self) -> None:
        end = self.src.find("*/", self.pos + 2)
        if end == -1:
            self._error("comment not terminated", self.pos)
        start_line, start_col = self.line, self.pos - self.line_start + 1
        text = self.src[self.pos : end + 2]
        token = Token(TokenKind.COMMENT, text, self.pos, start_line, start_col)
        self.tokens.append(token)
        newlines = text.count("\n")
        if newlines:
            # A multi-line comment acts like a newline.
            self._newline_semicolon(self.pos)
            self.line += newlines
            self.line_start = self.pos + text.rindex("\n") + 1
        self.pos = end + 2

    def _quoted(self, quote: str, kind: TokenKind, message: str) -> None:
        i = self.pos + 1
        src = self.src
        while i < len(src):
            ch = src[i]
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                self._push(kind, i + 1)
                return
            if ch == "\n":
                break
            i += 1
        self._error(message, self.pos)

    def _raw_string(self) -> None:
        end = self.src.find("`", self.pos + 1)
        if end == -1:
            self._error("raw string literal not terminated", self.pos)
        text = self.src[self.pos : end + 1]
        self._push(TokenKind.RAW_STRING, end + 1)
        newlines = text.count("\n")
        if newlines:
            self.line += newlines
            self.line_start = self.pos - len(text) + text.rindex("\n") + 1

    def _error(self, message: str, offset: int) -> None:
        line = self.src.count("\n", 0, offset) + 1
        column = offset - (self.src.rfind("\n", 0, offset) + 1) + 1
        raise GoSyntaxError(message, line, column, self.filename)


def tokenize(src: str, filename: str = "output") -> List[Token]:
    """Tokenize Go source, raising GoSyntaxError on malformed input."""
    return Lexer(src, filename).tokenize()


def significant(tokens: List[Token]) -> List[Token]:
    """Drop comment tokens."""
    return [t for t in tokens if t.kind is not TokenKind.COMMENT]
