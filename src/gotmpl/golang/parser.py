"""Parser - minimal Go file parser.

Recognizes exactly what the template compiler needs from a Go file:
the package clause, the import declarations (with the local names they
bind) and the top-level declaration structure. Everything inside a
declaration is only checked for balanced brackets.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import List, Optional

from gotmpl.golang.lexer import (
    CLOSERS,
    OPENERS,
    GoSyntaxError,
    Token,
    TokenKind,
    significant,
    tokenize,
)

DECLARATION_KEYWORDS = ("const", "func", "type", "var")


@dataclass(frozen=True)
class ImportSpec:
    """One imported package."""

    path: str
    name: Optional[str] = None  # explicit local name, including "." and "_"
    line: int = 0

    @property
    def local_name(self) -> str:
        """Name the import binds in the file scope."""
        if self.name is not None:
            return self.name
        return posixpath.basename(self.path)


@dataclass
class GoFile:
    """What the compiler knows about a parsed Go file or fragment."""

    package: Optional[str]
    imports: List[ImportSpec] = field(default_factory=list)
    header_end: int = 0  # offset just past the package clause
    imports_end: int = 0  # offset just past the last import declaration

    @property
    def is_fragment(self) -> bool:
        return self.package is None


class Parser:
    """Recursive-descent parser over the significant tokens of one source."""

    def __init__(self, src: str, filename: str = "output"):
        self.src = src
        self.filename = filename
        self.tokens = significant(tokenize(src, filename))
        self.index = 0

    @property
    def tok(self) -> Token:
        return self.tokens[self.index]

    def parse_file(self) -> GoFile:
        """Parse a complete file: package clause, imports, declarations."""
        check_brackets(self.tokens, self.filename)
        if not self._is_keyword("package"):
            self._fail("expected 'package'")
        self._next()
        if self.tok.kind is not TokenKind.IDENT:
            self._fail("expected package name")
        package = self.tok.value
        self._next()
        header_end = self._terminator()

        imports, imports_end = self._import_decls(header_end)

        while self.tok.kind is not TokenKind.EOF:
            if self._is_keyword("import"):
                self._fail("imports must appear before other declarations")
            if not any(self._is_keyword(kw) for kw in DECLARATION_KEYWORDS):
                self._fail("non-declaration statement outside function body")
            self._skip_declaration()

        return GoFile(package, imports, header_end, imports_end)

    def parse_fragment(self) -> GoFile:
        """Parse statements without a package clause.

        Leading import declarations are recognized; any later import is an
        error because it could not be hoisted to file scope.
        """
        check_brackets(self.tokens, self.filename)
        imports, imports_end = self._import_decls(0)
        while self.tok.kind is not TokenKind.EOF:
            if self._is_keyword("import"):
                self._fail("imports must appear before other declarations")
            if self._is_keyword("package"):
                self._fail("package clause must come first")
            if self._is_keyword("func"):
                self._function_literal()
            self._next()
        return GoFile(None, imports, 0, imports_end)

    def _import_decls(self, start: int) -> tuple[List[ImportSpec], int]:
        imports: List[ImportSpec] = []
        end = start
        while self._is_keyword("import"):
            self._next()
            if self._is_op("("):
                self._next()
                while not self._is_op(")"):
                    imports.append(self._import_spec())
                    if self._is_op(")"):
                        break
                    self._expect_semicolon()
                self._next()
            else:
                imports.append(self._import_spec())
            end = self._terminator()
        return imports, end

    def _import_spec(self) -> ImportSpec:
        line = self.tok.line
        name: Optional[str] = None
        if self.tok.kind is TokenKind.IDENT or self._is_op("."):
            name = self.tok.value
            self._next()
        if self.tok.kind not in (TokenKind.STRING, TokenKind.RAW_STRING):
            self._fail("missing import path")
        path = self.tok.value[1:-1]
        if not path:
            self._fail("invalid import path")
        self._next()
        return ImportSpec(path=path, name=name, line=line)

    def _skip_declaration(self) -> None:
        depth = 0
        while self.tok.kind is not TokenKind.EOF:
            if self.tok.kind is TokenKind.OPERATOR:
                if self.tok.value in OPENERS:
                    depth += 1
                elif self.tok.value in CLOSERS:
                    depth -= 1
            elif depth > 0 and self._is_keyword("func"):
                self._function_literal()
            elif self.tok.kind is TokenKind.SEMICOLON and depth == 0:
                self._next()
                return
            self._next()

    def _function_literal(self) -> None:
        """Inside a body, func can only start a function literal."""
        if self.tokens[self.index + 1].kind is TokenKind.IDENT:
            self._next()
            self._fail("expected '('")

    def _terminator(self) -> int:
        """Consume the ';' ending a clause; return the offset just past it."""
        if self.tok.kind is TokenKind.EOF:
            return len(self.src)
        end = self.tok.end
        self._expect_semicolon()
        return end

    def _expect_semicolon(self) -> None:
        if self.tok.kind is not TokenKind.SEMICOLON:
            self._fail("expected ';'")
        self._next()

    def _is_keyword(self, word: str) -> bool:
        return self.tok.kind is TokenKind.IDENT and self.tok.value == word

    def _is_op(self, op: str) -> bool:
        return self.tok.kind is TokenKind.OPERATOR and self.tok.value == op

    def _next(self) -> None:
        if self.tok.kind is not TokenKind.EOF:
            self.index += 1

    def _fail(self, message: str) -> None:
        raise GoSyntaxError(
            f"{message}, found {self.tok.describe()}",
            self.tok.line,
            self.tok.column,
            self.filename,
        )


def check_brackets(tokens: List[Token], filename: str = "output") -> None:
    """Raise GoSyntaxError unless every bracket is closed by its partner."""
    stack: List[Token] = []
    for token in tokens:
        if token.kind is not TokenKind.OPERATOR:
            continue
        if token.value in OPENERS:
            stack.append(token)
        elif token.value in CLOSERS:
            if not stack:
                raise GoSyntaxError(
                    f"unexpected '{token.value}'", token.line, token.column, filename
                )
            opener = stack.pop()
            if OPENERS[opener.value] != token.value:
                raise GoSyntaxError(
                    f"expected '{OPENERS[opener.value]}', found '{token.value}'",
                    token.line,
                    token.column,
                    filename,
                )
    if stack:
        last = tokens[-1]
        raise GoSyntaxError(
            f"expected '{OPENERS[stack[-1].value]}', found 'EOF'",
            last.line,
            last.column,
            filename,
        )


def parse_file(src: str, filename: str = "output") -> GoFile:
    """Parse and validate a complete Go file."""
    return Parser(src, filename).parse_file()


def parse_source(src: str, filename: str = "output", allow_fragment: bool = False) -> GoFile:
    """Parse a file, or a bare statement fragment when allowed.

    A source counts as a fragment when its first token is not the
    ``package`` keyword.
    """
    parser = Parser(src, filename)
    if allow_fragment and not parser._is_keyword("package"):
        return parser.parse_fragment()
    return parser.parse_file()
