"""Go front end - lexing, import discovery, validation and printing."""

from gotmpl.golang.lexer import GoSyntaxError, Token, TokenKind, tokenize
from gotmpl.golang.parser import GoFile, ImportSpec, parse_file, parse_source
from gotmpl.golang.printer import BuiltinPrinter, GofmtPrinter, Printer, make_printer

__all__ = [
    "GoSyntaxError",
    "Token",
    "TokenKind",
    "tokenize",
    "GoFile",
    "ImportSpec",
    "parse_file",
    "parse_source",
    "Printer",
    "BuiltinPrinter",
    "GofmtPrinter",
    "make_printer",
]
