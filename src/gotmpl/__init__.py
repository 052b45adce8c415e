"""gotmpl - compiles text templates with embedded Go code into Go programs.

A template mixes literal output with ``<?code ... ?>`` sections and
``<?insert path ?>`` directives. The compiler expands insertions, turns
literal text into print calls and emits one formatted Go source file.
"""

from gotmpl._version import __version__
from gotmpl.compiler import Compiler, compile_template
from gotmpl.config import CompilerConfig
from gotmpl.exceptions import (
    ConfigError,
    HostSyntaxError,
    InsertionCycleError,
    ResolutionError,
    TemplateError,
    TemplateReadError,
)

__all__ = [
    "__version__",
    "Compiler",
    "compile_template",
    "CompilerConfig",
    "TemplateError",
    "ConfigError",
    "ResolutionError",
    "InsertionCycleError",
    "TemplateReadError",
    "HostSyntaxError",
]
