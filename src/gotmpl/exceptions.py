"""gotmpl Exceptions

Custom exceptions raised while compiling a template tree.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class TemplateError(Exception):
    """Base exception for all gotmpl errors."""

    pass


class ConfigError(TemplateError):
    """Raised when gotmpl.yaml cannot be read or validated."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid configuration in {path}: {reason}")


class ResolutionError(TemplateError):
    """Raised when an insertion reference does not name a readable template."""

    def __init__(
        self,
        reference: str,
        reason: str,
        parent: str | None = None,
        line: int = 0,
    ):
        self.reference = reference
        self.reason = reason
        self.parent = parent
        self.line = line
        where = ""
        if parent is not None:
            where = f' (inserted at line {line} of "{parent}")'
        super().__init__(f'cannot resolve template "{reference}"{where}: {reason}')


class InsertionCycleError(TemplateError):
    """Raised when a template inserts itself, directly or through others."""

    def __init__(self, trace: Sequence[str]):
        self.trace = list(trace)
        super().__init__("\n  ".join(["insertion cycle", *self.trace]))


class TemplateReadError(TemplateError):
    """Raised when reading a template fails part way through a scan."""

    def __init__(self, path: Path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"cannot read template {path}: {cause}")


class HostSyntaxError(TemplateError):
    """Raised when generated Go source fails to parse.

    Carries the exact source that was handed to the Go front end so the
    author can see what the compiler produced.
    """

    def __init__(self, stage: str, source: str, diagnostic: str):
        self.stage = stage
        self.source = source
        self.diagnostic = diagnostic
        super().__init__(f"Error parsing {stage}: {diagnostic}")

    def report(self) -> str:
        """Return the generated source followed by the parser diagnostic."""
        return f"{self.source}\n---\nError parsing {self.stage}: {self.diagnostic}\n"
