"""Compiler IR spec - sections, inclusion entries and the emit binding."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class SectionKind(str, Enum):
    LITERAL = "literal"  # text emitted verbatim by the generated program
    CODE = "code"  # text spliced unchanged into the generated source


@dataclass
class Section:
    """One run of template text between delimiters."""

    kind: SectionKind
    text: str

    @property
    def is_literal(self) -> bool:
        return self.kind is SectionKind.LITERAL

    @property
    def is_code(self) -> bool:
        return self.kind is SectionKind.CODE

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()

    @classmethod
    def literal(cls, text: str) -> "Section":
        return cls(SectionKind.LITERAL, text)

    @classmethod
    def code(cls, text: str) -> "Section":
        return cls(SectionKind.CODE, text)


@dataclass(frozen=True)
class InclusionEntry:
    """A template on the active inclusion path.

    The reference is what the author wrote; the path is where it lives in
    the file system; the identity is compared with os.path.samestat, so
    symbolic and hard links to the same file are recognized. A child
    template begins at an insertion line of its parent.
    """

    reference: str
    path: Path
    identity: os.stat_result
    line: int = 0

    @property
    def directory(self) -> Path:
        """Base for the relative references this template makes."""
        return self.path.parent

    def same_file(self, other: "InclusionEntry") -> bool:
        return os.path.samestat(self.identity, other.identity)

    def __str__(self) -> str:
        if self.line == 0:
            return self.reference
        return f"-> line {self.line}: {self.reference}"


@dataclass(frozen=True)
class EmitBinding:
    """How generated code reaches the emission function."""

    package: str  # import path
    function: str
    prefix: str  # "" for a dot import, otherwise "<name>."
    import_as: Optional[str] = None  # set when an import must be injected

    @property
    def needs_import(self) -> bool:
        return self.import_as is not None

    def call(self, argument: str) -> str:
        return f"{self.prefix}{self.function}({argument})"
