"""Synthesizer - turns normalized sections into one Go source file.

Algorithm:
1. Parse the code sections alone to learn the user's imports
2. Decide how generated calls reach the emission function
3. Rewrite literal sections into emission calls on raw string literals
4. Wrap fragments into main with their imports hoisted to file level
5. Parse the whole program and inject an import when needed
6. Print the result
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional

from jinja2 import Environment, FileSystemLoader

from gotmpl.compiler.spec import EmitBinding, Section
from gotmpl.config import CompilerConfig, EmitterConfig
from gotmpl.exceptions import HostSyntaxError
from gotmpl.golang import GoFile, GoSyntaxError, ImportSpec, Printer, make_printer
from gotmpl.golang.parser import parse_source

log = logging.getLogger(__name__)

PROBE_STAGE = "code sections"
FINAL_STAGE = "entire template output"

# Characters that cannot appear inside a Go raw string literal unchanged:
# the backquote delimits it, carriage returns are discarded from it, and
# NUL or a byte order mark are not allowed in Go source at all.
ESCAPES = {
    "`": '"`"',
    "\r": '"\\r"',
    "\x00": '"\\x00"',
    "\ufeff": '"\\uFEFF"',
}
_SPLIT = re.compile("([" + re.escape("".join(ESCAPES)) + "])")


def split_raw_literals(text: str) -> List[str]:
    """Express text as a sequence of Go string literals.

    Runs of ordinary characters become raw (back-quoted) literals; each
    character that a raw literal cannot carry becomes its own interpreted
    literal. Concatenating the literal values gives back text exactly.
    """
    pieces: List[str] = []
    for part in _SPLIT.split(text):
        if not part:
            continue
        if part in ESCAPES:
            pieces.append(ESCAPES[part])
        else:
            pieces.append(f"`{part}`")
    return pieces


def resolve_emitter(imports: Iterable[ImportSpec], emitter: EmitterConfig) -> EmitBinding:
    """Decide how generated code calls the emission function.

    If the package is already imported (matched by path, first occurrence
    wins, blank imports do not count) its local name is used; a dot import
    needs no prefix. Otherwise the package is to be imported under its
    default name, or under name_0, name_1, ... if that name is taken.
    """
    imported_as: Optional[str] = None
    seen = set()
    for spec in imports:
        name = spec.local_name
        seen.add(name)
        if imported_as is None and spec.path == emitter.package and name != "_":
            imported_as = name

    if imported_as is not None:
        prefix = "" if imported_as == "." else f"{imported_as}."
        return EmitBinding(emitter.package, emitter.function, prefix)

    import_as = emitter.name
    if import_as in seen:
        suffix = 0
        while f"{emitter.name}_{suffix}" in seen:
            suffix += 1
        import_as = f"{emitter.name}_{suffix}"
    return EmitBinding(emitter.package, emitter.function, f"{import_as}.", import_as)


def drop_code_prefix(sections: List[Section], length: int) -> List[Section]:
    """Remove the first length characters of the probe from code sections.

    The probe is each code section followed by a newline, so the prefix
    consumes whole code sections and then the start of the next one.
    Returns new sections; the input is not modified.
    """
    result: List[Section] = []
    for section in sections:
        if section.is_code and length:
            consumed = min(length, len(section.text) + 1)
            length -= consumed
            section = Section.code(section.text[consumed:])
        result.append(section)
    return result


class Synthesizer:
    """Generates the Go program for one normalized section list."""

    def __init__(self, config: CompilerConfig, printer: Optional[Printer] = None):
        self.config = config
        self.printer = printer or make_printer(config.formatter)
        templates_dir = Path(__file__).parent.parent / "templates"
        self._env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def synthesize(self, sections: List[Section]) -> str:
        """Return the printed Go source for sections.

        Raises:
            HostSyntaxError: If the code sections or the generated program
                do not parse, or the printer rejects the program.
        """
        probe = "".join(s.text + "\n" for s in sections if s.is_code)
        probe_file = self._parse(probe, PROBE_STAGE, self.config.wrap_main)

        # A probe without a package clause is a fragment: its leading imports
        # go to file level and everything else becomes the body of main.
        imports = ""
        if probe_file.is_fragment:
            imports = probe[: probe_file.imports_end]
            sections = drop_code_prefix(sections, probe_file.imports_end)
            self._check(self._wrap(imports, probe[probe_file.imports_end :]), PROBE_STAGE)
        else:
            self._check(probe, PROBE_STAGE)

        binding = resolve_emitter(probe_file.imports, self.config.emitter)
        log.debug("emission calls look like %s", binding.call("..."))

        program = self.rewrite(sections, binding)
        if probe_file.is_fragment:
            program = self._wrap(imports, program)
        gofile = self._parse(program, FINAL_STAGE)
        if binding.needs_import:
            program = self._inject_import(program, gofile, binding)

        try:
            return self.printer.format(program)
        except GoSyntaxError as exc:
            raise HostSyntaxError(FINAL_STAGE, program, str(exc)) from exc

    def rewrite(self, sections: List[Section], binding: EmitBinding) -> str:
        """Concatenate code with literal sections turned into emission calls."""
        parts: List[str] = []
        for section in sections:
            if section.is_code:
                parts.append(section.text + "\n")
            else:
                for piece in split_raw_literals(section.text):
                    parts.append(binding.call(piece) + "\n")
        return "".join(parts)

    @staticmethod
    def _parse(src: str, stage: str, allow_fragment: bool = False) -> GoFile:
        try:
            return parse_source(src, allow_fragment=allow_fragment)
        except GoSyntaxError as exc:
            raise HostSyntaxError(stage, src, str(exc)) from exc

    def _check(self, src: str, stage: str) -> None:
        try:
            self.printer.check(src)
        except GoSyntaxError as exc:
            raise HostSyntaxError(stage, src, str(exc)) from exc

    def _wrap(self, imports: str, body: str) -> str:
        """Make body the body of main, with imports at file level."""
        template = self._env.get_template("program.go.j2")
        return template.render(
            package=self.config.main_package,
            imports=imports.strip(),
            body=body.strip("\n"),
        )

    def _inject_import(self, src: str, gofile: GoFile, binding: EmitBinding) -> str:
        """Insert an import declaration right after the package clause."""
        if binding.import_as == self.config.emitter.name:
            decl = f'import "{binding.package}"'
        else:
            decl = f'import {binding.import_as} "{binding.package}"'
        head, tail = src[: gofile.header_end], src[gofile.header_end :]
        if not head.endswith("\n"):
            head += "\n"
        return f"{head}\n{decl}\n{tail}"
