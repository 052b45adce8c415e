"""Compiler - turns a template tree into one Go source file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, TextIO

from gotmpl.compiler.assembler import Assembler
from gotmpl.compiler.resolver import Resolver
from gotmpl.compiler.spec import Section
from gotmpl.compiler.synthesizer import Synthesizer
from gotmpl.config import CompilerConfig
from gotmpl.exceptions import HostSyntaxError, TemplateError
from gotmpl.golang import Printer

log = logging.getLogger(__name__)


class Compiler:
    """Compiles top-level templates to Go programs.

    A Compiler keeps no state between compilations, so one instance can
    serve many templates, including from several threads.
    """

    def __init__(self, config: Optional[CompilerConfig] = None, printer: Optional[Printer] = None):
        """Initialize compiler with optional configuration.

        Args:
            config: Compiler settings. Defaults use the working directory
                as site root.
            printer: Overrides the printer chosen by config.formatter.
        """
        self.config = config or CompilerConfig()
        self.resolver = Resolver(self.config.site_root)
        self.assembler = Assembler(self.config.merge_literals)
        self.synthesizer = Synthesizer(self.config, printer)

    def sections(self, template_path: Path) -> List[Section]:
        """Return the normalized sections of a template tree."""
        raw = self.resolver.resolve(Path(template_path))
        return self.assembler.assemble(raw)

    def compile(self, template_path: Path) -> str:
        """Compile a template and everything it inserts.

        Algorithm:
        1. Scan the template, expanding insertions recursively
        2. Normalize whitespace between sections
        3. Generate, validate and print the Go program

        Args:
            template_path: Path to the top-level template.

        Returns:
            The formatted Go source.

        Raises:
            TemplateError: If any stage fails.
        """
        sections = self.sections(template_path)
        log.debug("%s: %d sections after assembly", template_path, len(sections))
        return self.synthesizer.synthesize(sections)

    def process(self, template_path: Path, sink: TextIO) -> bool:
        """Compile a template, writing the source or a diagnostic to sink.

        Returns:
            True when the source was written, False for a diagnostic.
        """
        try:
            source = self.compile(template_path)
        except HostSyntaxError as exc:
            sink.write(exc.report())
            return False
        except TemplateError as exc:
            sink.write(f"Template parsing error: {exc}\n")
            return False
        sink.write(source)
        return True


def compile_template(
    site_root: Path, template_path: Path, config: Optional[CompilerConfig] = None
) -> str:
    """Compile one template with site_root as the base for absolute references."""
    if config is None:
        config = CompilerConfig(site_root=Path(site_root))
    else:
        config = config.model_copy(update={"site_root": Path(site_root)})
    return Compiler(config).compile(Path(template_path))
