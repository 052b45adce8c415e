"""Template compiler - scans, assembles and synthesizes Go programs."""

from gotmpl.compiler.assembler import Assembler
from gotmpl.compiler.compiler import Compiler, compile_template
from gotmpl.compiler.resolver import Resolver
from gotmpl.compiler.scanner import EventKind, Pattern, ScanEvent, TagScanner
from gotmpl.compiler.spec import EmitBinding, InclusionEntry, Section, SectionKind
from gotmpl.compiler.synthesizer import Synthesizer, resolve_emitter, split_raw_literals

__all__ = [
    "Compiler",
    "compile_template",
    "Resolver",
    "Assembler",
    "Synthesizer",
    "TagScanner",
    "Pattern",
    "ScanEvent",
    "EventKind",
    "Section",
    "SectionKind",
    "InclusionEntry",
    "EmitBinding",
    "resolve_emitter",
    "split_raw_literals",
]
