"""Resolver - expands a template and its insertions into raw sections.

- Absolute references (leading "/") resolve against the site root.
- Relative references resolve against the directory of the template that
  makes the insertion, so a template works at any nesting depth.
- Cycles are detected by file identity (device and inode), never by
  comparing path strings, because links give one file many names.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import List, Optional, Tuple

from gotmpl.compiler.scanner import EventKind, TagScanner, read_chars
from gotmpl.compiler.spec import InclusionEntry, Section
from gotmpl.exceptions import InsertionCycleError, ResolutionError, TemplateReadError

log = logging.getLogger(__name__)

Stack = Tuple[InclusionEntry, ...]


class Resolver:
    """Resolves insertion references and scans template trees.

    Holds no per-compilation state: every scan call returns its own
    section list and the inclusion stack travels down the recursion.
    """

    def __init__(self, site_root: Path):
        """Initialize resolver with the base for absolute references.

        Args:
            site_root: Directory that absolute references are relative to.
        """
        self.site_root = Path(site_root)

    def hard_path(self, reference: str, directory: Path) -> Path:
        """Map a reference to a physical path.

        The result is lexically normalized but may still contain symbolic
        links, which is why it is not used for identity.
        """
        if reference.startswith("/"):
            base, reference = self.site_root, reference.lstrip("/")
        else:
            base = directory
        return Path(os.path.normpath(os.path.join(base, reference)))

    def make_entry(
        self,
        reference: str,
        directory: Path,
        line: int = 0,
        parent: Optional[InclusionEntry] = None,
    ) -> InclusionEntry:
        """Resolve a reference and capture the identity of its file.

        Args:
            reference: Reference as written by the author.
            directory: Directory of the template making the insertion.
            line: Line of the insertion in the parent (0 at top level).
            parent: The inserting template, used in error messages.

        Raises:
            ResolutionError: If the reference does not name a regular file.
        """
        parent_name = parent.reference if parent is not None else None
        if not reference:
            raise ResolutionError(reference, "empty insertion reference", parent_name, line)

        path = self.hard_path(reference, directory)
        try:
            identity = os.stat(path)
        except OSError as exc:
            reason = exc.strerror or str(exc)
            raise ResolutionError(reference, reason, parent_name, line) from exc
        if not stat.S_ISREG(identity.st_mode):
            raise ResolutionError(reference, "not a regular file", parent_name, line)

        return InclusionEntry(reference=reference, path=path, identity=identity, line=line)

    def resolve(self, template_path: Path) -> List[Section]:
        """Scan a top-level template and everything it inserts.

        The top-level template is named by its base name relative to its
        own directory.
        """
        template_path = Path(template_path)
        entry = self.make_entry(template_path.name, template_path.parent)
        return self.scan(entry)

    def scan(self, entry: InclusionEntry, stack: Stack = ()) -> List[Section]:
        """Scan one template, recursing into its insertions.

        Args:
            entry: The template to scan.
            stack: Templates currently being scanned, outermost first.

        Returns:
            The template's sections with all insertions expanded in place.

        Raises:
            InsertionCycleError: If entry's file is already on the stack.
            ResolutionError: If an insertion cannot be resolved.
            TemplateReadError: If reading fails.
        """
        self.check_cycle(entry, stack)
        stack = (*stack, entry)
        top_level = len(stack) == 1
        log.debug("start %s", entry.reference)

        scanner = TagScanner()
        sections: List[Section] = []
        try:
            with open(entry.path, encoding="utf-8", newline="") as handle:
                for event in scanner.scan(read_chars(handle)):
                    if event.kind is EventKind.LITERAL:
                        sections.append(Section.literal(event.text))
                    elif event.kind is EventKind.CODE:
                        sections.append(Section.code(event.text))
                    else:
                        child = self.make_entry(
                            event.text, entry.directory, event.line, entry
                        )
                        sections.extend(self.scan(child, stack))
        except (OSError, UnicodeDecodeError) as exc:
            raise TemplateReadError(entry.path, exc) from exc

        if top_level:
            # Only the outermost template loses its incidental boundary
            # whitespace; inserted templates may sit mid-document.
            sections[0].text = sections[0].text.strip()
            sections[-1].text = sections[-1].text.strip()

        log.debug(
            "parsed %s: read %d bytes (%d characters), finished on line %d",
            entry.reference,
            scanner.bytes_read,
            scanner.chars_read,
            scanner.lines_read,
        )
        return sections

    @staticmethod
    def check_cycle(entry: InclusionEntry, stack: Stack) -> None:
        """Raise InsertionCycleError if entry's file is already on the stack."""
        for index, ancestor in enumerate(stack):
            if ancestor.same_file(entry):
                trace = [str(e) for e in stack[index:]] + [str(entry)]
                raise InsertionCycleError(trace)
