"""Assembler - normalizes the whitespace between sections.

Templates are usually written with tags on lines of their own. Without
these rules every tag boundary would leave a stray blank line in the
output and degenerate empty emission calls in the generated code.

The rules are order-dependent and their effects are visible in the
generated program, so they run in a fixed sequence:
1. drop blank literals at the start
2. drop blank literals at the end
3. left-trim the literals following the first code section
4. right-trim the literals preceding the last code section
5. merge runs of literals (optional)
6. drop blank sections
"""

from __future__ import annotations

from typing import List, Optional

from gotmpl.compiler.spec import Section


class Assembler:
    """Applies the normalization rules to a fully expanded section list."""

    def __init__(self, merge_literals: bool = True):
        self.merge_literals = merge_literals

    def assemble(self, sections: List[Section]) -> List[Section]:
        """Return a normalized copy of sections; the input is not modified."""
        result = [Section(s.kind, s.text) for s in sections]

        result = self._drop_leading(result)
        result = self._drop_trailing(result)

        first = self._first_code(result)
        if first is not None:
            self._trim_after(result, first)
            self._trim_before(result, self._last_code(result))

        if self.merge_literals:
            result = self._merge(result)

        return [s for s in result if not s.is_blank]

    @staticmethod
    def _drop_leading(sections: List[Section]) -> List[Section]:
        start = 0
        while start < len(sections) and sections[start].is_literal and sections[start].is_blank:
            start += 1
        return sections[start:]

    @staticmethod
    def _drop_trailing(sections: List[Section]) -> List[Section]:
        end = len(sections)
        while end > 0 and sections[end - 1].is_literal and sections[end - 1].is_blank:
            end -= 1
        return sections[:end]

    @staticmethod
    def _first_code(sections: List[Section]) -> Optional[int]:
        for index, section in enumerate(sections):
            if section.is_code:
                return index
        return None

    @staticmethod
    def _last_code(sections: List[Section]) -> int:
        for index in range(len(sections) - 1, -1, -1):
            if sections[index].is_code:
                return index
        raise ValueError("no code section")

    @staticmethod
    def _trim_after(sections: List[Section], first: int) -> None:
        # Only a whitespace-only prefix run collapses to nothing.
        for section in sections[first + 1 :]:
            if not section.is_literal:
                continue
            section.text = section.text.lstrip()
            if section.text:
                return

    @staticmethod
    def _trim_before(sections: List[Section], last: int) -> None:
        for section in reversed(sections[:last]):
            if not section.is_literal:
                continue
            section.text = section.text.rstrip()
            if section.text:
                section.text += "\n"
                return

    @staticmethod
    def _merge(sections: List[Section]) -> List[Section]:
        merged: List[Section] = []
        for section in sections:
            if section.is_literal and merged and merged[-1].is_literal:
                merged[-1].text += section.text
            else:
                merged.append(section)
        return merged
