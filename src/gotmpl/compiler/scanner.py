"""Scanner - splits a template character stream at tag delimiters.

Three fixed delimiters are tracked with rolling pattern matchers:
- ``<?code`` opens a code section
- ``<?insert`` opens an insertion reference
- ``?>`` closes whichever tag is open

Tags do not nest: once a tag is open, opening delimiters are ignored
until the closing delimiter completes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, TextIO

log = logging.getLogger(__name__)

OPEN_CODE = "<?code"
OPEN_INSERT = "<?insert"
CLOSE = "?>"

READ_CHUNK = 8192


class Pattern:
    """Tracks progress in matching one delimiter against a stream.

    On a mismatch the cursor falls back to the longest prefix of the
    delimiter that is still a suffix of the input seen so far, so a
    partial match never hides a real one and characters only count
    when they are contiguous.
    """

    def __init__(self, text: str):
        if not text:
            raise ValueError("Pattern text must not be empty")
        self.text = text
        self.pos = 0
        self._fallback = self._failure_table(text)

    def __len__(self) -> int:
        return len(self.text)

    @staticmethod
    def _failure_table(text: str) -> List[int]:
        table = [0] * len(text)
        k = 0
        for i in range(1, len(text)):
            while k and text[i] != text[k]:
                k = table[k - 1]
            if text[i] == text[k]:
                k += 1
            table[i] = k
        return table

    def next(self, ch: str) -> bool:
        """Feed one character; return True when the delimiter completes."""
        if self.pos == len(self.text):
            self.pos = 0
        while self.pos and ch != self.text[self.pos]:
            self.pos = self._fallback[self.pos - 1]
        if ch == self.text[self.pos]:
            self.pos += 1
        return self.pos == len(self.text)

    def reset(self) -> None:
        self.pos = 0


class EventKind(Enum):
    LITERAL = "literal"
    CODE = "code"
    INSERT = "insert"


@dataclass(frozen=True)
class ScanEvent:
    """A run of text classified by the delimiters around it.

    For code and insert events, line is the line on which the closing
    delimiter completed.
    """

    kind: EventKind
    text: str
    line: int = 0


class TagScanner:
    """Classifies a character stream into literal, code and insert events.

    The stream always yields a literal event first (possibly empty, the
    text before the first tag) and a literal event last (the text after
    the final tag, flushed at end of stream).
    """

    def __init__(
        self,
        open_code: str = OPEN_CODE,
        open_insert: str = OPEN_INSERT,
        close: str = CLOSE,
    ):
        self.open_code = open_code
        self.open_insert = open_insert
        self.close = close
        self.chars_read = 0
        self.bytes_read = 0
        self.lines_read = 1

    def scan(self, chars: Iterable[str]) -> Iterator[ScanEvent]:
        code = Pattern(self.open_code)
        insert = Pattern(self.open_insert)
        close = Pattern(self.close)
        patterns = (code, insert, close)
        opened: Optional[Pattern] = None

        buffer: List[str] = []
        line = 1
        count = 0
        size = 0

        for ch in chars:
            buffer.append(ch)
            count += 1
            size += len(ch.encode("utf-8"))
            if ch == "\n":
                line += 1

            if opened is None:
                for pattern in (code, insert):
                    if pattern.next(ch):
                        opened = pattern
                        yield ScanEvent(EventKind.LITERAL, "".join(buffer[: -len(pattern)]))
                        buffer = []
                        for p in patterns:
                            p.reset()
                        break
            elif close.next(ch):
                content = "".join(buffer[: -len(close)])
                if opened is code:
                    yield ScanEvent(EventKind.CODE, content, line)
                else:
                    yield ScanEvent(EventKind.INSERT, content.strip(), line)
                opened = None
                buffer = []
                for p in patterns:
                    p.reset()

        if opened is not None:
            log.warning(
                "unterminated %r tag at end of template (line %d)", opened.text, line
            )
        self.chars_read = count
        self.bytes_read = size
        self.lines_read = line
        yield ScanEvent(EventKind.LITERAL, "".join(buffer))


def read_chars(handle: TextIO, chunk_size: int = READ_CHUNK) -> Iterator[str]:
    """Yield the characters of an open text file, reading in chunks."""
    for chunk in iter(lambda: handle.read(chunk_size), ""):
        yield from chunk
