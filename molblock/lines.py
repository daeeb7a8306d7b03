"""
Line cursor over a text stream.

``LineReader`` hands out one physical line per read and counts the lines
it has consumed, so error messages can point at the right line even after
a parse failure. ``read_v3000_line`` assembles one logical V3000 line from
``M  V30`` physical lines joined by trailing ``-`` continuation marks.
"""

from __future__ import annotations

import gzip
import io
import os
from typing import Iterable, Iterator, TextIO

from molblock.exceptions import FormatError

V3000_PREFIX = "M  V30 "


class LineReader:
    """Sequential reader over the lines of a text source.

    Args:
        source: A string holding the whole text, or any iterable of lines
            (an open text file, a list of strings).
        line_number: Number of lines already consumed before ``source``.

    Example:
        >>> reader = LineReader("first\\nsecond\\n")
        >>> reader.read()
        'first'
        >>> reader.line_number
        1
    """

    __slots__ = ("_lines", "_peeked", "_line_number", "_last", "_blank_run")

    def __init__(self, source: str | Iterable[str], line_number: int = 0) -> None:
        if isinstance(source, str):
            source = io.StringIO(source)
        self._lines: Iterator[str] = iter(source)
        self._peeked: str | None = None
        self._line_number = line_number
        self._last: str | None = None
        self._blank_run = 0

    @property
    def line_number(self) -> int:
        """Number of physical lines consumed so far (1-based position of the last one)."""
        return self._line_number

    @property
    def last_line(self) -> str | None:
        """The most recently consumed line."""
        return self._last

    @property
    def blank_run(self) -> int:
        """How many of the most recently consumed lines were blank, in a row."""
        return self._blank_run

    def _fetch(self) -> str | None:
        raw = next(self._lines, None)
        if raw is None:
            return None
        return raw.rstrip("\r\n")

    def peek(self) -> str | None:
        """Return the next line without consuming it (None at end of input)."""
        if self._peeked is None:
            self._peeked = self._fetch()
        return self._peeked

    def read(self) -> str | None:
        """Consume and return the next line, or None at end of input."""
        if self._peeked is not None:
            line, self._peeked = self._peeked, None
        else:
            line = self._fetch()
        if line is None:
            return None
        self._line_number += 1
        self._last = line
        self._blank_run = self._blank_run + 1 if not line.strip() else 0
        return line

    def require(self, context: str) -> str:
        """Consume the next line, treating end of input as a format error.

        Args:
            context: What was being read, for the error message.

        Raises:
            FormatError: At end of input.
        """
        line = self.read()
        if line is None:
            raise FormatError(f"EOF hit while reading {context}", line=self._line_number)
        return line

    def is_eof(self) -> bool:
        return self.peek() is None


def read_v3000_line(reader: LineReader) -> str:
    """Read one logical V3000 line.

    Every physical line must start with ``M  V30 ``. A line ending in ``-``
    continues on the next physical line; the prefix and the marker are
    stripped and the pieces concatenated.

    Raises:
        FormatError: On a missing prefix or end of input.
    """
    parts: list[str] = []
    while True:
        line = reader.require("V3000 block")
        if not line.startswith(V3000_PREFIX):
            raise FormatError(
                f"Line does not start with '{V3000_PREFIX}'", line, line=reader.line_number
            )
        content = line.rstrip()
        if content.endswith("-") and len(content) > len(V3000_PREFIX):
            parts.append(content[len(V3000_PREFIX):-1])
            continue
        parts.append(line[len(V3000_PREFIX):])
        return "".join(parts)


def open_text(path: str | os.PathLike[str]) -> TextIO:
    """Open a Molfile or SDF file for reading; ``.gz`` files are decompressed."""
    if os.fspath(path).endswith(".gz"):
        return gzip.open(path, "rt", encoding="utf-8", errors="replace")
    return open(path, encoding="utf-8", errors="replace")
