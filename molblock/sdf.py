"""
SDF (structure-data file) reader.

An SDF file is a sequence of Molfile records, each followed by optional
data items and a ``$$$$`` terminator:

    <molfile record>
    >  <MW>
    46.07

    $$$$

Data items become record properties of the parsed molecule. A record
that fails to parse does not affect the records after it: the reader
skips to the next ``$$$$`` and continues.
"""

from __future__ import annotations

import io
import os
import re
from types import TracebackType
from typing import Any, Iterable, Iterator, TextIO

from molblock.config import ParserOptions, resolve_options
from molblock.exceptions import ChemError, FormatError
from molblock.lines import LineReader, open_text
from molblock.logging_utils import get_logger
from molblock.parser import MolFileParser
from molblock.postprocess import PostProcessor
from molblock.types import Molecule

logger = get_logger(__name__)

RECORD_TERMINATOR = "$$$$"

_DATA_HEADER = re.compile(r"<([^>]*)>")


class SDFReader:
    """Iterate over the records of an SDF stream.

    Yields one ``Molecule`` per record. With ``skip_failed_records`` set
    (the default) a record that fails to parse yields ``None``; otherwise
    the error is raised, and iteration may resume with the next record.

    Args:
        source: Path to an SDF file (``.gz`` allowed), or an open text
            stream / iterable of lines.
        options: Parse options.
        post_processor: Chemistry hooks run on each record.
        **overrides: Option overrides (``sanitize=False``, ...).

    Example:
        >>> with SDFReader("compounds.sdf") as reader:
        ...     names = [mol.name for mol in reader if mol is not None]
    """

    def __init__(
        self,
        source: str | os.PathLike[str] | Iterable[str],
        options: ParserOptions | None = None,
        post_processor: PostProcessor | None = None,
        **overrides: Any,
    ) -> None:
        self._handle: TextIO | None = None
        if isinstance(source, (str, os.PathLike)):
            self._handle = open_text(source)
            source = self._handle
        self._reader = LineReader(source)
        self.options = resolve_options(options, **overrides)
        self._parser = MolFileParser(self.options, post_processor)

    @classmethod
    def from_string(cls, text: str, **kwargs: Any) -> "SDFReader":
        """Create a reader over SDF text held in memory."""
        return cls(io.StringIO(text), **kwargs)

    @property
    def line_number(self) -> int:
        """Number of lines consumed so far."""
        return self._reader.line_number

    def __iter__(self) -> Iterator[Molecule | None]:
        return self

    def __next__(self) -> Molecule | None:
        if self._reader.is_eof():
            raise StopIteration

        start = self._reader.line_number
        try:
            mol = self._parser.parse(self._reader)
        except ChemError as exc:
            if isinstance(exc, FormatError) and self._only_blank_lines_left(start):
                raise StopIteration from None
            self._skip_to_terminator()
            if not self.options.skip_failed_records:
                raise
            logger.warning("Skipping record starting at line %d: %s", start + 1, exc)
            return None

        if mol is None:
            raise StopIteration
        self._read_data_items(mol)
        return mol

    def _only_blank_lines_left(self, start: int) -> bool:
        consumed = self._reader.line_number - start
        return self._reader.is_eof() and self._reader.blank_run >= consumed

    def _skip_to_terminator(self) -> None:
        last = self._reader.last_line
        if last is not None and last.startswith(RECORD_TERMINATOR):
            return
        while True:
            line = self._reader.read()
            if line is None or line.startswith(RECORD_TERMINATOR):
                return

    def _read_data_items(self, mol: Molecule) -> None:
        """Consume the data section through ``$$$$``, storing items as props."""
        while True:
            line = self._reader.read()
            if line is None or line.startswith(RECORD_TERMINATOR):
                return
            if not line.startswith(">"):
                continue
            match = _DATA_HEADER.search(line)
            values: list[str] = []
            while True:
                value = self._reader.read()
                if value is None or value.startswith(RECORD_TERMINATOR):
                    if match is not None:
                        mol.set_prop(match.group(1), "\n".join(values))
                    return
                if not value.strip():
                    break
                values.append(value)
            if match is not None:
                mol.set_prop(match.group(1), "\n".join(values))

    def close(self) -> None:
        """Close the underlying file if this reader opened it."""
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "SDFReader":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def iter_sdf(
    path: str | os.PathLike[str],
    options: ParserOptions | None = None,
    **overrides: Any,
) -> Iterator[Molecule | None]:
    """Iterate over the records of an SDF file."""
    with SDFReader(path, options, **overrides) as reader:
        yield from reader
