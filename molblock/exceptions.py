"""
Custom exceptions for the molblock library.

This module defines a hierarchy of exceptions for handling Molfile format
and chemistry errors in a structured way, plus the warning category used
for non-fatal format deviations.
"""

from __future__ import annotations


class ChemError(Exception):
    """Base exception for all chemistry-related errors."""

    pass


class FormatError(ChemError):
    """Malformed Molfile/CTAB content.

    Raised for unparsable or out-of-range fields, wrong fixed tags,
    unexpected end of input, bad version tags and inconsistent counts.
    Always fatal to the record being parsed.

    Attributes:
        message: Description of what went wrong.
        text: The offending raw substring or line, if known.
        field: Semantic name of the field being decoded, if known.
        line: 1-based physical line number, if known.
    """

    def __init__(
        self,
        message: str,
        text: str | None = None,
        field: str | None = None,
        line: int | None = None,
    ) -> None:
        self.message = message
        self.text = text
        self.field = field
        self.line = line
        super().__init__(self._render())

    def _render(self) -> str:
        parts = [self.message]
        if self.field is not None and self.text is not None:
            parts.append(f" (field '{self.field}': '{self.text}')")
        elif self.text is not None:
            parts.append(f": '{self.text}'")
        if self.line is not None:
            parts.append(f" at line {self.line}")
        return "".join(parts)

    def at_line(self, line: int) -> "FormatError":
        """Attach a line number unless one is already present.

        Returns:
            The same exception instance, for use in ``raise exc.at_line(n)``.
        """
        if self.line is None:
            self.line = line
            self.args = (self._render(),)
        return self

    def with_text(self, text: str) -> "FormatError":
        """Attach the offending raw text unless some is already present.

        Returns:
            The same exception instance.
        """
        if self.text is None:
            self.text = text
            self.args = (self._render(),)
        return self


class RangeError(FormatError):
    """Atom or bond reference outside the current counts.

    Attributes:
        index: The offending (1-based, file-local) number.
        limit: Largest valid number at the time of the reference.
    """

    def __init__(
        self,
        message: str,
        index: int | None = None,
        limit: int | None = None,
        text: str | None = None,
        line: int | None = None,
    ) -> None:
        self.index = index
        self.limit = limit
        super().__init__(message, text, line=line)


class SanitizeError(ChemError):
    """Error raised by molecule post-processing (sanitization)."""

    pass


class ValenceError(SanitizeError):
    """Error related to invalid valence or bonding.

    Attributes:
        atom_symbol: The element symbol of the problematic atom.
        expected_valence: The largest allowed valence.
        actual_valence: The actual valence found.
    """

    def __init__(
        self,
        message: str,
        atom_symbol: str | None = None,
        expected_valence: int | None = None,
        actual_valence: int | None = None,
    ) -> None:
        self.message = message
        self.atom_symbol = atom_symbol
        self.expected_valence = expected_valence
        self.actual_valence = actual_valence
        super().__init__(message)


class MolFileWarning(UserWarning):
    """Non-fatal deviation from the CTAB format specification."""

    pass
