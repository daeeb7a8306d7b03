"""
Fixed-width field decoding.

Molfile atom, bond, counts and property lines are fixed-column records.
These helpers cut a field out of a line and convert it, raising
``FormatError`` with the offending text and the field's name on failure.
"""

from __future__ import annotations

from molblock.exceptions import FormatError


def field(text: str, start: int, length: int) -> str:
    """Return the ``length``-character field starting at column ``start``.

    Short lines yield a short (possibly empty) field rather than an error.
    """
    return text[start:start + length]


def to_int(text: str, accept_spaces: bool = False, name: str | None = None) -> int:
    """Decode an integer field.

    Leading and trailing blanks are ignored. An all-blank field decodes to 0
    only when ``accept_spaces`` is set.

    Args:
        text: Raw field text.
        accept_spaces: Treat an all-blank field as 0.
        name: Semantic field name for error reporting.

    Raises:
        FormatError: If the field is blank (and not accepted) or not an integer.
    """
    stripped = text.strip()
    if not stripped:
        if accept_spaces:
            return 0
        raise FormatError("Blank integer field", text, field=name or "integer")
    digits = stripped[1:] if stripped[0] in "+-" else stripped
    if not (digits.isascii() and digits.isdigit()):
        raise FormatError("Cannot convert to int", text, field=name or "integer")
    return int(stripped)


def to_float(text: str, accept_spaces: bool = True, name: str | None = None) -> float:
    """Decode a floating point field; blank decodes to 0.0 by default.

    Raises:
        FormatError: If the field is blank (and not accepted) or not a number.
    """
    stripped = text.strip()
    if not stripped:
        if accept_spaces:
            return 0.0
        raise FormatError("Blank float field", text, field=name or "float")
    try:
        return float(stripped)
    except ValueError:
        raise FormatError("Cannot convert to float", text, field=name or "float") from None


def optional_int(
    text: str,
    start: int,
    length: int,
    name: str,
    placeholder: str | None = None,
) -> int | None:
    """Decode an optional trailing integer field.

    The field is absent when the line is too short to hold it or when it
    equals the placeholder (by default a right-aligned ``0``).

    Returns:
        The decoded value, or None when the field is absent.
    """
    if len(text) < start + length:
        return None
    raw = field(text, start, length)
    if placeholder is None:
        placeholder = "0".rjust(length)
    if raw == placeholder:
        return None
    return to_int(raw, accept_spaces=True, name=name)
