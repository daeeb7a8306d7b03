"""
V2000 property block reader.

After the bond block a V2000 record carries property lines up to
``M  END``. Lines are dispatched on their 6-character prefix:

    M  CHG  charges            M  RBC  ring bond count queries
    M  RAD  radicals           M  RGP  R-group labels
    M  ISO  isotope masses     M  ALS  atom lists
    M  SUB  degree queries     S  SKP  skip marker
    M  UNS  unsaturation

and on the first character for the legacy ``A`` (alias), ``V`` (value)
and ``G`` (group abbreviation) lines. Unknown prefixes are skipped.

Counted property lines share one layout: the entry count in columns
6-8, then one 8-character ``aaaa vvv`` slot per entry starting at
column 9.
"""

from __future__ import annotations

import warnings
from dataclasses import replace
from typing import Callable, Final, Iterator

from molblock.elements import get_atomic_number, get_atomic_weight
from molblock.exceptions import FormatError, MolFileWarning, RangeError
from molblock.fields import field, to_int
from molblock.lines import LineReader
from molblock.logging_utils import get_logger
from molblock.query import (
    Comparison,
    QueryNode,
    atom_list_query,
    atomic_num_query,
    expand_atom_query,
    explicit_degree_query,
    null_query,
    or_query,
    ring_bond_count_query,
    unsaturated_query,
)
from molblock.types import Molecule

logger = get_logger(__name__)

# Radical code -> unpaired electrons (codes 1 and 3 both count as 2)
RADICAL_ELECTRONS: Final[dict[int, int]] = {0: 0, 1: 2, 2: 1, 3: 2}

MAX_OLD_LIST_ENTRIES: Final[int] = 5
MAX_OLD_LIST_ATOMIC_NUM: Final[int] = 200

# First characters that end the legacy atom list section
_PROPERTY_STARTS: Final[frozenset[str]] = frozenset("MAVGS$")


def ring_bond_count_constraint(code: int, mol: Molecule) -> QueryNode | None:
    """Map a ring bond count code to a query.

    ``0`` means no constraint, ``-1`` exactly zero ring bonds, ``-2`` the
    count as drawn (resolved once the graph is complete), ``1``-``3`` a
    literal count and ``4`` four or more.

    Raises:
        FormatError: For any other code.
    """
    if code == 0:
        return None
    if code == -1:
        return ring_bond_count_query(0)
    if code == -2:
        mol.needs_query_rescan = True
        return ring_bond_count_query(None)
    if 1 <= code <= 3:
        return ring_bond_count_query(code)
    if code == 4:
        return ring_bond_count_query(4, Comparison.AT_MOST_TARGET)
    raise FormatError(
        f"Value {code} is not supported as a ring-bond count query", str(code), field="ring bond count"
    )


def degree_constraint(code: int, mol: Molecule, atom_idx: int) -> QueryNode | None:
    """Map a substitution count code to an explicit degree query.

    ``0`` means no constraint, ``-1`` degree zero, ``-2`` the degree as
    drawn, ``1``-``5`` a literal degree. ``6`` is an exact match on 6
    (the format says 6 or more), with a warning.

    Raises:
        FormatError: For any other code.
    """
    if code == 0:
        return None
    if code == -1:
        return explicit_degree_query(0)
    if code == -2:
        return explicit_degree_query(mol.degree(atom_idx))
    if 1 <= code <= 5:
        return explicit_degree_query(code)
    if code == 6:
        warnings.warn(
            "atom degree query with value 6 found. This will not match degree >6. "
            "The MDL spec says it should.",
            MolFileWarning,
            stacklevel=4,
        )
        return explicit_degree_query(6)
    raise FormatError(
        f"Value {code} is not supported as a degree query", str(code), field="substitution count"
    )


def _entries(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(atom number, raw value)`` pairs of a counted property line."""
    count = to_int(field(text, 6, 3), name="entry count")
    pos = 9
    for _ in range(count):
        atom_num = to_int(field(text, pos, 4), name="atom number")
        yield atom_num, field(text, pos + 4, 4)
        pos += 8


class PropertyReader:
    """Reads the V2000 property block of one record into a molecule.

    Charge and radical lists reset every atom on their first occurrence in
    a record only; later lines of the same kind just apply their entries.

    Args:
        reader: Line cursor positioned after the bond block.
        mol: Molecule holding the atoms and bonds read so far.
    """

    def __init__(self, reader: LineReader, mol: Molecule) -> None:
        self._reader = reader
        self._mol = mol
        self._charges_reset = False
        self._radicals_reset = False
        self._handlers: dict[str, Callable[[str], None]] = {
            "M  CHG": self._parse_charges,
            "M  RAD": self._parse_radicals,
            "M  ISO": self._parse_isotopes,
            "M  SUB": self._parse_substitution_counts,
            "M  UNS": self._parse_unsaturation,
            "M  RBC": self._parse_ring_bond_counts,
            "M  RGP": self._parse_rgroup_labels,
            "M  ALS": self._parse_atom_list,
            "S  SKP": self._skip,
        }
        self._legacy_handlers: dict[str, Callable[[str], None]] = {
            "A": self._parse_alias,
            "V": self._parse_value,
            "G": self._parse_group_abbreviation,
        }

    def read(self) -> None:
        """Consume property lines through ``M  END``.

        Raises:
            FormatError: On a malformed property line, or if the input ends
                (or a ``$$$$`` terminator appears) before ``M  END``.
        """
        text = self._reader.read()

        # Older files put atom list lines ahead of the properties
        while text is not None and text.strip() and text[0] not in _PROPERTY_STARTS:
            self._dispatch(self._parse_old_atom_list, text)
            text = self._reader.read()

        while text is not None and not text.startswith("$$$$"):
            if text.startswith("M  END"):
                return
            handler = self._handlers.get(text[:6]) or self._legacy_handlers.get(text[:1])
            if handler is not None:
                self._dispatch(handler, text)
            else:
                logger.debug("Skipping property line %d: %r", self._reader.line_number, text)
            text = self._reader.read()

        raise FormatError(
            "Problems encountered parsing Mol data, M  END missing",
            line=self._reader.line_number,
        )

    def _dispatch(self, handler: Callable[[str], None], text: str) -> None:
        line_number = self._reader.line_number
        try:
            handler(text)
        except FormatError as exc:
            raise exc.with_text(text).at_line(line_number)

    def _atom_index(self, atom_num: int) -> int:
        """Convert a 1-based atom number to an index, checking its range."""
        if atom_num < 1 or atom_num > self._mol.num_atoms:
            raise RangeError(
                f"Atom number {atom_num} out of range 1..{self._mol.num_atoms}",
                index=atom_num,
                limit=self._mol.num_atoms,
            )
        return atom_num - 1

    # ------------------------------------------------------------------
    # Counted property lines
    # ------------------------------------------------------------------

    def _parse_charges(self, text: str) -> None:
        if not self._charges_reset:
            for atom in self._mol.atoms:
                atom.charge = 0
            self._charges_reset = True
        for atom_num, value in _entries(text):
            idx = self._atom_index(atom_num)
            self._mol.atoms[idx].charge = to_int(value, name="charge")

    def _parse_radicals(self, text: str) -> None:
        if not self._radicals_reset:
            for atom in self._mol.atoms:
                atom.radical_electrons = 0
            self._radicals_reset = True
        for atom_num, value in _entries(text):
            idx = self._atom_index(atom_num)
            code = to_int(value, name="radical")
            if code not in RADICAL_ELECTRONS:
                raise FormatError(f"Unrecognized radical value {code} for atom {atom_num}", value, field="radical")
            self._mol.atoms[idx].radical_electrons = RADICAL_ELECTRONS[code]

    def _parse_isotopes(self, text: str) -> None:
        for atom_num, value in _entries(text):
            atom = self._mol.atoms[self._atom_index(atom_num)]
            if value.strip():
                atom.mass = float(to_int(value, name="mass"))
            else:
                atom.mass = get_atomic_weight(atom.atomic_number)

    def _parse_substitution_counts(self, text: str) -> None:
        for atom_num, value in _entries(text):
            idx = self._atom_index(atom_num)
            if not value.strip():
                continue
            query = degree_constraint(to_int(value, name="substitution count"), self._mol, idx)
            if query is not None:
                expand_atom_query(self._mol, idx, query)

    def _parse_unsaturation(self, text: str) -> None:
        for atom_num, value in _entries(text):
            idx = self._atom_index(atom_num)
            if not value.strip():
                continue
            flag = to_int(value, name="unsaturation")
            if flag == 0:
                continue
            if flag != 1:
                raise FormatError(
                    f"Value {flag} is not supported as an unsaturation query (only 0 and 1 are allowed)",
                    value,
                    field="unsaturation",
                )
            expand_atom_query(self._mol, idx, unsaturated_query())

    def _parse_ring_bond_counts(self, text: str) -> None:
        for atom_num, value in _entries(text):
            idx = self._atom_index(atom_num)
            if not value.strip():
                continue
            query = ring_bond_count_constraint(to_int(value, name="ring bond count"), self._mol)
            if query is not None:
                expand_atom_query(self._mol, idx, query)

    def _parse_rgroup_labels(self, text: str) -> None:
        count = to_int(field(text, 6, 3), name="entry count")
        for i in range(count):
            pos = 10 + i * 8
            idx = self._atom_index(to_int(field(text, pos, 3), name="atom number"))
            label = to_int(field(text, pos + 4, 3), name="R-group label")
            atom = self._mol.atoms[idx]
            mass = float(label) if 0 < label < 999 else atom.mass
            self._mol.replace_atom(
                idx, replace(atom, rgroup_label=label, mass=mass, query=null_query())
            )

    # ------------------------------------------------------------------
    # Atom lists
    # ------------------------------------------------------------------

    def _parse_atom_list(self, text: str) -> None:
        """``M  ALS aaannn e 11112222...``: new-style atom list."""
        if len(text) < 15:
            raise FormatError("Atom list line too short", text)
        idx = self._atom_index(to_int(field(text, 7, 3), name="atom number"))
        count = to_int(field(text, 10, 3), name="entry count")
        if count <= 0:
            raise FormatError("Atom list has no entries", text)

        atomic_numbers: list[int] = []
        for i in range(count):
            pos = 16 + i * 4
            if len(text) < pos + 4:
                raise FormatError("Atom list line too short", text)
            symbol = field(text, pos, 4).split(" ", 1)[0]
            atomic_num = get_atomic_number(symbol)
            if atomic_num == 0:
                raise FormatError("Unrecognized atom symbol", symbol, field="atom list")
            atomic_numbers.append(atomic_num)

        negated = self._list_sense(text[14])
        atom = self._mol.atoms[idx]
        self._mol.replace_atom(
            idx,
            replace(
                atom,
                atomic_number=atomic_numbers[0],
                query=atom_list_query(atomic_numbers, negated=negated),
            ),
        )

    def _parse_old_atom_list(self, text: str) -> None:
        """``aaa kSSSSn nnn nnn ...``: atom list block ahead of the properties."""
        idx = self._atom_index(to_int(field(text, 0, 3), name="atom number"))
        negated = self._list_sense(field(text, 4, 1))
        count = to_int(field(text, 9, 1), name="entry count")
        if not 0 <= count <= MAX_OLD_LIST_ENTRIES:
            raise RangeError(
                f"Atom list entry count {count} out of range 0..{MAX_OLD_LIST_ENTRIES}",
                index=count,
                limit=MAX_OLD_LIST_ENTRIES,
            )

        children: list[QueryNode] = []
        atom = self._mol.atoms[idx]
        atomic_number = atom.atomic_number
        for i in range(count):
            atomic_num = to_int(field(text, 11 + i * 4, 3), name="atomic number")
            if not 0 <= atomic_num <= MAX_OLD_LIST_ATOMIC_NUM:
                raise RangeError(
                    f"Atomic number {atomic_num} out of range 0..{MAX_OLD_LIST_ATOMIC_NUM}",
                    index=atomic_num,
                    limit=MAX_OLD_LIST_ATOMIC_NUM,
                )
            children.append(atomic_num_query(atomic_num))
            if i == 0:
                atomic_number = atomic_num

        self._mol.replace_atom(
            idx,
            replace(atom, atomic_number=atomic_number, query=or_query(children, negated=negated)),
        )

    @staticmethod
    def _list_sense(flag: str) -> bool:
        """``T`` excludes the listed elements, ``F`` allows them."""
        if flag == "T":
            return True
        if flag == "F":
            return False
        raise FormatError("Unrecognized atom-list query modifier", flag, field="list type")

    # ------------------------------------------------------------------
    # Legacy lines
    # ------------------------------------------------------------------

    def _parse_alias(self, text: str) -> None:
        idx = self._atom_index(to_int(field(text, 3, 3), name="atom number"))
        self._mol.atoms[idx].props["alias"] = self._reader.require("atom alias")

    def _parse_value(self, text: str) -> None:
        idx = self._atom_index(to_int(field(text, 3, 3), name="atom number"))
        self._mol.atoms[idx].props["value"] = text[7:]

    def _parse_group_abbreviation(self, text: str) -> None:
        warnings.warn("deprecated group abbreviation ignored", MolFileWarning, stacklevel=4)

    def _skip(self, text: str) -> None:
        pass


def read_properties(reader: LineReader, mol: Molecule) -> None:
    """Read the V2000 property block following the bond block."""
    PropertyReader(reader, mol).read()
