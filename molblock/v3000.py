"""
V3000 connection table reader.

V3000 records carry their CTAB as tagged, whitespace-tokenized logical
lines (see ``molblock.lines.read_v3000_line``):

    M  V30 BEGIN CTAB
    M  V30 COUNTS 2 1 0 0 0
    M  V30 BEGIN ATOM
    M  V30 1 C 0.0 0.0 0.0 0 CHG=1
    M  V30 2 [N,O] 1.5 0.0 0.0 0
    M  V30 END ATOM
    M  V30 BEGIN BOND
    M  V30 1 2 1 2 CFG=2
    M  V30 END BOND
    M  V30 END CTAB

Atom and bond numbers in the file are resolved through molecule
bookmarks, so they need not be contiguous.
"""

from __future__ import annotations

import warnings
from typing import Callable

from molblock.elements import BondDir, BondStereo, get_atomic_number
from molblock.exceptions import FormatError, MolFileWarning, RangeError
from molblock.fields import to_float, to_int
from molblock.lines import LineReader, read_v3000_line
from molblock.logging_utils import get_logger
from molblock.properties import RADICAL_ELECTRONS, ring_bond_count_constraint
from molblock.query import (
    atom_list_query,
    expand_atom_query,
    formal_charge_query,
    h_count_query,
    mass_query,
    unsaturated_query,
)
from molblock.types import Atom, Conformer, Molecule
from molblock.v2000 import (
    add_parsed_bond,
    apply_ring_topology,
    atom_from_symbol,
    bond_from_order_code,
)

logger = get_logger(__name__)

_QUOTES = "'\""


class _Tokenizer:
    """Splits a V3000 logical line into tokens.

    Tokens are separated by runs of blanks or tabs. Quoted text (single
    or double quotes) may contain blanks; the quotes themselves are
    dropped.
    """

    __slots__ = ("_string", "_pos")

    def __init__(self, string: str) -> None:
        self._string = string
        self._pos = 0

    def peek(self) -> str | None:
        if self._pos >= len(self._string):
            return None
        return self._string[self._pos]

    def next(self) -> str | None:
        if self._pos >= len(self._string):
            return None
        char = self._string[self._pos]
        self._pos += 1
        return char

    def read_while(self, predicate: Callable[[str], bool]) -> str:
        start = self._pos
        while self._pos < len(self._string) and predicate(self._string[self._pos]):
            self._pos += 1
        return self._string[start:self._pos]

    def is_eof(self) -> bool:
        return self._pos >= len(self._string)

    def _read_quoted(self, quote: str) -> str:
        text = self.read_while(lambda c: c != quote)
        if self.next() != quote:
            raise FormatError("Unterminated quoted value", self._string)
        return text

    def tokens(self) -> list[str]:
        """Return all remaining tokens."""
        result: list[str] = []
        while True:
            self.read_while(str.isspace)
            if self.is_eof():
                return result
            parts: list[str] = []
            while not self.is_eof() and not self.peek().isspace():
                char = self.next()
                if char in _QUOTES:
                    parts.append(self._read_quoted(char))
                else:
                    parts.append(char + self.read_while(lambda c: not c.isspace() and c not in _QUOTES))
            result.append("".join(parts))


def tokenize(text: str) -> list[str]:
    """Split a V3000 logical line into whitespace/quote-aware tokens."""
    return _Tokenizer(text).tokens()


def split_assignment(token: str) -> tuple[str, str]:
    """Split a ``KEY=VALUE`` token; the key is upper-cased.

    Raises:
        FormatError: Unless the token holds exactly one ``=``.
    """
    parts = token.split("=")
    if len(parts) != 2:
        raise FormatError("Invalid property token", token)
    return parts[0].upper(), parts[1]


def atom_from_v3000_symbol(token: str, negate: bool) -> Atom:
    """Build an atom for a V3000 symbol token or bracketed element list.

    Raises:
        FormatError: For a malformed list, an unknown element, or ``NOT``
            in front of a plain symbol.
    """
    if token.startswith("["):
        if not token.endswith("]"):
            raise FormatError("Bad atom list token", token, field="symbol")
        atomic_numbers: list[int] = []
        for symbol in token[1:-1].split(","):
            symbol = symbol.strip()
            if not symbol:
                continue
            atomic_num = get_atomic_number(symbol)
            if atomic_num == 0:
                raise FormatError("Unrecognized atom symbol", symbol, field="atom list")
            atomic_numbers.append(atomic_num)
        if not atomic_numbers:
            raise FormatError("Empty atom list", token, field="symbol")
        return Atom(
            atomic_number=atomic_numbers[0],
            query=atom_list_query(atomic_numbers, negated=negate),
        )

    if negate:
        raise FormatError("NOT tokens only supported for atom lists", token, field="symbol")
    return atom_from_symbol(token)


class V3000Reader:
    """Reads one V3000 CTAB (``BEGIN CTAB`` through ``END CTAB``).

    Args:
        reader: Line cursor positioned after the counts line.
        mol: Molecule to fill.
    """

    def __init__(self, reader: LineReader, mol: Molecule) -> None:
        self._reader = reader
        self._mol = mol
        self._pushed_back: str | None = None

    def read(self) -> Conformer:
        """Read the CTAB into the molecule.

        Returns:
            The conformer holding the atom coordinates.

        Raises:
            FormatError: On any structural or field error, with the line
                number of the offending line.
        """
        try:
            return self._read_ctab()
        except FormatError as exc:
            raise exc.at_line(self._reader.line_number)

    # ------------------------------------------------------------------
    # Logical line handling
    # ------------------------------------------------------------------

    def _next(self) -> str:
        if self._pushed_back is not None:
            line, self._pushed_back = self._pushed_back, None
            return line
        return read_v3000_line(self._reader)

    def _push_back(self, line: str) -> None:
        self._pushed_back = line

    def _expect(self, tag: str) -> str:
        line = self._next()
        if not line.startswith(tag):
            raise FormatError(f"{tag} line not found", line)
        return line

    def _skip_through(self, end_tag: str) -> None:
        while not self._next().startswith(end_tag):
            pass

    # ------------------------------------------------------------------
    # CTAB
    # ------------------------------------------------------------------

    def _read_ctab(self) -> Conformer:
        self._expect("BEGIN CTAB")

        line = self._next()
        if not line.startswith("COUNTS "):
            raise FormatError("Bad counts line", line)
        counts = line[7:].split()
        if len(counts) < 2:
            raise FormatError("Bad counts line", line)
        num_atoms = to_int(counts[0], name="atom count")
        num_bonds = to_int(counts[1], name="bond count")
        if num_atoms <= 0:
            raise FormatError("molecule has no atoms")
        if num_bonds < 0:
            raise FormatError("Bad counts line", line, field="bond count")
        num_sgroups = to_int(counts[2], name="S-group count") if len(counts) > 2 else 0
        num_3d = to_int(counts[3], name="3D constraint count") if len(counts) > 3 else 0
        if len(counts) > 4:
            self._mol.set_prop("chiral_flag", to_int(counts[4], name="chiral flag"))

        conformer = Conformer.with_size(num_atoms)
        self._read_atom_block(num_atoms, conformer)
        self._read_bond_block(num_bonds)

        if num_sgroups > 0:
            warnings.warn("S group information in mol block ignored", MolFileWarning, stacklevel=4)
            self._expect("BEGIN SGROUP")
            self._skip_through("END SGROUP")

        if num_3d > 0:
            warnings.warn(
                "3d constraint information in mol block ignored", MolFileWarning, stacklevel=4
            )
            self._expect("BEGIN OBJ3D")
            for _ in range(num_3d):
                self._next()
            self._expect("END OBJ3D")

        line = self._next()
        while line.startswith("LINKNODE"):
            line = self._next()

        while line.startswith("BEGIN"):
            warnings.warn(f"skipping block: {line}", MolFileWarning, stacklevel=4)
            logger.debug("Skipping V3000 block %r", line)
            self._skip_through("END")
            line = self._next()

        if not line.startswith("END CTAB"):
            raise FormatError("END CTAB line not found", line)
        return conformer

    # ------------------------------------------------------------------
    # Atoms
    # ------------------------------------------------------------------

    def _read_atom_block(self, num_atoms: int, conformer: Conformer) -> None:
        self._expect("BEGIN ATOM")
        for _ in range(num_atoms):
            self._parse_atom_line(self._next(), conformer)
        self._expect("END ATOM")

    def _parse_atom_line(self, line: str, conformer: Conformer) -> None:
        tokens = tokenize(line)
        negate = len(tokens) > 1 and tokens[1] == "NOT"
        fixed = tokens[2:7] if negate else tokens[1:6]
        if len(fixed) < 5:
            raise FormatError("Bad atom line", line)

        file_idx = to_int(tokens[0], name="atom number")
        symbol, x, y, z, aamap = fixed
        atom = atom_from_v3000_symbol(symbol, negate)
        map_number = to_int(aamap, name="atom map")
        if map_number:
            atom.map_number = map_number

        idx = self._mol.add_atom(atom)
        for token in tokens[7 if negate else 6:]:
            self._apply_atom_property(idx, token)

        self._mol.set_atom_bookmark(file_idx, idx)
        conformer.set_atom_pos(
            idx, (to_float(x, name="x"), to_float(y, name="y"), to_float(z, name="z"))
        )

    def _apply_atom_property(self, idx: int, token: str) -> None:
        key, value = split_assignment(token)
        mol = self._mol
        atom = mol.atoms[idx]

        if key == "CHG":
            charge = to_int(value, name="CHG")
            if atom.query is None:
                atom.charge = charge
            else:
                expand_atom_query(mol, idx, formal_charge_query(charge))
        elif key == "RAD":
            code = to_int(value, name="RAD")
            if code not in RADICAL_ELECTRONS:
                raise FormatError("Unrecognized RAD value", value, field="RAD")
            atom.radical_electrons = RADICAL_ELECTRONS[code]
        elif key == "MASS":
            mass = to_float(value, accept_spaces=False, name="MASS")
            if mass <= 0:
                raise FormatError("Bad value for MASS", value, field="MASS")
            if atom.query is None:
                atom.mass = mass
            else:
                expand_atom_query(mol, idx, mass_query(int(mass)))
        elif key == "CFG":
            cfg = to_int(value, name="CFG")
            if cfg not in (0, 1, 2, 3):
                raise FormatError("Unrecognized CFG value", value, field="CFG")
            if cfg:
                atom.parity = cfg
        elif key == "HCOUNT":
            if value != "0":
                count = to_int(value, name="HCOUNT")
                expand_atom_query(mol, idx, h_count_query(0 if count == -1 else count))
        elif key == "UNSAT":
            if value == "1":
                expand_atom_query(mol, idx, unsaturated_query())
        elif key == "RBCNT":
            if value != "0":
                query = ring_bond_count_constraint(to_int(value, name="RBCNT"), mol)
                if query is not None:
                    expand_atom_query(mol, idx, query)
        elif key == "AAMAP":
            if value != "0":
                atom.map_number = to_int(value, name="AAMAP")

    # ------------------------------------------------------------------
    # Bonds
    # ------------------------------------------------------------------

    def _read_bond_block(self, num_bonds: int) -> None:
        if num_bonds == 0:
            # The bond block may be left out entirely when there are no bonds
            line = self._next()
            if not line.startswith("BEGIN BOND"):
                self._push_back(line)
                return
        else:
            self._expect("BEGIN BOND")
        for _ in range(num_bonds):
            line = self._next()
            try:
                self._parse_bond_line(line)
            except RangeError as exc:
                raise exc.with_text(line)
        self._expect("END BOND")

    def _parse_bond_line(self, line: str) -> None:
        tokens = tokenize(line)
        if len(tokens) < 4:
            raise FormatError("Bond line too short", line)

        file_idx = to_int(tokens[0], name="bond number")
        code = to_int(tokens[1], name="bond type")
        begin = to_int(tokens[2], name="first atom")
        end = to_int(tokens[3], name="second atom")
        bond = bond_from_order_code(code)

        for token in tokens[4:]:
            key, value = split_assignment(token)
            if key == "CFG":
                cfg = to_int(value, name="CFG")
                if cfg == 1:
                    bond.direction = BondDir.BEGIN_WEDGE
                elif cfg == 2:
                    if code == 1:
                        bond.direction = BondDir.UNKNOWN
                    elif code == 2:
                        bond.direction = BondDir.EITHER_DOUBLE
                        bond.stereo = BondStereo.ANY
                elif cfg == 3:
                    bond.direction = BondDir.BEGIN_DASH
                elif cfg != 0:
                    raise FormatError("Bad bond CFG", value, field="CFG")
            elif key == "TOPO":
                if value != "0":
                    apply_ring_topology(bond, to_int(value, name="TOPO"))
            elif key == "RXCTR":
                bond.react_status = to_int(value, name="RXCTR")

        bond.begin_idx = self._mol.get_atom_with_bookmark(begin).idx
        bond.end_idx = self._mol.get_atom_with_bookmark(end).idx
        idx = add_parsed_bond(self._mol, bond)
        self._mol.set_bond_bookmark(file_idx, idx)


def read_v3000_ctab(reader: LineReader, mol: Molecule) -> Conformer:
    """Read a V3000 CTAB into ``mol`` and return its conformer."""
    return V3000Reader(reader, mol).read()
