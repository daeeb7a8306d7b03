"""
V2000 connection table reader.

Decodes the fixed-column counts line, atom block and bond block of a
V2000 record. Column offsets follow the CTfile format exactly:

    counts:  aaabbblllfffcccsssxxxrrrpppiiimmmvvvvvv
    atom:    xxxxx.xxxxyyyyy.yyyyzzzzz.zzzz aaaddcccssshhhbbbvvvHHHrrriiimmmnnneee
    bond:    111222tttsssxxxrrrccc

Optional trailing fields are read only when the line is long enough to
hold them and the field is not the all-blank ``0`` placeholder.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Final

from molblock.elements import (
    DEUTERIUM_MASS,
    TRITIUM_MASS,
    BondDir,
    BondOrder,
    BondStereo,
    get_atomic_number,
)
from molblock.exceptions import FormatError, MolFileWarning
from molblock.fields import field, optional_int, to_float, to_int
from molblock.lines import LineReader
from molblock.query import (
    QueryNode,
    atomic_num_query,
    bond_in_ring_query,
    bond_order_query,
    expand_bond_query,
    null_query,
    or_query,
)
from molblock.types import Atom, Bond, Conformer, Molecule

SUPPORTED_VERSIONS: Final[frozenset[str]] = frozenset({"V2000", "V3000"})

# Symbols that stand for a placeholder rather than an element
_PLACEHOLDER_SYMBOLS: Final[frozenset[str]] = frozenset(
    {"L", "LP", "R", "R#"} | {f"R{d}" for d in range(10)}
)

# Query bond codes 5-7: OR over two orders
_OR_BOND_CODES: Final[dict[int, tuple[BondOrder, BondOrder]]] = {
    5: (BondOrder.SINGLE, BondOrder.DOUBLE),
    6: (BondOrder.SINGLE, BondOrder.AROMATIC),
    7: (BondOrder.DOUBLE, BondOrder.AROMATIC),
}

# V2000 bond stereo field -> direction marker
_BOND_STEREO_CODES: Final[dict[int, BondDir]] = {
    0: BondDir.NONE,
    1: BondDir.BEGIN_WEDGE,
    3: BondDir.EITHER_DOUBLE,
    4: BondDir.UNKNOWN,
    6: BondDir.BEGIN_DASH,
}

# Extra atom fields kept in Atom.props: (start, key)
_EXTRA_ATOM_FIELDS: Final[tuple[tuple[int, str], ...]] = (
    (45, "stereo_care"),
    (48, "total_valence"),
    (63, "inversion_flag"),
    (66, "exact_change"),
)


@dataclass(slots=True)
class CountsLine:
    """Decoded V2000 counts line.

    Attributes:
        num_atoms: Declared atom count.
        num_bonds: Declared bond count.
        num_lists: Atom list count (legacy).
        chiral_flag: Chiral flag (0 or 1).
        num_stext: Structural text entry count (legacy).
        num_rxn_components: Reaction component count (legacy).
        num_reactants: Reactant count (legacy).
        num_products: Product count (legacy).
        num_intermediates: Intermediate count (legacy).
        version: "V2000" or "V3000".
    """

    num_atoms: int
    num_bonds: int
    num_lists: int = 0
    chiral_flag: int = 0
    num_stext: int = 0
    num_rxn_components: int = 0
    num_reactants: int = 0
    num_products: int = 0
    num_intermediates: int = 0
    version: str = "V2000"

    @property
    def is_v3000(self) -> bool:
        return self.version == "V3000"


_OPTIONAL_COUNTS: Final[tuple[tuple[int, str], ...]] = (
    (6, "num_lists"),
    (12, "chiral_flag"),
    (15, "num_stext"),
    (18, "num_rxn_components"),
    (21, "num_reactants"),
    (24, "num_products"),
    (27, "num_intermediates"),
)


def parse_counts_line(text: str, strict: bool = False) -> CountsLine:
    """Decode a counts line.

    Only the atom and bond counts are mandatory. Malformed legacy counters
    are ignored unless ``strict`` is set, since many files leave them out.

    Args:
        text: The counts line.
        strict: Treat malformed optional counters as errors.

    Raises:
        FormatError: If the line is too short, a mandatory count is bad,
            or the version tag is invalid.
    """
    if len(text) < 6:
        raise FormatError("Counts line too short", text)

    counts = CountsLine(
        num_atoms=to_int(field(text, 0, 3), name="atom count"),
        num_bonds=to_int(field(text, 3, 3), name="bond count"),
    )
    if counts.num_atoms < 0 or counts.num_bonds < 0:
        raise FormatError("Negative atom or bond count", text)

    try:
        for start, attr in _OPTIONAL_COUNTS:
            if len(text) >= start + 3:
                setattr(counts, attr, to_int(field(text, start, 3), accept_spaces=True, name=attr))
    except FormatError:
        # Some producers leave out the legacy counters; stop at the first bad one
        if strict:
            raise

    if len(text) > 35:
        if len(text) < 39 or text[34] != "V":
            raise FormatError("CTAB version string invalid", text)
        version = field(text, 34, 5)
        if version not in SUPPORTED_VERSIONS:
            raise FormatError("Unsupported CTAB version", version, field="version")
        counts.version = version

    return counts


# ============================================================================
# Atoms
# ============================================================================

def atom_from_symbol(symbol: str, mass_diff: int = 0) -> Atom:
    """Build an atom for a CTAB atom symbol.

    Special symbols are recognized before element lookup:

    - ``*`` matches any atom, ``A`` any heavy atom, ``Q`` anything but
      carbon or hydrogen. These become query atoms with implicit hydrogens
      suppressed.
    - ``L``, ``LP``, ``R``, ``R#`` and ``R0``-``R9`` are atomic number 0
      placeholders; ``R1``-``R9`` carry the digit as mass when no mass
      difference is given.
    - ``D`` and ``T`` are hydrogen isotopes.

    Raises:
        FormatError: If the symbol is not a known element.
    """
    if symbol in ("*", "A", "Q"):
        query: QueryNode
        if symbol == "*":
            query = null_query()
        elif symbol == "Q":
            query = or_query([atomic_num_query(6), atomic_num_query(1)], negated=True)
        else:
            query = atomic_num_query(1, negated=True)
        return Atom(atomic_number=0, query=query, no_implicit=True)

    if symbol in _PLACEHOLDER_SYMBOLS:
        atom = Atom(atomic_number=0)
        if mass_diff == 0 and len(symbol) == 2 and symbol[0] == "R" and symbol[1] in "123456789":
            atom.mass = float(symbol[1])
        return atom

    if symbol == "D":
        return Atom(atomic_number=1, mass=DEUTERIUM_MASS)
    if symbol == "T":
        return Atom(atomic_number=1, mass=TRITIUM_MASS)

    atomic_num = get_atomic_number(symbol)
    if atomic_num == 0:
        raise FormatError("Unrecognized atom symbol", symbol, field="symbol")
    return Atom(atomic_number=atomic_num)


def parse_atom_line(text: str) -> tuple[Atom, tuple[float, float, float]]:
    """Decode one V2000 atom line.

    Returns:
        The atom (not yet added to a molecule) and its coordinates.

    Raises:
        FormatError: If the line is too short or a field is malformed.
    """
    if len(text) < 34:
        raise FormatError("Atom line too short", text)

    pos = (
        to_float(field(text, 0, 10), name="x"),
        to_float(field(text, 10, 10), name="y"),
        to_float(field(text, 20, 10), name="z"),
    )
    symbol = field(text, 31, 3).split(" ", 1)[0]

    mass_diff = optional_int(text, 34, 2, "mass difference") or 0
    charge_code = optional_int(text, 36, 3, "charge") or 0
    h_count = optional_int(text, 42, 3, "hydrogen count") or 0

    atom = atom_from_symbol(symbol, mass_diff)
    if charge_code != 0:
        atom.charge = 4 - charge_code
    if h_count == 1:
        atom.no_implicit = True
    if h_count:
        atom.props["hydrogen_count"] = h_count
    if mass_diff != 0 and symbol not in ("D", "T"):
        atom.mass = atom.get_mass() + mass_diff
        atom.has_mass_query = True

    parity = optional_int(text, 39, 3, "parity")
    if parity is not None:
        atom.parity = parity
    for start, key in _EXTRA_ATOM_FIELDS:
        value = optional_int(text, start, 3, key)
        if value is not None:
            atom.props[key] = value
    map_number = optional_int(text, 60, 3, "map number")
    if map_number:
        atom.map_number = map_number

    return atom, pos


def read_atom_block(
    reader: LineReader,
    mol: Molecule,
    conformer: Conformer,
    num_atoms: int,
) -> None:
    """Read ``num_atoms`` atom lines into ``mol`` and ``conformer``."""
    for _ in range(num_atoms):
        text = reader.require("atoms")
        try:
            atom, pos = parse_atom_line(text)
        except FormatError as exc:
            raise exc.at_line(reader.line_number)
        idx = mol.add_atom(atom)
        conformer.set_atom_pos(idx, pos)


# ============================================================================
# Bonds
# ============================================================================

def bond_from_order_code(code: int) -> Bond:
    """Build an unconnected bond for a CTAB bond type code.

    Codes 1-4 are plain orders; 0 is an unspecified bond; 5-7 are
    two-way order queries; 8 matches any bond. Anything else also
    matches any bond, with a warning.
    """
    if code in (1, 2, 3, 4):
        order = BondOrder(code)
        return Bond(order=order, is_aromatic=order is BondOrder.AROMATIC)
    if code == 0:
        warnings.warn(
            "bond with order 0 found. This is not part of the MDL specification.",
            MolFileWarning,
            stacklevel=3,
        )
        return Bond(order=BondOrder.UNSPECIFIED)
    if code in _OR_BOND_CODES:
        first, second = _OR_BOND_CODES[code]
        query = or_query([bond_order_query(first), bond_order_query(second)])
        return Bond(order=BondOrder.UNSPECIFIED, query=query)
    if code != 8:
        warnings.warn(
            f'unrecognized query bond type, {code}, found. Using an "any" query.',
            MolFileWarning,
            stacklevel=3,
        )
    return Bond(order=BondOrder.UNSPECIFIED, query=null_query())


def apply_ring_topology(bond: Bond, topology: int) -> None:
    """Constrain a bond to ring (1) or chain (2) membership.

    Raises:
        FormatError: For any other topology code.
    """
    if topology not in (1, 2):
        raise FormatError("Unrecognized bond topology specifier", str(topology), field="topology")
    bond.topology = topology
    expand_bond_query(bond, bond_in_ring_query(negated=topology == 2))


def parse_bond_line(text: str) -> Bond:
    """Decode one V2000 bond line.

    Atom numbers are converted to 0-based indices but not range checked;
    ``Molecule.add_bond`` does that.

    Raises:
        FormatError: If the line is too short, a mandatory field is bad or
            the topology code is unknown.
    """
    if len(text) < 9:
        raise FormatError("Bond line too short", text)

    begin = to_int(field(text, 0, 3), name="first atom")
    end = to_int(field(text, 3, 3), name="second atom")
    bond = bond_from_order_code(to_int(field(text, 6, 3), name="bond type"))
    bond.begin_idx = begin - 1
    bond.end_idx = end - 1

    # Malformed optional bond fields are ignored
    try:
        stereo = optional_int(text, 9, 3, "bond stereo")
    except FormatError:
        stereo = None
    if stereo is not None and stereo in _BOND_STEREO_CODES:
        bond.direction = _BOND_STEREO_CODES[stereo]
        if bond.direction is BondDir.EITHER_DOUBLE:
            bond.stereo = BondStereo.ANY

    try:
        topology = optional_int(text, 15, 3, "bond topology")
    except FormatError:
        topology = None
    if topology:
        apply_ring_topology(bond, topology)

    try:
        bond.react_status = optional_int(text, 18, 3, "reacting center status")
    except FormatError:
        pass

    return bond


def add_parsed_bond(mol: Molecule, bond: Bond) -> int:
    """Add a decoded bond and propagate its flags to the molecule.

    Aromatic bonds mark both atoms aromatic; wedge, hash and either-double
    markers flag the molecule for atom stereo perception.
    """
    idx = mol.add_bond(bond)
    if bond.is_aromatic:
        mol.atoms[bond.begin_idx].is_aromatic = True
        mol.atoms[bond.end_idx].is_aromatic = True
    if bond.direction not in (BondDir.NONE, BondDir.UNKNOWN):
        mol.chirality_possible = True
    return idx


def read_bond_block(reader: LineReader, mol: Molecule, num_bonds: int) -> None:
    """Read ``num_bonds`` bond lines into ``mol``."""
    for _ in range(num_bonds):
        text = reader.require("bonds")
        try:
            add_parsed_bond(mol, parse_bond_line(text))
        except FormatError as exc:
            raise exc.with_text(text).at_line(reader.line_number)
