"""
Core molecular data types.

This module defines the structures a Molfile record is decoded into:
Atom, Bond, Conformer and Molecule. Atoms and bonds live in index-addressed
lists; an index never changes once assigned, so bookmarks and bond
endpoints stay valid when an atom is replaced by its query form.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator

from .elements import (
    BondDir,
    BondOrder,
    BondStereo,
    get_atomic_weight,
    get_symbol,
)
from .exceptions import FormatError, RangeError

if TYPE_CHECKING:
    from .query import QueryNode


@dataclass(slots=True)
class Atom:
    """Represents an atom in a molecule.

    An atom carries either a plain element identity or a query tree. Once
    ``query`` is set the atom is a query atom; further constraints are
    composed into the existing tree.

    Attributes:
        idx: Index of this atom in the molecule (-1 until added).
        atomic_number: Atomic number (0 for wildcards and R-group placeholders).
        mass: Isotope mass override, or None for the standard atomic weight.
        charge: Formal charge.
        radical_electrons: Number of unpaired electrons.
        no_implicit: True when implicit hydrogens are suppressed.
        explicit_hydrogens: Hydrogens folded in from removed H atoms.
        implicit_hydrogens: Implicit hydrogen count, set by sanitization.
        explicit_valence: Valence from explicit bonds, set after parsing.
        parity: Stereo parity code from the file (0-3).
        map_number: Atom-atom mapping number.
        rgroup_label: R-group label number.
        is_aromatic: Whether this atom is aromatic.
        chirality: Tetrahedral tag ("CW"/"CCW") from stereo perception.
        has_mass_query: Mass came from a mass difference; query upgrades
            must carry it as a constraint.
        query: Query tree, or None for a plain atom.
        props: Extra per-atom values from the file (alias, value, ...).
        bond_indices: Indices of bonds connected to this atom.
    """

    idx: int = -1
    atomic_number: int = 0
    mass: float | None = None
    charge: int = 0
    radical_electrons: int = 0
    no_implicit: bool = False
    explicit_hydrogens: int = 0
    implicit_hydrogens: int | None = None
    explicit_valence: int | None = None
    parity: int = 0
    map_number: int | None = None
    rgroup_label: int | None = None
    is_aromatic: bool = False
    chirality: str | None = None
    has_mass_query: bool = False
    query: QueryNode | None = None
    props: dict[str, Any] = field(default_factory=dict)
    bond_indices: list[int] = field(default_factory=list)

    @property
    def symbol(self) -> str:
        """Element symbol ("*" for atomic number 0)."""
        return get_symbol(self.atomic_number)

    @property
    def has_query(self) -> bool:
        """Whether this atom is a query atom."""
        return self.query is not None

    def get_mass(self) -> float:
        """Isotope mass if set, otherwise the standard atomic weight."""
        if self.mass is not None:
            return self.mass
        return get_atomic_weight(self.atomic_number)

    def total_hydrogens(self) -> int:
        """Explicit plus implicit hydrogen count (bonded H atoms excluded)."""
        return self.explicit_hydrogens + (self.implicit_hydrogens or 0)

    def neighbors(self, mol: "Molecule") -> Iterator[int]:
        """Iterate over indices of neighboring atoms."""
        for bond_idx in self.bond_indices:
            yield mol.bonds[bond_idx].other_atom(self.idx)

    def get_bonds(self, mol: "Molecule") -> Iterator["Bond"]:
        """Iterate over bonds connected to this atom."""
        for bond_idx in self.bond_indices:
            yield mol.bonds[bond_idx]


@dataclass(slots=True)
class Bond:
    """Represents a chemical bond between two atoms.

    Attributes:
        idx: Index of this bond in the molecule (-1 until added).
        begin_idx: Index of the first atom.
        end_idx: Index of the second atom.
        order: Bond order; UNSPECIFIED for order 0 and query bonds.
        query: Query tree, or None for a plain bond.
        direction: Wedge/hash marker relative to the begin atom.
        stereo: Double bond stereo configuration.
        is_aromatic: Whether this bond is aromatic.
        topology: Ring topology constraint (0 none, 1 ring, 2 chain).
        react_status: Reacting-center status, if given.
    """

    idx: int = -1
    begin_idx: int = -1
    end_idx: int = -1
    order: BondOrder = BondOrder.SINGLE
    query: QueryNode | None = None
    direction: BondDir = BondDir.NONE
    stereo: BondStereo = BondStereo.NONE
    is_aromatic: bool = False
    topology: int = 0
    react_status: int | None = None

    @property
    def has_query(self) -> bool:
        """Whether this bond is a query bond."""
        return self.query is not None

    def other_atom(self, atom_idx: int) -> int:
        """Get the index of the atom on the other end of this bond.

        Raises:
            ValueError: If atom_idx is not part of this bond.
        """
        if atom_idx == self.begin_idx:
            return self.end_idx
        if atom_idx == self.end_idx:
            return self.begin_idx
        raise ValueError(f"Atom {atom_idx} not in bond {self.idx}")

    def __contains__(self, atom_idx: int) -> bool:
        """Check if atom is part of this bond."""
        return atom_idx in (self.begin_idx, self.end_idx)


@dataclass(slots=True)
class Conformer:
    """One coordinate assignment for all atoms of a molecule."""

    positions: list[tuple[float, float, float]] = field(default_factory=list)
    is_3d: bool = True

    @classmethod
    def with_size(cls, num_atoms: int) -> "Conformer":
        return cls(positions=[(0.0, 0.0, 0.0)] * num_atoms)

    def set_atom_pos(self, idx: int, pos: tuple[float, float, float]) -> None:
        if idx >= len(self.positions):
            self.positions.extend([(0.0, 0.0, 0.0)] * (idx + 1 - len(self.positions)))
        self.positions[idx] = pos

    def get_atom_pos(self, idx: int) -> tuple[float, float, float]:
        return self.positions[idx]

    def __len__(self) -> int:
        return len(self.positions)


@dataclass
class Molecule:
    """Represents a molecular structure decoded from a Molfile record.

    Attributes:
        atoms: List of atoms; list position equals ``Atom.idx``.
        bonds: List of bonds; list position equals ``Bond.idx``.
        name: Record name (first header line).
        conformer: The single coordinate set, once attached.
        props: Record-level named properties (header lines, SDF data items).
        chirality_possible: A bond carried a wedge or hash marker.
        needs_query_rescan: Some query values are deferred until the
            whole graph is known.
        ring_bonds: Indices of ring bonds, once rings have been perceived.

    Example:
        >>> mol = Molecule()
        >>> c1 = mol.add_atom(Atom(atomic_number=6))
        >>> c2 = mol.add_atom(Atom(atomic_number=6))
        >>> mol.add_bond(Bond(begin_idx=c1, end_idx=c2))
        0
        >>> len(mol)
        2
    """

    atoms: list[Atom] = field(default_factory=list)
    bonds: list[Bond] = field(default_factory=list)
    name: str | None = None
    conformer: Conformer | None = None
    props: dict[str, Any] = field(default_factory=dict)
    chirality_possible: bool = False
    needs_query_rescan: bool = False
    ring_bonds: set[int] | None = None
    _atom_bookmarks: dict[int, int] = field(default_factory=dict, repr=False)
    _bond_bookmarks: dict[int, int] = field(default_factory=dict, repr=False)

    def __len__(self) -> int:
        """Return number of atoms."""
        return len(self.atoms)

    def __iter__(self) -> Iterator[Atom]:
        """Iterate over atoms."""
        return iter(self.atoms)

    def __getitem__(self, idx: int) -> Atom:
        """Get atom by index."""
        return self.atoms[idx]

    @property
    def num_atoms(self) -> int:
        """Number of atoms in the molecule."""
        return len(self.atoms)

    @property
    def num_bonds(self) -> int:
        """Number of bonds in the molecule."""
        return len(self.bonds)

    def add_atom(self, atom: Atom) -> int:
        """Append an atom and return its stable index."""
        idx = len(self.atoms)
        atom.idx = idx
        atom.bond_indices = []
        self.atoms.append(atom)
        return idx

    def add_bond(self, bond: Bond) -> int:
        """Append a bond between two existing atoms.

        Returns:
            Index of the newly added bond.

        Raises:
            RangeError: If an endpoint index is outside the atom list.
            FormatError: If both endpoints are the same atom.
        """
        for end in (bond.begin_idx, bond.end_idx):
            if end < 0 or end >= len(self.atoms):
                raise RangeError(
                    f"Bond atom number {end + 1} out of range 1..{len(self.atoms)}",
                    index=end + 1,
                    limit=len(self.atoms),
                )
        if bond.begin_idx == bond.end_idx:
            raise FormatError(f"Bond connects atom {bond.begin_idx + 1} to itself")

        idx = len(self.bonds)
        bond.idx = idx
        self.bonds.append(bond)
        self.atoms[bond.begin_idx].bond_indices.append(idx)
        self.atoms[bond.end_idx].bond_indices.append(idx)
        return idx

    def replace_atom(self, idx: int, atom: Atom) -> Atom:
        """Store ``atom`` at ``idx``, keeping index and bond connectivity.

        Returns:
            The stored atom.
        """
        old = self.get_atom(idx)
        atom.idx = idx
        atom.bond_indices = old.bond_indices
        self.atoms[idx] = atom
        return atom

    def get_atom(self, idx: int) -> Atom:
        """Get an atom by 0-based index.

        Raises:
            RangeError: If the index is outside the atom list.
        """
        if idx < 0 or idx >= len(self.atoms):
            raise RangeError(
                f"Atom number {idx + 1} out of range 1..{len(self.atoms)}",
                index=idx + 1,
                limit=len(self.atoms),
            )
        return self.atoms[idx]

    def get_bond_between(self, atom1_idx: int, atom2_idx: int) -> Bond | None:
        """Find the bond between two atoms, or None."""
        for bond_idx in self.atoms[atom1_idx].bond_indices:
            bond = self.bonds[bond_idx]
            if atom1_idx in bond and atom2_idx in bond:
                return bond
        return None

    def degree(self, atom_idx: int) -> int:
        """Number of explicit bonds to an atom."""
        return len(self.atoms[atom_idx].bond_indices)

    # Record-level properties

    def set_prop(self, key: str, value: Any) -> None:
        self.props[key] = value

    def get_prop(self, key: str, default: Any = None) -> Any:
        return self.props.get(key, default)

    def has_prop(self, key: str) -> bool:
        return key in self.props

    def clear_prop(self, key: str) -> None:
        self.props.pop(key, None)

    # Bookmarks: file-local numbers -> internal indices

    def set_atom_bookmark(self, mark: int, atom_idx: int) -> None:
        self._atom_bookmarks[mark] = atom_idx

    def get_atom_with_bookmark(self, mark: int) -> Atom:
        """Resolve a file-local atom number.

        Raises:
            RangeError: If no atom carries that bookmark.
        """
        if mark not in self._atom_bookmarks:
            raise RangeError(f"No atom with number {mark}", index=mark, limit=len(self.atoms))
        return self.atoms[self._atom_bookmarks[mark]]

    def set_bond_bookmark(self, mark: int, bond_idx: int) -> None:
        self._bond_bookmarks[mark] = bond_idx

    def get_bond_with_bookmark(self, mark: int) -> Bond:
        """Resolve a file-local bond number.

        Raises:
            RangeError: If no bond carries that bookmark.
        """
        if mark not in self._bond_bookmarks:
            raise RangeError(f"No bond with number {mark}", index=mark, limit=len(self.bonds))
        return self.bonds[self._bond_bookmarks[mark]]

    @property
    def atom_bookmarks(self) -> dict[int, int]:
        """Copy of the atom bookmark map."""
        return dict(self._atom_bookmarks)

    @property
    def bond_bookmarks(self) -> dict[int, int]:
        """Copy of the bond bookmark map."""
        return dict(self._bond_bookmarks)
