"""Test configuration and fixtures for molblock tests."""

from __future__ import annotations

import pytest

from molblock.elements import BondOrder
from molblock.types import Atom, Bond, Molecule


def atom_line(
    symbol: str,
    x: float = 0.0,
    y: float = 0.0,
    z: float = 0.0,
    mass_diff: int = 0,
    charge: int = 0,
    parity: int = 0,
    h_count: int = 0,
    map_number: int = 0,
) -> str:
    """Format a V2000 atom line.

    Args:
        symbol: Atom symbol (up to 3 characters).
        charge: Charge code (1-7), not the formal charge.
    """
    return (
        f"{x:10.4f}{y:10.4f}{z:10.4f} {symbol:<3}{mass_diff:2d}{charge:3d}{parity:3d}{h_count:3d}"
        f"  0  0  0  0  0{map_number:3d}  0  0"
    )


def bond_line(
    first: int,
    second: int,
    order: int,
    stereo: int = 0,
    topology: int = 0,
    react: int = 0,
) -> str:
    """Format a V2000 bond line (1-based atom numbers)."""
    return f"{first:3d}{second:3d}{order:3d}{stereo:3d}  0{topology:3d}{react:3d}"


def counts_line(num_atoms: int, num_bonds: int, chiral: int = 0, version: str = "V2000") -> str:
    """Format a counts line with the version tag at column 34."""
    return f"{num_atoms:3d}{num_bonds:3d}  0  0{chiral:3d}  0  0  0  0  0999 {version}"


def prop_line(tag: str, entries: list[tuple[int, int]]) -> str:
    """Format a counted property line such as ``M  CHG``."""
    body = "".join(f"{atom:4d}{value:4d}" for atom, value in entries)
    return f"M  {tag}{len(entries):3d}{body}"


def molblock(
    atoms: list[str],
    bonds: list[str] = (),
    props: list[str] = (),
    name: str = "test",
    dim: str = "2D",
    counts: str | None = None,
) -> str:
    """Assemble a V2000 record from formatted atom, bond and property lines."""
    lines = [
        name,
        f"{'  molblock':<20}{dim}",
        "",
        counts if counts is not None else counts_line(len(atoms), len(bonds)),
        *atoms,
        *bonds,
        *props,
        "M  END",
    ]
    return "\n".join(lines) + "\n"


def v3000_block(body: list[str], name: str = "v3000", dim: str = "2D") -> str:
    """Assemble a V3000 record; ``body`` holds the logical lines without prefix."""
    lines = [
        name,
        f"{'  molblock':<20}{dim}",
        "",
        counts_line(0, 0, version="V3000"),
        *(f"M  V30 {line}" for line in body),
        "M  END",
    ]
    return "\n".join(lines) + "\n"


def build_mol(atomic_numbers: list[int], bonds: list[tuple[int, int, BondOrder]] = ()) -> Molecule:
    """Build a molecule directly from atomic numbers and (i, j, order) bonds."""
    mol = Molecule()
    for num in atomic_numbers:
        mol.add_atom(Atom(atomic_number=num))
    for begin, end, order in bonds:
        mol.add_bond(Bond(begin_idx=begin, end_idx=end, order=order,
                          is_aromatic=order is BondOrder.AROMATIC))
    return mol


@pytest.fixture
def ethene_block() -> str:
    """C=C drawn in 2D."""
    return molblock(
        [atom_line("C", 0.0, 0.0), atom_line("C", 1.3, 0.0)],
        [bond_line(1, 2, 2)],
    )


@pytest.fixture
def methane_h_block() -> str:
    """Methane with all four hydrogens drawn."""
    return molblock(
        [
            atom_line("C", 0.0, 0.0),
            atom_line("H", 1.0, 0.0),
            atom_line("H", -1.0, 0.0),
            atom_line("H", 0.0, 1.0),
            atom_line("H", 0.0, -1.0),
        ],
        [bond_line(1, 2, 1), bond_line(1, 3, 1), bond_line(1, 4, 1), bond_line(1, 5, 1)],
    )


@pytest.fixture
def ethanol_block() -> str:
    """CCO, heavy atoms only."""
    return molblock(
        [atom_line("C", 0.0, 0.0), atom_line("C", 1.3, 0.75), atom_line("O", 2.6, 0.0)],
        [bond_line(1, 2, 1), bond_line(2, 3, 1)],
    )


@pytest.fixture
def cyclopropane() -> Molecule:
    return build_mol([6, 6, 6], [(0, 1, BondOrder.SINGLE), (1, 2, BondOrder.SINGLE),
                                 (2, 0, BondOrder.SINGLE)])


@pytest.fixture
def v3000_ethanoate() -> str:
    """Acetate anion as a V3000 record."""
    return v3000_block([
        "BEGIN CTAB",
        "COUNTS 4 3 0 0 0",
        "BEGIN ATOM",
        "1 C 0.0 0.0 0.0 0",
        "2 C 1.3 0.75 0.0 0",
        "3 O 2.6 0.0 0.0 0",
        "4 O 1.3 2.25 0.0 0 CHG=-1",
        "END ATOM",
        "BEGIN BOND",
        "1 1 1 2",
        "2 2 2 3",
        "3 1 2 4",
        "END BOND",
        "END CTAB",
    ])
