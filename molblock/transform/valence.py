"""
Valence calculation and sanitization.

Sanitization here is deliberately small: ring perception, a valence check
against the allowed valences of each element, and implicit hydrogen
assignment. Charged atoms are checked against their isoelectronic
neutral element (N+ like C, O- like F).
"""

from __future__ import annotations

from molblock.elements import BondOrder, get_allowed_valences
from molblock.exceptions import ValenceError
from molblock.rings import find_ring_bonds
from molblock.types import Atom, Molecule

# Guards against 2.9999... sums of aromatic contributions
_VALENCE_EPSILON = 1e-6


def explicit_valence(mol: Molecule, atom: Atom) -> int:
    """Sum of bond order contributions plus explicit hydrogen count.

    Aromatic bonds count 1.5; the sum is truncated, so an aromatic carbon
    shared by three rings has valence 4.
    """
    total = sum(bond.order.valence_contribution for bond in atom.get_bonds(mol))
    return int(total + _VALENCE_EPSILON) + atom.explicit_hydrogens


def calc_explicit_valence(mol: Molecule) -> None:
    """Store the explicit valence on every atom."""
    for atom in mol.atoms:
        atom.explicit_valence = explicit_valence(mol, atom)


def _is_checkable(mol: Molecule, atom: Atom) -> bool:
    if atom.has_query or atom.atomic_number == 0:
        return False
    return not any(bond.has_query for bond in atom.get_bonds(mol))


def sanitize(mol: Molecule) -> None:
    """Clean up, perceive rings, check valences and assign implicit hydrogens.

    Query atoms, atoms touching query bonds and placeholder atoms are
    neither checked nor given implicit hydrogens.

    Raises:
        ValenceError: If an atom's explicit valence exceeds what its
            element allows (one more for aromatic atoms).
    """
    cleanup(mol)
    mol.ring_bonds = find_ring_bonds(mol)
    calc_explicit_valence(mol)

    for atom in mol.atoms:
        if not _is_checkable(mol, atom):
            continue
        allowed = get_allowed_valences(atom.atomic_number, atom.charge)
        if allowed is None:
            atom.implicit_hydrogens = 0
            continue

        valence = (atom.explicit_valence or 0) + atom.radical_electrons
        limit = max(allowed) + (1 if atom.is_aromatic else 0)
        if valence > limit:
            raise ValenceError(
                f"Explicit valence for atom # {atom.idx} {atom.symbol}, {valence}, "
                "is greater than permitted",
                atom_symbol=atom.symbol,
                expected_valence=max(allowed),
                actual_valence=valence,
            )

        if atom.no_implicit:
            atom.implicit_hydrogens = 0
            continue
        target = next((v for v in sorted(allowed) if v >= valence), valence)
        atom.implicit_hydrogens = target - valence


def cleanup(mol: Molecule) -> None:
    """Normalize common non-standard drawings before stereo perception.

    A neutral nitrogen double bonded to two neutral oxygens (``N(=O)=O``)
    becomes the charge-separated nitro group ``[N+](=O)[O-]``.
    """
    for atom in mol.atoms:
        if atom.atomic_number != 7 or atom.charge != 0 or atom.has_query:
            continue
        if len(atom.bond_indices) != 3:
            continue
        oxo_bonds = [
            bond
            for bond in atom.get_bonds(mol)
            if not bond.has_query
            and bond.order is BondOrder.DOUBLE
            and mol.atoms[bond.other_atom(atom.idx)].atomic_number == 8
            and mol.atoms[bond.other_atom(atom.idx)].charge == 0
        ]
        if len(oxo_bonds) != 2:
            continue
        atom.charge = 1
        oxo_bonds[1].order = BondOrder.SINGLE
        mol.atoms[oxo_bonds[1].other_atom(atom.idx)].charge = -1
