"""
Hydrogen removal.

Explicit hydrogen atoms drawn in a Molfile are folded into their heavy
neighbor's hydrogen count. Hydrogens that carry information of their own
(isotope, charge, radical, map number, R-group label, query) or that are
not simply single-bonded to one heavy atom are kept.
"""

from __future__ import annotations

from copy import deepcopy

from molblock.elements import BondOrder
from molblock.types import Atom, Conformer, Molecule


def is_removable_hydrogen(mol: Molecule, atom: Atom) -> bool:
    """Check whether an explicit hydrogen atom can become implicit."""
    if atom.atomic_number != 1 or atom.has_query:
        return False
    if atom.mass is not None or atom.charge != 0 or atom.radical_electrons != 0:
        return False
    if atom.map_number or atom.rgroup_label is not None:
        return False
    if len(atom.bond_indices) != 1:
        return False

    bond = mol.bonds[atom.bond_indices[0]]
    if bond.has_query or bond.order is not BondOrder.SINGLE:
        return False
    # Don't remove H from other H atoms
    return mol.atoms[bond.other_atom(atom.idx)].atomic_number != 1


def remove_hydrogens(mol: Molecule) -> Molecule:
    """Remove explicit hydrogen atoms from a molecule.

    Removed hydrogens are added to the ``explicit_hydrogens`` count of
    their neighbor. Coordinates, bookmarks and record properties are
    carried over to the new molecule with the new indices.

    Args:
        mol: Input molecule.

    Returns:
        New molecule with removable hydrogens gone.

    Example:
        >>> mol = parse_molblock(methane_with_hydrogens, sanitize=False)
        >>> remove_hydrogens(mol).num_atoms
        1
    """
    h_to_remove: set[int] = set()
    h_counts: dict[int, int] = {}  # parent_idx -> count of removed H

    for atom in mol.atoms:
        if is_removable_hydrogen(mol, atom):
            parent_idx = mol.bonds[atom.bond_indices[0]].other_atom(atom.idx)
            h_to_remove.add(atom.idx)
            h_counts[parent_idx] = h_counts.get(parent_idx, 0) + 1

    if not h_to_remove:
        return deepcopy(mol)

    new_mol = Molecule(
        name=mol.name,
        props=dict(mol.props),
        chirality_possible=mol.chirality_possible,
        needs_query_rescan=mol.needs_query_rescan,
    )

    old_to_new: dict[int, int] = {}
    for atom in mol.atoms:
        if atom.idx in h_to_remove:
            continue
        new_atom = deepcopy(atom)
        new_atom.explicit_hydrogens += h_counts.get(atom.idx, 0)
        old_to_new[atom.idx] = new_mol.add_atom(new_atom)

    old_bond_to_new: dict[int, int] = {}
    for bond in mol.bonds:
        if bond.begin_idx in h_to_remove or bond.end_idx in h_to_remove:
            continue
        new_bond = deepcopy(bond)
        new_bond.begin_idx = old_to_new[bond.begin_idx]
        new_bond.end_idx = old_to_new[bond.end_idx]
        old_bond_to_new[bond.idx] = new_mol.add_bond(new_bond)

    if mol.conformer is not None:
        new_mol.conformer = Conformer(
            positions=[
                pos for idx, pos in enumerate(mol.conformer.positions) if idx not in h_to_remove
            ],
            is_3d=mol.conformer.is_3d,
        )

    for mark, idx in mol.atom_bookmarks.items():
        if idx in old_to_new:
            new_mol.set_atom_bookmark(mark, old_to_new[idx])
    for mark, idx in mol.bond_bookmarks.items():
        if idx in old_bond_to_new:
            new_mol.set_bond_bookmark(mark, old_bond_to_new[idx])

    return new_mol
