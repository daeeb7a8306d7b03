"""
Stereochemistry perception from coordinates.

Tetrahedral centers:
    An atom that begins a wedge or hash bond gets a tag from the signed
    volume of its first three neighbors (in bond order). In 2D the wedge
    end is lifted to z=+1 and the hash end pushed to z=-1. A positive
    volume means the second and third neighbors run counterclockwise
    when viewed from the first one (``"CCW"``), a negative one clockwise
    (``"CW"``).

Double bonds:
    A non-ring double bond with a substituent on both ends is E or Z
    depending on whether the substituents lie on opposite or the same
    side of the bond axis. The reference substituent on each end is the
    one with the higher atomic number.
"""

from __future__ import annotations

from molblock.elements import BondDir, BondOrder, BondStereo
from molblock.rings import find_ring_bonds
from molblock.types import Atom, Conformer, Molecule

Vector = tuple[float, float, float]

_EPSILON = 1e-4

_STEREO_DIRS = (BondDir.BEGIN_WEDGE, BondDir.BEGIN_DASH)


def _sub(a: Vector, b: Vector) -> Vector:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _dot(a: Vector, b: Vector) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _cross(a: Vector, b: Vector) -> Vector:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def _scale(a: Vector, k: float) -> Vector:
    return (a[0] * k, a[1] * k, a[2] * k)


# ============================================================================
# Tetrahedral centers
# ============================================================================

def _neighbor_vectors(mol: Molecule, atom: Atom, conformer: Conformer) -> list[Vector]:
    center = conformer.get_atom_pos(atom.idx)
    vectors: list[Vector] = []
    for bond in atom.get_bonds(mol):
        other = bond.other_atom(atom.idx)
        x, y, z = _sub(conformer.get_atom_pos(other), center)
        if not conformer.is_3d:
            z = 0.0
            if bond.begin_idx == atom.idx and bond.direction is BondDir.BEGIN_WEDGE:
                z = 1.0
            elif bond.begin_idx == atom.idx and bond.direction is BondDir.BEGIN_DASH:
                z = -1.0
        vectors.append((x, y, z))

    # A wedge on the fourth neighbor puts the other three on the opposite side
    if not conformer.is_3d and len(vectors) == 4:
        if all(abs(v[2]) < _EPSILON for v in vectors[:3]) and abs(vectors[3][2]) > _EPSILON:
            offset = -vectors[3][2]
            vectors[:3] = [(v[0], v[1], offset) for v in vectors[:3]]
    return vectors


def tetrahedral_tag(mol: Molecule, atom: Atom, conformer: Conformer) -> str | None:
    """Compute the ``"CW"``/``"CCW"`` tag of an atom, or None if flat."""
    vectors = _neighbor_vectors(mol, atom, conformer)
    if len(vectors) < 3:
        return None
    volume = _dot(vectors[0], _cross(vectors[1], vectors[2]))
    if abs(volume) < _EPSILON:
        return None
    return "CCW" if volume > 0 else "CW"


def detect_atom_stereo(mol: Molecule, conformer: Conformer) -> None:
    """Tag atoms that begin a wedge or hash single bond.

    Only atoms with three or four neighbors are considered.
    """
    for bond in mol.bonds:
        if bond.order is not BondOrder.SINGLE or bond.direction not in _STEREO_DIRS:
            continue
        atom = mol.atoms[bond.begin_idx]
        if atom.chirality is not None or len(atom.bond_indices) not in (3, 4):
            continue
        atom.chirality = tetrahedral_tag(mol, atom, conformer)


def clear_single_bond_dirs(mol: Molecule) -> None:
    """Drop wedge and hash markers from single bonds."""
    for bond in mol.bonds:
        if bond.order is BondOrder.SINGLE and bond.direction in _STEREO_DIRS:
            bond.direction = BondDir.NONE


def assign_stereochemistry(mol: Molecule) -> None:
    """Remove atom tags from atoms that cannot be stereocenters.

    A center needs at least three heavy neighbors and at most one hydrogen.
    """
    for atom in mol.atoms:
        if atom.chirality is None:
            continue
        neighbors = [mol.atoms[n] for n in atom.neighbors(mol)]
        heavy = sum(1 for n in neighbors if n.atomic_number != 1)
        hydrogens = atom.total_hydrogens() + (len(neighbors) - heavy)
        if heavy < 3 or hydrogens > 1:
            atom.chirality = None


# ============================================================================
# Double bonds
# ============================================================================

def _reference_substituent(mol: Molecule, atom_idx: int, exclude: int) -> int | None:
    """Highest atomic number neighbor other than ``exclude``; None if ambiguous."""
    candidates = [n for n in mol.atoms[atom_idx].neighbors(mol) if n != exclude]
    if not candidates:
        return None
    candidates.sort(key=lambda n: mol.atoms[n].atomic_number, reverse=True)
    if len(candidates) > 1 and (
        mol.atoms[candidates[0]].atomic_number == mol.atoms[candidates[1]].atomic_number
    ):
        return None
    return candidates[0]


def _perpendicular(v: Vector, axis: Vector) -> Vector:
    return _sub(v, _scale(axis, _dot(v, axis) / _dot(axis, axis)))


def detect_bond_stereo(mol: Molecule, conformer: Conformer) -> None:
    """Assign E/Z to non-ring double bonds from coordinates.

    Either-double bonds keep ``BondStereo.ANY``.
    """
    ring_bonds = mol.ring_bonds if mol.ring_bonds is not None else find_ring_bonds(mol)
    for bond in mol.bonds:
        if bond.order is not BondOrder.DOUBLE or bond.has_query or bond.idx in ring_bonds:
            continue
        if bond.direction is BondDir.EITHER_DOUBLE or bond.stereo is BondStereo.ANY:
            bond.stereo = BondStereo.ANY
            continue

        begin_sub = _reference_substituent(mol, bond.begin_idx, bond.end_idx)
        end_sub = _reference_substituent(mol, bond.end_idx, bond.begin_idx)
        if begin_sub is None or end_sub is None:
            continue

        begin_pos = conformer.get_atom_pos(bond.begin_idx)
        end_pos = conformer.get_atom_pos(bond.end_idx)
        axis = _sub(end_pos, begin_pos)
        if _dot(axis, axis) < _EPSILON:
            continue
        begin_side = _perpendicular(_sub(conformer.get_atom_pos(begin_sub), begin_pos), axis)
        end_side = _perpendicular(_sub(conformer.get_atom_pos(end_sub), end_pos), axis)
        side = _dot(begin_side, end_side)
        if abs(side) < _EPSILON:
            continue
        bond.stereo = BondStereo.Z if side > 0 else BondStereo.E
