"""
Ring detection algorithms.

A bond is a ring bond exactly when it is not a bridge of the molecular
graph, so ring membership is found with Tarjan's bridge-finding algorithm
in O(V+E). Used by query evaluation, deferred query completion,
sanitization and double bond stereo perception.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from molblock.types import Molecule


def find_ring_bonds(mol: "Molecule") -> set[int]:
    """Find the indices of all bonds that lie on at least one cycle.

    The depth-first search is iterative so that long chains do not hit the
    interpreter recursion limit.

    Args:
        mol: Molecule to analyze.

    Returns:
        Set of ring bond indices.

    Example:
        >>> ring_bonds = find_ring_bonds(cyclohexane)
        >>> len(ring_bonds)
        6
    """
    if mol.num_atoms == 0 or mol.num_bonds < 3:
        return set()

    # Adjacency list with bond indices
    adj: list[list[tuple[int, int]]] = [[] for _ in range(mol.num_atoms)]
    for bond in mol.bonds:
        adj[bond.begin_idx].append((bond.end_idx, bond.idx))
        adj[bond.end_idx].append((bond.begin_idx, bond.idx))

    discovery: list[int] = [-1] * mol.num_atoms
    low: list[int] = [0] * mol.num_atoms
    bridges: set[int] = set()
    counter = 0

    for start in range(mol.num_atoms):
        if discovery[start] != -1:
            continue
        discovery[start] = low[start] = counter
        counter += 1
        # Stack entries: (node, bond used to reach it, next neighbor position)
        stack: list[tuple[int, int, int]] = [(start, -1, 0)]

        while stack:
            node, via_bond, pos = stack[-1]
            if pos < len(adj[node]):
                stack[-1] = (node, via_bond, pos + 1)
                neighbor, bond_idx = adj[node][pos]
                if bond_idx == via_bond:
                    continue
                if discovery[neighbor] == -1:
                    discovery[neighbor] = low[neighbor] = counter
                    counter += 1
                    stack.append((neighbor, bond_idx, 0))
                else:
                    low[node] = min(low[node], discovery[neighbor])
                continue

            stack.pop()
            if stack:
                parent = stack[-1][0]
                low[parent] = min(low[parent], low[node])
                # If low[node] > discovery[parent], the edge is a bridge
                if low[node] > discovery[parent]:
                    bridges.add(via_bond)

    return {bond.idx for bond in mol.bonds if bond.idx not in bridges}


def get_ring_atoms(mol: "Molecule", ring_bonds: set[int] | None = None) -> set[int]:
    """Get indices of atoms that are part of any ring.

    Args:
        mol: Molecule to analyze.
        ring_bonds: Precomputed ring bonds (computed if None).
    """
    if ring_bonds is None:
        ring_bonds = find_ring_bonds(mol)
    ring_atoms: set[int] = set()
    for bond_idx in ring_bonds:
        bond = mol.bonds[bond_idx]
        ring_atoms.add(bond.begin_idx)
        ring_atoms.add(bond.end_idx)
    return ring_atoms


def ring_bond_count(mol: "Molecule", atom_idx: int, ring_bonds: set[int] | None = None) -> int:
    """Number of ring bonds at an atom."""
    if ring_bonds is None:
        ring_bonds = find_ring_bonds(mol)
    return sum(1 for b in mol.atoms[atom_idx].bond_indices if b in ring_bonds)
