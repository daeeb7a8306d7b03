"""Ring bond perception."""

from molblock.rings.detection import (
    find_ring_bonds,
    get_ring_atoms,
    ring_bond_count,
)

__all__ = [
    "find_ring_bonds",
    "get_ring_atoms",
    "ring_bond_count",
]
