"""Hydrogen removal, valence, sanitization and stereo perception."""

from molblock.transform.hydrogen import is_removable_hydrogen, remove_hydrogens
from molblock.transform.stereo import (
    assign_stereochemistry,
    clear_single_bond_dirs,
    detect_atom_stereo,
    detect_bond_stereo,
    tetrahedral_tag,
)
from molblock.transform.valence import (
    calc_explicit_valence,
    cleanup,
    explicit_valence,
    sanitize,
)

__all__ = [
    "is_removable_hydrogen",
    "remove_hydrogens",
    "assign_stereochemistry",
    "clear_single_bond_dirs",
    "detect_atom_stereo",
    "detect_bond_stereo",
    "tetrahedral_tag",
    "calc_explicit_valence",
    "cleanup",
    "explicit_valence",
    "sanitize",
]
