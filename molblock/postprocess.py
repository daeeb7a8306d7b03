"""
Chemistry post-processing hooks.

The parser hands every successfully read record to a post-processor. The
hooks run in a fixed order (see ``MolFileParser``); a custom
implementation only needs to provide the methods of ``PostProcessor``.
"""

from __future__ import annotations

from typing import Protocol

from molblock import transform
from molblock.types import Conformer, Molecule


class PostProcessor(Protocol):
    """Operations the parser calls after a record has been read."""

    def calc_explicit_valence(self, mol: Molecule) -> None: ...

    def cleanup(self, mol: Molecule) -> None: ...

    def detect_atom_stereo(self, mol: Molecule, conformer: Conformer) -> None: ...

    def remove_hydrogens(self, mol: Molecule) -> Molecule: ...

    def sanitize(self, mol: Molecule) -> None: ...

    def clear_single_bond_dirs(self, mol: Molecule) -> None: ...

    def detect_bond_stereo(self, mol: Molecule, conformer: Conformer) -> None: ...

    def assign_stereochemistry(self, mol: Molecule) -> None: ...


class DefaultPostProcessor:
    """Post-processor backed by ``molblock.transform``.

    Hydrogen removal also sanitizes the resulting molecule.
    """

    def calc_explicit_valence(self, mol: Molecule) -> None:
        transform.calc_explicit_valence(mol)

    def cleanup(self, mol: Molecule) -> None:
        transform.cleanup(mol)

    def detect_atom_stereo(self, mol: Molecule, conformer: Conformer) -> None:
        transform.detect_atom_stereo(mol, conformer)

    def remove_hydrogens(self, mol: Molecule) -> Molecule:
        result = transform.remove_hydrogens(mol)
        transform.sanitize(result)
        return result

    def sanitize(self, mol: Molecule) -> None:
        transform.sanitize(mol)

    def clear_single_bond_dirs(self, mol: Molecule) -> None:
        transform.clear_single_bond_dirs(mol)

    def detect_bond_stereo(self, mol: Molecule, conformer: Conformer) -> None:
        transform.detect_bond_stereo(mol, conformer)

    def assign_stereochemistry(self, mol: Molecule) -> None:
        transform.assign_stereochemistry(mol)
