"""
Molblock - Pure Python MDL Molfile/SDF reader.

A zero-dependency library for reading V2000 and V3000 connection tables
into a molecular graph, including substructure query atoms and bonds.

    >>> from molblock import parse_molblock
    >>> mol = parse_molblock(text)
    >>> mol.num_atoms, mol.num_bonds
    (2, 1)

Submodules:
    molblock.rings     - Ring bond perception
    molblock.transform - Hydrogen removal, sanitization, stereo perception
"""

__version__ = "0.1.0"

# Core types
from molblock.types import Atom, Bond, Conformer, Molecule

# Parsing
from molblock.parser import MolFileParser, parse_molblock, parse_molfile, parse_stream
from molblock.sdf import SDFReader, iter_sdf
from molblock.lines import LineReader

# Configuration
from molblock.config import ParserOptions, load_options

# Post-processing
from molblock.postprocess import DefaultPostProcessor, PostProcessor

# Queries
from molblock.query import QueryKind, QueryNode, atom_matches, bond_matches

# Exceptions
from molblock.exceptions import (
    ChemError,
    FormatError,
    MolFileWarning,
    RangeError,
    SanitizeError,
    ValenceError,
)

# Element data
from molblock.elements import BondDir, BondOrder, BondStereo, Element

# Submodules
from molblock import rings, transform

__all__ = [
    # Types
    "Atom", "Bond", "Conformer", "Molecule",
    # Parsing
    "MolFileParser", "parse_molblock", "parse_molfile", "parse_stream",
    "SDFReader", "iter_sdf", "LineReader",
    # Configuration
    "ParserOptions", "load_options",
    # Post-processing
    "DefaultPostProcessor", "PostProcessor",
    # Queries
    "QueryKind", "QueryNode", "atom_matches", "bond_matches",
    # Exceptions
    "ChemError", "FormatError", "MolFileWarning", "RangeError",
    "SanitizeError", "ValenceError",
    # Elements
    "BondDir", "BondOrder", "BondStereo", "Element",
    # Submodules
    "rings", "transform",
]
