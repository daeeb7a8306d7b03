"""
Molfile parser.

Reads one Molfile record (V2000 or V3000 CTAB) into a ``Molecule``:

    header (name, info, comment)
    counts line          -> selects V2000 or V3000
    V2000: atom block, bond block, property block through ``M  END``
    V3000: ``M  V30`` CTAB through ``END CTAB``

and then runs the post-processing hooks. Any format error aborts the
record; no partially built molecule is returned.

Example:
    >>> mol = parse_molblock(text)
    >>> mol.num_atoms, mol.num_bonds
    (2, 1)
"""

from __future__ import annotations

import os
from typing import Any

from molblock.config import ParserOptions, resolve_options
from molblock.exceptions import FormatError
from molblock.lines import LineReader, open_text
from molblock.logging_utils import get_logger
from molblock.postprocess import DefaultPostProcessor, PostProcessor
from molblock.properties import read_properties
from molblock.query import complete_queries
from molblock.types import Conformer, Molecule
from molblock.v2000 import parse_counts_line, read_atom_block, read_bond_block
from molblock.v3000 import read_v3000_ctab

logger = get_logger(__name__)

# Transient dimensionality hints from the header, cleared once the
# conformer is attached
_HINT_2D = "_2d_conf"
_HINT_3D = "_3d_conf"


class MolFileParser:
    """Parser for single Molfile records.

    Args:
        options: Parse options (defaults come from the environment).
        post_processor: Chemistry hooks run on each parsed record.

    Example:
        >>> parser = MolFileParser(ParserOptions(remove_hs=False))
        >>> mol = parser.parse(LineReader(text))
    """

    def __init__(
        self,
        options: ParserOptions | None = None,
        post_processor: PostProcessor | None = None,
    ) -> None:
        self.options = options if options is not None else resolve_options()
        self.post_processor = post_processor if post_processor is not None else DefaultPostProcessor()

    def parse(self, reader: LineReader) -> Molecule | None:
        """Parse one record from the cursor.

        Returns:
            The molecule, or None if the input is already exhausted.

        Raises:
            FormatError: If the record is malformed.
            SanitizeError: If post-processing rejects the molecule.
        """
        name = reader.read()
        if name is None:
            return None
        start_line = reader.line_number
        try:
            mol = self._read_record(reader, name)
        except FormatError as exc:
            raise exc.at_line(reader.line_number)
        logger.debug(
            "Read record %r (lines %d-%d): %d atoms, %d bonds",
            name, start_line, reader.line_number, mol.num_atoms, mol.num_bonds,
        )
        return self._post_process(mol)

    def _read_record(self, reader: LineReader, name: str) -> Molecule:
        mol = Molecule(name=name)
        mol.set_prop("name", name)

        info = reader.require("header")
        mol.set_prop("info", info)
        if len(info) >= 22:
            dim = info[20:22]
            if dim in ("2d", "2D"):
                mol.set_prop(_HINT_2D, True)
            elif dim in ("3d", "3D"):
                mol.set_prop(_HINT_3D, True)
        mol.set_prop("comment", reader.require("header"))

        counts_text = reader.require("counts line")
        try:
            counts = parse_counts_line(counts_text, strict=self.options.strict_counts)
        except FormatError as exc:
            raise exc.at_line(reader.line_number)

        if not counts.is_v3000:
            if counts.num_atoms <= 0:
                raise FormatError("molecule has no atoms", line=reader.line_number)
            mol.set_prop("chiral_flag", counts.chiral_flag)
            conformer = Conformer()
            read_atom_block(reader, mol, conformer, counts.num_atoms)
            self._attach_conformer(mol, conformer)
            read_bond_block(reader, mol, counts.num_bonds)
            read_properties(reader, mol)
        else:
            if counts.num_atoms != 0 or counts.num_bonds != 0:
                raise FormatError(
                    "V3000 mol blocks should have 0s in the initial counts line",
                    counts_text,
                    line=reader.line_number,
                )
            self._attach_conformer(mol, read_v3000_ctab(reader, mol))
            peeked = reader.peek()
            if peeked is not None and peeked.startswith("M  END"):
                reader.read()

        return mol

    @staticmethod
    def _attach_conformer(mol: Molecule, conformer: Conformer) -> None:
        if mol.has_prop(_HINT_2D):
            conformer.is_3d = False
        elif mol.has_prop(_HINT_3D):
            conformer.is_3d = True
        mol.clear_prop(_HINT_2D)
        mol.clear_prop(_HINT_3D)
        mol.conformer = conformer

    def _post_process(self, mol: Molecule) -> Molecule:
        # Wedges are consumed before hydrogen removal; bond stereo needs rings.
        post = self.post_processor
        post.calc_explicit_valence(mol)

        if self.options.sanitize:
            conformer = mol.conformer
            if mol.chirality_possible and conformer is not None:
                post.cleanup(mol)
                post.detect_atom_stereo(mol, conformer)

            if self.options.remove_hs:
                mol = post.remove_hydrogens(mol)
            else:
                post.sanitize(mol)

            post.clear_single_bond_dirs(mol)
            if mol.conformer is not None:
                post.detect_bond_stereo(mol, mol.conformer)
            post.assign_stereochemistry(mol)

        if mol.needs_query_rescan:
            mol.needs_query_rescan = False
            complete_queries(mol)

        return mol


def parse_stream(
    reader: LineReader,
    options: ParserOptions | None = None,
    post_processor: PostProcessor | None = None,
    **overrides: Any,
) -> Molecule | None:
    """Parse one record from an existing line cursor.

    Keyword overrides (``sanitize=False``, ``remove_hs=False``, ...) are
    applied on top of ``options``.
    """
    return MolFileParser(resolve_options(options, **overrides), post_processor).parse(reader)


def parse_molblock(
    text: str,
    options: ParserOptions | None = None,
    post_processor: PostProcessor | None = None,
    **overrides: Any,
) -> Molecule | None:
    """Parse a Molfile record held in a string.

    Returns:
        The molecule, or None for empty input.

    Raises:
        FormatError: If the record is malformed.
        SanitizeError: If post-processing rejects the molecule.

    Example:
        >>> mol = parse_molblock(text, remove_hs=False)
    """
    return parse_stream(LineReader(text), options, post_processor, **overrides)


def parse_molfile(
    path: str | os.PathLike[str],
    options: ParserOptions | None = None,
    post_processor: PostProcessor | None = None,
    **overrides: Any,
) -> Molecule | None:
    """Parse the first record of a Molfile on disk (``.gz`` allowed).

    Raises:
        OSError: If the file cannot be opened.
        FormatError: If the record is malformed.
    """
    with open_text(path) as handle:
        return parse_stream(LineReader(handle), options, post_processor, **overrides)
