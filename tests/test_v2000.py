"""Tests for V2000 counts, atom and bond lines."""

import pytest

from conftest import atom_line, bond_line, build_mol, counts_line

from molblock.elements import BondDir, BondOrder, BondStereo
from molblock.exceptions import FormatError, MolFileWarning
from molblock.query import QueryKind, atom_matches, bond_matches
from molblock.types import Molecule
from molblock.v2000 import (
    apply_ring_topology,
    atom_from_symbol,
    bond_from_order_code,
    parse_atom_line,
    parse_bond_line,
    parse_counts_line,
)


class TestCountsLine:
    """Test counts line decoding."""

    def test_basic(self):
        counts = parse_counts_line(counts_line(5, 4, chiral=1))
        assert counts.num_atoms == 5
        assert counts.num_bonds == 4
        assert counts.chiral_flag == 1
        assert counts.version == "V2000"
        assert not counts.is_v3000

    def test_v3000(self):
        assert parse_counts_line(counts_line(0, 0, version="V3000")).is_v3000

    def test_no_version_defaults_to_v2000(self):
        assert parse_counts_line("  3  2").version == "V2000"

    def test_too_short(self):
        with pytest.raises(FormatError):
            parse_counts_line("  3  ")

    def test_bad_mandatory_count(self):
        with pytest.raises(FormatError):
            parse_counts_line("  a  2")

    def test_bad_version_position(self):
        with pytest.raises(FormatError, match="CTAB version string invalid"):
            parse_counts_line(counts_line(1, 0)[:37])
        with pytest.raises(FormatError, match="CTAB version string invalid"):
            parse_counts_line(counts_line(1, 0).replace(" V2000", "  V2000"))

    def test_unsupported_version(self):
        with pytest.raises(FormatError, match="Unsupported CTAB version"):
            parse_counts_line(counts_line(1, 0, version="V4000"))

    def test_malformed_optional_counts_are_ignored(self):
        text = "  2  1  x  0  1"
        counts = parse_counts_line(text)
        assert counts.num_atoms == 2
        assert counts.num_bonds == 1
        assert counts.chiral_flag == 0

    def test_strict_optional_counts(self):
        with pytest.raises(FormatError):
            parse_counts_line("  2  1  x  0  1", strict=True)

    @pytest.mark.parametrize("text", ["  2 -1", " -1  0"])
    def test_negative_counts(self, text):
        with pytest.raises(FormatError, match="Negative"):
            parse_counts_line(text)


class TestAtomSymbols:
    """Test special atom symbols."""

    @pytest.mark.parametrize("symbol,mass", [("D", 2.014), ("T", 3.016)])
    def test_hydrogen_isotopes(self, symbol, mass):
        atom, _ = parse_atom_line(atom_line(symbol, 1.0, 2.0, charge=3, parity=1))
        assert atom.atomic_number == 1
        assert atom.mass == mass

    @pytest.mark.parametrize("symbol,mass", [("D", 2.014), ("T", 3.016)])
    def test_hydrogen_isotopes_ignore_mass_difference(self, symbol, mass):
        atom, _ = parse_atom_line(atom_line(symbol, mass_diff=1))
        assert atom.atomic_number == 1
        assert atom.mass == mass
        assert not atom.has_mass_query

    def test_star_matches_anything(self):
        atom = atom_from_symbol("*")
        assert atom.atomic_number == 0
        assert atom.no_implicit
        assert atom.query.kind is QueryKind.NULL

    def test_q_excludes_carbon_and_hydrogen(self):
        atom = atom_from_symbol("Q")
        target = build_mol([6, 1, 8])
        assert not atom_matches(atom.query, target, 0)
        assert not atom_matches(atom.query, target, 1)
        assert atom_matches(atom.query, target, 2)
        assert atom.no_implicit

    def test_a_matches_heavy_atoms(self):
        atom = atom_from_symbol("A")
        target = build_mol([6, 1])
        assert atom_matches(atom.query, target, 0)
        assert not atom_matches(atom.query, target, 1)

    @pytest.mark.parametrize("symbol", ["L", "LP", "R", "R#", "R0"])
    def test_placeholders(self, symbol):
        atom = atom_from_symbol(symbol)
        assert atom.atomic_number == 0
        assert atom.mass is None
        assert atom.query is None

    def test_numbered_rgroup_mass(self):
        assert atom_from_symbol("R3").mass == 3.0
        assert atom_from_symbol("R3", mass_diff=1).mass is None

    def test_element(self):
        assert atom_from_symbol("Cl").atomic_number == 17

    def test_unknown_symbol(self):
        with pytest.raises(FormatError, match="Unrecognized atom symbol"):
            atom_from_symbol("Xx")


class TestAtomLine:
    """Test atom line decoding."""

    def test_coordinates(self):
        _, pos = parse_atom_line(atom_line("C", 1.5, -2.25, 0.5))
        assert pos == (1.5, -2.25, 0.5)

    @pytest.mark.parametrize("code,charge", [
        (1, 3), (2, 2), (3, 1), (4, 0), (5, -1), (6, -2), (7, -3),
    ])
    def test_charge_code(self, code, charge):
        atom, _ = parse_atom_line(atom_line("N", charge=code))
        assert atom.charge == charge

    def test_mass_difference(self):
        atom, _ = parse_atom_line(atom_line("C", mass_diff=1))
        assert atom.mass == pytest.approx(13.011)
        assert atom.has_mass_query

    def test_h_count_one_suppresses_implicit(self):
        atom, _ = parse_atom_line(atom_line("C", h_count=1))
        assert atom.no_implicit
        assert atom.props["hydrogen_count"] == 1

    def test_parity_and_map_number(self):
        atom, _ = parse_atom_line(atom_line("C", parity=2, map_number=7))
        assert atom.parity == 2
        assert atom.map_number == 7

    def test_zero_map_number_not_stored(self):
        atom, _ = parse_atom_line(atom_line("C"))
        assert atom.map_number is None

    def test_minimal_line(self):
        """Only coordinates and symbol are required."""
        atom, _ = parse_atom_line(atom_line("O")[:34])
        assert atom.atomic_number == 8
        assert atom.charge == 0

    def test_too_short(self):
        with pytest.raises(FormatError, match="Atom line too short"):
            parse_atom_line("    0.0000    0.0000")

    def test_bad_coordinate(self):
        with pytest.raises(FormatError):
            parse_atom_line("    0.0abc    0.0000    0.0000 C   0  0")


class TestBondLine:
    """Test bond line decoding."""

    @pytest.mark.parametrize("code,order", [
        (1, BondOrder.SINGLE),
        (2, BondOrder.DOUBLE),
        (3, BondOrder.TRIPLE),
        (4, BondOrder.AROMATIC),
    ])
    def test_plain_orders(self, code, order):
        bond = parse_bond_line(bond_line(1, 2, code))
        assert bond.order is order
        assert bond.query is None
        assert bond.begin_idx == 0
        assert bond.end_idx == 1

    def test_order_zero_warns(self):
        with pytest.warns(MolFileWarning, match="order 0"):
            bond = bond_from_order_code(0)
        assert bond.order is BondOrder.UNSPECIFIED
        assert bond.query is None

    @pytest.mark.parametrize("code,expected", [
        (5, {BondOrder.SINGLE, BondOrder.DOUBLE}),
        (6, {BondOrder.SINGLE, BondOrder.AROMATIC}),
        (7, {BondOrder.DOUBLE, BondOrder.AROMATIC}),
        (8, {BondOrder.SINGLE, BondOrder.DOUBLE, BondOrder.TRIPLE, BondOrder.AROMATIC}),
    ])
    def test_query_orders(self, code, expected):
        """Query bond codes match exactly their listed orders."""
        query = bond_from_order_code(code).query
        orders = [BondOrder.SINGLE, BondOrder.DOUBLE, BondOrder.TRIPLE, BondOrder.AROMATIC]
        target = build_mol([6] * 5, [(i, i + 1, order) for i, order in enumerate(orders)])
        matched = {orders[i] for i in range(4) if bond_matches(query, target, i)}
        assert matched == expected

    def test_unknown_order_warns(self):
        with pytest.warns(MolFileWarning, match="unrecognized query bond type"):
            bond = bond_from_order_code(9)
        assert bond.query.kind is QueryKind.NULL

    @pytest.mark.parametrize("code,direction", [
        (0, BondDir.NONE),
        (1, BondDir.BEGIN_WEDGE),
        (4, BondDir.UNKNOWN),
        (6, BondDir.BEGIN_DASH),
    ])
    def test_stereo_field(self, code, direction):
        assert parse_bond_line(bond_line(1, 2, 1, stereo=code)).direction is direction

    def test_either_double(self):
        bond = parse_bond_line(bond_line(1, 2, 2, stereo=3))
        assert bond.direction is BondDir.EITHER_DOUBLE
        assert bond.stereo is BondStereo.ANY

    def test_ring_topology(self):
        bond = parse_bond_line(bond_line(1, 2, 1, topology=1))
        assert bond.topology == 1
        assert bond.query.kind is QueryKind.AND
        ring = build_mol([6, 6, 6], [(0, 1, BondOrder.SINGLE), (1, 2, BondOrder.SINGLE),
                                     (2, 0, BondOrder.SINGLE)])
        chain = build_mol([6, 6], [(0, 1, BondOrder.SINGLE)])
        assert bond_matches(bond.query, ring, 0)
        assert not bond_matches(bond.query, chain, 0)

    def test_chain_topology(self):
        bond = parse_bond_line(bond_line(1, 2, 1, topology=2))
        chain = build_mol([6, 6], [(0, 1, BondOrder.SINGLE)])
        assert bond_matches(bond.query, chain, 0)

    def test_bad_topology(self):
        bond = bond_from_order_code(1)
        with pytest.raises(FormatError, match="topology"):
            apply_ring_topology(bond, 3)

    def test_react_status(self):
        assert parse_bond_line(bond_line(1, 2, 1, react=4)).react_status == 4

    def test_minimal_line(self):
        bond = parse_bond_line("  1  2  1")
        assert bond.order is BondOrder.SINGLE
        assert bond.direction is BondDir.NONE

    def test_too_short(self):
        with pytest.raises(FormatError, match="Bond line too short"):
            parse_bond_line("  1  2")
