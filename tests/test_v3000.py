"""Tests for V3000 connection tables."""

import pytest

from conftest import v3000_block

from molblock import parse_molblock
from molblock.elements import BondDir, BondOrder, BondStereo
from molblock.exceptions import FormatError, MolFileWarning, RangeError
from molblock.query import QueryKind
from molblock.v3000 import atom_from_v3000_symbol, split_assignment, tokenize


def ctab(atoms, bonds=(), extra=(), counts=None):
    """V3000 record from atom and bond logical lines."""
    body = ["BEGIN CTAB", counts or f"COUNTS {len(atoms)} {len(bonds)} 0 0 0", "BEGIN ATOM"]
    body += list(atoms)
    body.append("END ATOM")
    if bonds:
        body += ["BEGIN BOND", *bonds, "END BOND"]
    body += list(extra)
    body.append("END CTAB")
    return v3000_block(body)


class TestTokenizer:
    """Test V3000 tokenization."""

    def test_whitespace(self):
        assert tokenize("1  C\t0.0   1.5") == ["1", "C", "0.0", "1.5"]

    def test_quoted(self):
        assert tokenize('1 "two words" x') == ["1", "two words", "x"]

    def test_quoted_value_in_assignment(self):
        assert tokenize("FIELD='a b' END") == ["FIELD=a b", "END"]

    def test_unterminated_quote(self):
        with pytest.raises(FormatError):
            tokenize('1 "open')

    def test_empty(self):
        assert tokenize("   ") == []

    def test_split_assignment(self):
        assert split_assignment("chg=-1") == ("CHG", "-1")
        with pytest.raises(FormatError, match="Invalid property token"):
            split_assignment("CHG")


class TestV3000Atoms:
    """Test atom block decoding."""

    def test_basic(self, v3000_ethanoate):
        mol = parse_molblock(v3000_ethanoate)
        assert mol.num_atoms == 4
        assert mol.num_bonds == 3
        assert [a.charge for a in mol.atoms] == [0, 0, 0, -1]
        assert mol.bonds[1].order is BondOrder.DOUBLE
        assert mol.conformer.get_atom_pos(1) == (1.3, 0.75, 0.0)

    def test_properties(self):
        mol = parse_molblock(
            ctab(["1 C 0 0 0 0 CHG=1 RAD=2 MASS=13 CFG=1 AAMAP=4"]),
            sanitize=False,
        )
        atom = mol.atoms[0]
        assert atom.charge == 1
        assert atom.radical_electrons == 1
        assert atom.mass == 13.0
        assert atom.parity == 1
        assert atom.map_number == 4
        assert not atom.has_query

    def test_map_number_column(self):
        mol = parse_molblock(ctab(["1 C 0 0 0 5"]), sanitize=False)
        assert mol.atoms[0].map_number == 5

    def test_bad_mass(self):
        with pytest.raises(FormatError, match="MASS"):
            parse_molblock(ctab(["1 C 0 0 0 0 MASS=0"]))

    def test_bad_radical(self):
        with pytest.raises(FormatError, match="RAD"):
            parse_molblock(ctab(["1 C 0 0 0 0 RAD=5"]))

    def test_hcount_minus_one_is_zero(self):
        mol = parse_molblock(ctab(["1 C 0 0 0 0 HCOUNT=-1"]), sanitize=False)
        node = next(n for n in mol.atoms[0].query.walk() if n.kind is QueryKind.H_COUNT)
        assert node.value == 0

    def test_unsat(self):
        mol = parse_molblock(ctab(["1 C 0 0 0 0 UNSAT=1"]), sanitize=False)
        assert any(n.kind is QueryKind.UNSATURATED for n in mol.atoms[0].query.walk())

    def test_rbcnt_deferred(self):
        mol = parse_molblock(
            ctab(
                ["1 C 0 0 0 0 RBCNT=-2", "2 C 1 0 0 0", "3 C 0.5 0.8 0 0"],
                ["1 1 1 2", "2 1 2 3", "3 1 3 1"],
            ),
            sanitize=False,
        )
        node = next(n for n in mol.atoms[0].query.walk() if n.kind is QueryKind.RING_BOND_COUNT)
        assert node.value == 2
        assert not node.deferred

    def test_charge_on_query_atom(self):
        mol = parse_molblock(ctab(["1 [N,O] 0 0 0 0 CHG=1 MASS=15"]), sanitize=False)
        atom = mol.atoms[0]
        kinds = [n.kind for n in atom.query.walk()]
        assert QueryKind.FORMAL_CHARGE in kinds
        assert QueryKind.MASS in kinds
        assert atom.charge == 0

    def test_atom_list(self):
        mol = parse_molblock(ctab(["1 [C,N,O] 0 0 0 0"]), sanitize=False)
        atom = mol.atoms[0]
        assert atom.atomic_number == 6
        assert atom.query.kind is QueryKind.OR
        assert [c.value for c in atom.query.children] == [6, 7, 8]
        assert not atom.query.negated

    def test_negated_atom_list(self):
        mol = parse_molblock(ctab(["1 NOT [C,N] 0 0 0 0"]), sanitize=False)
        assert mol.atoms[0].query.negated

    def test_not_on_plain_symbol(self):
        with pytest.raises(FormatError, match="NOT tokens only supported for atom lists"):
            atom_from_v3000_symbol("C", negate=True)

    def test_special_symbols(self):
        assert atom_from_v3000_symbol("*", negate=False).query.kind is QueryKind.NULL
        assert atom_from_v3000_symbol("D", negate=False).mass == 2.014

    def test_bad_atom_list(self):
        with pytest.raises(FormatError):
            atom_from_v3000_symbol("[C,Xx]", negate=False)
        with pytest.raises(FormatError):
            atom_from_v3000_symbol("[]", negate=False)

    def test_short_atom_line(self):
        with pytest.raises(FormatError, match="Bad atom line"):
            parse_molblock(ctab(["1 C 0 0"]))


class TestV3000Bonds:
    """Test bond block decoding."""

    def test_bookmarks(self):
        """File-local atom numbers need not be contiguous."""
        mol = parse_molblock(
            ctab(["10 C 0 0 0 0", "20 O 1.3 0 0 0"], ["7 1 10 20"]),
            sanitize=False,
        )
        bond = mol.bonds[0]
        assert (bond.begin_idx, bond.end_idx) == (0, 1)
        assert mol.get_atom_with_bookmark(20).atomic_number == 8
        assert mol.get_bond_with_bookmark(7) is bond

    def test_unknown_atom_number(self):
        with pytest.raises(RangeError) as exc_info:
            parse_molblock(ctab(["1 C 0 0 0 0", "2 C 1 0 0 0"], ["1 1 1 3"]))
        assert exc_info.value.text.strip() == "1 1 1 3"
        assert exc_info.value.line is not None

    def test_negative_bond_count(self):
        with pytest.raises(FormatError, match="Bad counts line"):
            parse_molblock(ctab(["1 C 0 0 0 0"], counts="COUNTS 1 -1 0 0 0"))

    @pytest.mark.parametrize("order,cfg,direction", [
        (1, 1, BondDir.BEGIN_WEDGE),
        (1, 2, BondDir.UNKNOWN),
        (1, 3, BondDir.BEGIN_DASH),
        (2, 2, BondDir.EITHER_DOUBLE),
        (1, 0, BondDir.NONE),
    ])
    def test_cfg(self, order, cfg, direction):
        mol = parse_molblock(
            ctab(["1 C 0 0 0 0", "2 C 1.3 0 0 0"], [f"1 {order} 1 2 CFG={cfg}"]),
            sanitize=False,
        )
        assert mol.bonds[0].direction is direction

    def test_either_double_is_any(self):
        mol = parse_molblock(
            ctab(["1 C 0 0 0 0", "2 C 1.3 0 0 0"], ["1 2 1 2 CFG=2"]),
        )
        assert mol.bonds[0].stereo is BondStereo.ANY

    def test_bad_cfg(self):
        with pytest.raises(FormatError, match="CFG"):
            parse_molblock(ctab(["1 C 0 0 0 0", "2 C 1.3 0 0 0"], ["1 1 1 2 CFG=4"]))

    def test_topology_and_reacting_center(self):
        mol = parse_molblock(
            ctab(["1 C 0 0 0 0", "2 C 1.3 0 0 0"], ["1 1 1 2 TOPO=2 RXCTR=1 STBOX=1"]),
            sanitize=False,
        )
        bond = mol.bonds[0]
        assert bond.topology == 2
        assert bond.react_status == 1
        assert bond.query.kind is QueryKind.AND

    def test_query_bond(self):
        mol = parse_molblock(
            ctab(["1 C 0 0 0 0", "2 C 1.3 0 0 0"], ["1 5 1 2"]),
            sanitize=False,
        )
        assert mol.bonds[0].query.kind is QueryKind.OR

    def test_bond_block_optional_without_bonds(self):
        mol = parse_molblock(ctab(["1 C 0 0 0 0"]))
        assert mol.num_atoms == 1
        assert mol.num_bonds == 0

    def test_empty_bond_block(self):
        mol = parse_molblock(ctab(["1 C 0 0 0 0"], extra=["BEGIN BOND", "END BOND"]))
        assert mol.num_bonds == 0


class TestV3000Structure:
    """Test CTAB structure and skipped blocks."""

    def test_continuation_round_trip(self):
        """A logical line split over physical lines parses the same."""
        single = ctab(["1 C 0.5 1.5 0 0 CHG=-1 MASS=13", "2 O 1.3 0 0 0"], ["1 1 1 2"])
        split = single.replace(
            "M  V30 1 C 0.5 1.5 0 0 CHG=-1 MASS=13\n",
            "M  V30 1 C 0.5 -\nM  V30 1.5 0 0 CHG=-1 -\nM  V30 MASS=13\n",
        )
        assert split != single
        a = parse_molblock(single, sanitize=False)
        b = parse_molblock(split, sanitize=False)
        assert a.atoms == b.atoms
        assert a.bonds == b.bonds
        assert a.conformer.positions == b.conformer.positions

    def test_sgroup_block_skipped(self):
        with pytest.warns(MolFileWarning, match="S group"):
            mol = parse_molblock(ctab(
                ["1 C 0 0 0 0", "2 O 1.3 0 0 0"],
                ["1 1 1 2"],
                ["BEGIN SGROUP", "1 SUP 0 ATOMS=(1 2)", "2 DAT 0", "END SGROUP"],
                counts="COUNTS 2 1 2 0 0",
            ))
        assert mol.num_atoms == 2

    def test_obj3d_block_skipped(self):
        with pytest.warns(MolFileWarning, match="3d constraint"):
            mol = parse_molblock(ctab(
                ["1 C 0 0 0 0"],
                extra=["BEGIN OBJ3D", "1 POINT", "END OBJ3D"],
                counts="COUNTS 1 0 0 1 0",
            ))
        assert mol.num_atoms == 1

    def test_unknown_block_skipped(self):
        with pytest.warns(MolFileWarning, match="skipping block"):
            mol = parse_molblock(ctab(
                ["1 C 0 0 0 0"],
                extra=["LINKNODE 1 2 2 1 2 1 3", "BEGIN COLLECTION", "MDLV30/STEABS ATOMS=(1 1)",
                       "END COLLECTION"],
            ))
        assert mol.num_atoms == 1

    def test_chiral_flag(self):
        mol = parse_molblock(ctab(["1 C 0 0 0 0"], counts="COUNTS 1 0 0 0 1"))
        assert mol.get_prop("chiral_flag") == 1

    def test_missing_end_ctab(self):
        text = ctab(["1 C 0 0 0 0"]).replace("M  V30 END CTAB\n", "M  V30 BOGUS\n")
        with pytest.raises(FormatError, match="END CTAB"):
            parse_molblock(text)

    def test_missing_end_atom(self):
        text = ctab(["1 C 0 0 0 0"]).replace("M  V30 END ATOM\n", "")
        with pytest.raises(FormatError, match="END ATOM"):
            parse_molblock(text)

    def test_no_atoms(self):
        with pytest.raises(FormatError, match="no atoms"):
            parse_molblock(v3000_block(["BEGIN CTAB", "COUNTS 0 0 0 0 0", "END CTAB"]))

    def test_bad_counts_line(self):
        with pytest.raises(FormatError, match="Bad counts line"):
            parse_molblock(v3000_block(["BEGIN CTAB", "COUNT 1 0", "END CTAB"]))

    def test_nonzero_v2000_counts(self):
        text = ctab(["1 C 0 0 0 0"]).replace(
            "  0  0  0  0  0  0  0  0  0  0999 V3000",
            "  1  0  0  0  0  0  0  0  0  0999 V3000",
        )
        with pytest.raises(FormatError, match="0s in the initial counts line"):
            parse_molblock(text)

    def test_missing_prefix(self):
        text = ctab(["1 C 0 0 0 0"]).replace("M  V30 BEGIN ATOM", "BEGIN ATOM")
        with pytest.raises(FormatError) as exc_info:
            parse_molblock(text)
        assert exc_info.value.line == 7
