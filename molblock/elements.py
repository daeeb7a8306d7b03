"""
Chemical elements and constants.

This module provides the periodic table (symbol and atomic number lookups,
standard atomic weights, allowed valences) and the bond enumerations used
throughout the library. All data here is read-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Final


class BondOrder(IntEnum):
    """Bond order enumeration.

    Values match the V2000 bond type codes 1-4; ``UNSPECIFIED`` covers
    order 0 and all query bond types.
    """

    UNSPECIFIED = 0
    SINGLE = 1
    DOUBLE = 2
    TRIPLE = 3
    AROMATIC = 4

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def valence_contribution(self) -> float:
        """Contribution of one bond of this order to an atom's valence."""
        return _VALENCE_CONTRIBUTIONS[self]


_VALENCE_CONTRIBUTIONS: Final[dict[BondOrder, float]] = {
    BondOrder.UNSPECIFIED: 0.0,
    BondOrder.SINGLE: 1.0,
    BondOrder.DOUBLE: 2.0,
    BondOrder.TRIPLE: 3.0,
    BondOrder.AROMATIC: 1.5,
}


class BondDir(IntEnum):
    """Directional stereo marker drawn on a bond."""

    NONE = 0
    BEGIN_WEDGE = 1
    BEGIN_DASH = 2
    EITHER_DOUBLE = 3
    UNKNOWN = 4


class BondStereo(IntEnum):
    """Double bond stereo configuration."""

    NONE = 0
    ANY = 1
    Z = 2
    E = 3


@dataclass(frozen=True, slots=True)
class Element:
    """Immutable element data.

    Attributes:
        atomic_number: Atomic number (proton count).
        symbol: Element symbol (e.g., "C", "Cl").
        name: Full element name.
        atomic_weight: Standard atomic weight.
        valences: Allowed valences, or None when not checked.
    """

    atomic_number: int
    symbol: str
    name: str
    atomic_weight: float
    valences: tuple[int, ...] | None = None

    # Class-level registry
    _by_symbol: ClassVar[dict[str, "Element"]] = {}
    _by_number: ClassVar[dict[int, "Element"]] = {}

    def __post_init__(self) -> None:
        Element._by_symbol[self.symbol] = self
        Element._by_number[self.atomic_number] = self

    @classmethod
    def from_symbol(cls, symbol: str) -> "Element | None":
        """Look up element by symbol (exact match, then capitalized)."""
        if symbol in cls._by_symbol:
            return cls._by_symbol[symbol]
        return cls._by_symbol.get(symbol.capitalize())

    @classmethod
    def from_atomic_number(cls, num: int) -> "Element | None":
        """Look up element by atomic number."""
        return cls._by_number.get(num)


_ELEMENTS_DATA: Final[list[tuple[int, str, str, float, tuple[int, ...] | None]]] = [
    # (atomic_number, symbol, name, atomic_weight, valences)
    (0, "*", "Dummy", 0.0, None),
    (1, "H", "Hydrogen", 1.008, (1,)),
    (2, "He", "Helium", 4.003, (0,)),
    (3, "Li", "Lithium", 6.941, (1,)),
    (4, "Be", "Beryllium", 9.012, (2,)),
    (5, "B", "Boron", 10.812, (3,)),
    (6, "C", "Carbon", 12.011, (4,)),
    (7, "N", "Nitrogen", 14.007, (3,)),
    (8, "O", "Oxygen", 15.999, (2,)),
    (9, "F", "Fluorine", 18.998, (1,)),
    (10, "Ne", "Neon", 20.18, (0,)),
    (11, "Na", "Sodium", 22.99, (1,)),
    (12, "Mg", "Magnesium", 24.305, (2,)),
    (13, "Al", "Aluminum", 26.982, (3, 6)),
    (14, "Si", "Silicon", 28.086, (4, 6)),
    (15, "P", "Phosphorus", 30.974, (3, 5, 7)),
    (16, "S", "Sulfur", 32.067, (2, 4, 6)),
    (17, "Cl", "Chlorine", 35.453, (1,)),
    (18, "Ar", "Argon", 39.948, (0,)),
    (19, "K", "Potassium", 39.098, (1,)),
    (20, "Ca", "Calcium", 40.078, (2,)),
    (21, "Sc", "Scandium", 44.956, None),
    (22, "Ti", "Titanium", 47.867, None),
    (23, "V", "Vanadium", 50.942, None),
    (24, "Cr", "Chromium", 51.996, None),
    (25, "Mn", "Manganese", 54.938, None),
    (26, "Fe", "Iron", 55.845, None),
    (27, "Co", "Cobalt", 58.933, None),
    (28, "Ni", "Nickel", 58.693, None),
    (29, "Cu", "Copper", 63.546, None),
    (30, "Zn", "Zinc", 65.39, None),
    (31, "Ga", "Gallium", 69.723, (3,)),
    (32, "Ge", "Germanium", 72.61, (4,)),
    (33, "As", "Arsenic", 74.922, (3, 5, 7)),
    (34, "Se", "Selenium", 78.96, (2, 4, 6)),
    (35, "Br", "Bromine", 79.904, (1,)),
    (36, "Kr", "Krypton", 83.8, (0,)),
    (37, "Rb", "Rubidium", 85.468, (1,)),
    (38, "Sr", "Strontium", 87.62, (2,)),
    (39, "Y", "Yttrium", 88.906, None),
    (40, "Zr", "Zirconium", 91.224, None),
    (41, "Nb", "Niobium", 92.906, None),
    (42, "Mo", "Molybdenum", 95.94, None),
    (43, "Tc", "Technetium", 98.0, None),
    (44, "Ru", "Ruthenium", 101.07, None),
    (45, "Rh", "Rhodium", 102.906, None),
    (46, "Pd", "Palladium", 106.42, None),
    (47, "Ag", "Silver", 107.868, None),
    (48, "Cd", "Cadmium", 112.412, None),
    (49, "In", "Indium", 114.818, (3,)),
    (50, "Sn", "Tin", 118.711, (2, 4)),
    (51, "Sb", "Antimony", 121.76, (3, 5, 7)),
    (52, "Te", "Tellurium", 127.6, (2, 4, 6)),
    (53, "I", "Iodine", 126.904, (1, 3, 5)),
    (54, "Xe", "Xenon", 131.29, (0, 2, 4, 6)),
    (55, "Cs", "Cesium", 132.905, (1,)),
    (56, "Ba", "Barium", 137.328, (2,)),
    (57, "La", "Lanthanum", 138.906, None),
    (58, "Ce", "Cerium", 140.116, None),
    (59, "Pr", "Praseodymium", 140.908, None),
    (60, "Nd", "Neodymium", 144.24, None),
    (61, "Pm", "Promethium", 145.0, None),
    (62, "Sm", "Samarium", 150.36, None),
    (63, "Eu", "Europium", 151.964, None),
    (64, "Gd", "Gadolinium", 157.25, None),
    (65, "Tb", "Terbium", 158.925, None),
    (66, "Dy", "Dysprosium", 162.5, None),
    (67, "Ho", "Holmium", 164.93, None),
    (68, "Er", "Erbium", 167.26, None),
    (69, "Tm", "Thulium", 168.934, None),
    (70, "Yb", "Ytterbium", 173.04, None),
    (71, "Lu", "Lutetium", 174.967, None),
    (72, "Hf", "Hafnium", 178.49, None),
    (73, "Ta", "Tantalum", 180.948, None),
    (74, "W", "Tungsten", 183.84, None),
    (75, "Re", "Rhenium", 186.207, None),
    (76, "Os", "Osmium", 190.23, None),
    (77, "Ir", "Iridium", 192.217, None),
    (78, "Pt", "Platinum", 195.078, None),
    (79, "Au", "Gold", 196.967, None),
    (80, "Hg", "Mercury", 200.59, None),
    (81, "Tl", "Thallium", 204.383, (3,)),
    (82, "Pb", "Lead", 207.2, (2, 4)),
    (83, "Bi", "Bismuth", 208.98, (3, 5, 7)),
    (84, "Po", "Polonium", 209.0, (2, 4, 6)),
    (85, "At", "Astatine", 210.0, (1, 3, 5, 7)),
    (86, "Rn", "Radon", 222.0, (0,)),
    (87, "Fr", "Francium", 223.0, (1,)),
    (88, "Ra", "Radium", 226.0, (2,)),
    (89, "Ac", "Actinium", 227.0, None),
    (90, "Th", "Thorium", 232.038, None),
    (91, "Pa", "Protactinium", 231.036, None),
    (92, "U", "Uranium", 238.029, None),
    (93, "Np", "Neptunium", 237.0, None),
    (94, "Pu", "Plutonium", 244.0, None),
    (95, "Am", "Americium", 243.0, None),
    (96, "Cm", "Curium", 247.0, None),
    (97, "Bk", "Berkelium", 247.0, None),
    (98, "Cf", "Californium", 251.0, None),
    (99, "Es", "Einsteinium", 252.0, None),
    (100, "Fm", "Fermium", 257.0, None),
    (101, "Md", "Mendelevium", 258.0, None),
    (102, "No", "Nobelium", 259.0, None),
    (103, "Lr", "Lawrencium", 262.0, None),
    (104, "Rf", "Rutherfordium", 267.0, None),
    (105, "Db", "Dubnium", 268.0, None),
    (106, "Sg", "Seaborgium", 269.0, None),
    (107, "Bh", "Bohrium", 270.0, None),
    (108, "Hs", "Hassium", 269.0, None),
    (109, "Mt", "Meitnerium", 278.0, None),
    (110, "Ds", "Darmstadtium", 281.0, None),
    (111, "Rg", "Roentgenium", 281.0, None),
    (112, "Cn", "Copernicium", 285.0, None),
    (113, "Nh", "Nihonium", 286.0, None),
    (114, "Fl", "Flerovium", 289.0, None),
    (115, "Mc", "Moscovium", 289.0, None),
    (116, "Lv", "Livermorium", 293.0, None),
    (117, "Ts", "Tennessine", 294.0, None),
    (118, "Og", "Oganesson", 294.0, None),
]

ELEMENTS: Final[tuple[Element, ...]] = tuple(
    Element(num, sym, name, weight, valences)
    for num, sym, name, weight, valences in _ELEMENTS_DATA
)

# Hydrogen isotope shorthands accepted in atom blocks
DEUTERIUM_MASS: Final[float] = 2.014
TRITIUM_MASS: Final[float] = 3.016


def get_atomic_number(symbol: str) -> int:
    """Get atomic number for an element symbol.

    Args:
        symbol: Element symbol (e.g., "C", "Cl").

    Returns:
        Atomic number, or 0 if not found.
    """
    elem = Element.from_symbol(symbol)
    return elem.atomic_number if elem else 0


def get_symbol(atomic_num: int) -> str:
    """Get the element symbol for an atomic number ("*" when unknown)."""
    elem = Element.from_atomic_number(atomic_num)
    return elem.symbol if elem else "*"


def get_atomic_weight(atomic_num: int) -> float:
    """Get the standard atomic weight for an element.

    Args:
        atomic_num: Atomic number.

    Returns:
        Standard atomic weight, or 0.0 for unknown elements.
    """
    elem = Element.from_atomic_number(atomic_num)
    return elem.atomic_weight if elem else 0.0


def get_allowed_valences(atomic_num: int, charge: int = 0) -> tuple[int, ...] | None:
    """Get allowed valences, taking the formal charge into account.

    A charged atom uses the valence list of its isoelectronic neutral
    element (N+ behaves like C, O- like F, B- like C).

    Args:
        atomic_num: Atomic number.
        charge: Formal charge.

    Returns:
        Tuple of allowed valences, or None if valence is not checked.
    """
    if atomic_num <= 0:
        return None
    effective = atomic_num - charge
    if effective <= 0:
        return None
    elem = Element.from_atomic_number(effective)
    return elem.valences if elem else None


def is_known_symbol(symbol: str) -> bool:
    """Check whether symbol names a real element."""
    return get_atomic_number(symbol) > 0
