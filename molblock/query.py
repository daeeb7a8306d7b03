"""
Substructure query trees for atoms and bonds.

A query is a tree of ``QueryNode`` values. Leaves are predicates (atomic
number equals, ring bond count, degree, unsaturation, bond order, ...);
composite nodes combine their children with AND or OR. Any node may be
negated. Every composite exclusively owns its children.

Building:
    - ``upgrade_to_query`` turns a plain atom into an equivalent query atom
      in place (same index), so later constraints are additive.
    - ``expand`` composes a new predicate into an existing tree.
    - ``complete_queries`` fills in values that were deferred until the
      whole graph was known.

Evaluating:
    - ``atom_matches`` / ``bond_matches`` test a query tree against an atom
      or bond of a target molecule.

Example:
    >>> q = or_query([bond_order_query(BondOrder.SINGLE),
    ...               bond_order_query(BondOrder.DOUBLE)])
    >>> bond_matches(q, mol, 0)
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterator

from molblock.elements import BondOrder
from molblock.rings import find_ring_bonds, ring_bond_count

if TYPE_CHECKING:
    from molblock.types import Atom, Bond, Molecule


class QueryKind(Enum):
    """Discriminator for query tree nodes."""

    NULL = "Null"
    ATOMIC_NUM = "AtomAtomicNum"
    FORMAL_CHARGE = "AtomFormalCharge"
    MASS = "AtomMass"
    EXPLICIT_DEGREE = "AtomExplicitDegree"
    H_COUNT = "AtomHCount"
    UNSATURATED = "AtomUnsaturated"
    RING_BOND_COUNT = "AtomRingBondCount"
    BOND_ORDER = "BondOrder"
    BOND_IN_RING = "BondInRing"
    AND = "And"
    OR = "Or"


class Comparison(Enum):
    """How a leaf compares its value with the target's value.

    The node value is the left operand: ``AT_MOST_TARGET`` matches when
    ``value <= target``, i.e. the target has at least ``value``.
    """

    EQUAL = "=="
    AT_MOST_TARGET = "<="


_COMPOSITES = frozenset({QueryKind.AND, QueryKind.OR})


@dataclass(slots=True)
class QueryNode:
    """One node of a query tree.

    Attributes:
        kind: Node discriminator.
        value: Comparison value for valued leaves.
        comparison: Comparison used by valued leaves.
        negated: Invert the result of this node.
        deferred: Value is unknown until the whole graph is built.
        children: Child nodes of a composite.
    """

    kind: QueryKind
    value: int | None = None
    comparison: Comparison = Comparison.EQUAL
    negated: bool = False
    deferred: bool = False
    children: list["QueryNode"] = field(default_factory=list)

    @property
    def is_composite(self) -> bool:
        return self.kind in _COMPOSITES

    def walk(self) -> Iterator["QueryNode"]:
        """Iterate over this node and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def describe(self) -> str:
        """Human-readable rendering of the tree."""
        prefix = "!" if self.negated else ""
        if self.is_composite:
            inner = ", ".join(child.describe() for child in self.children)
            return f"{prefix}{self.kind.value}({inner})"
        if self.kind in (QueryKind.NULL, QueryKind.UNSATURATED, QueryKind.BOND_IN_RING):
            return f"{prefix}{self.kind.value}"
        shown = "?" if self.deferred else str(self.value)
        return f"{prefix}{self.kind.value}{self.comparison.value}{shown}"

    def __str__(self) -> str:
        return self.describe()


# ============================================================================
# Factories
# ============================================================================

def null_query() -> QueryNode:
    """Query that matches anything."""
    return QueryNode(QueryKind.NULL)


def atomic_num_query(atomic_num: int, negated: bool = False) -> QueryNode:
    return QueryNode(QueryKind.ATOMIC_NUM, atomic_num, negated=negated)


def formal_charge_query(charge: int) -> QueryNode:
    return QueryNode(QueryKind.FORMAL_CHARGE, charge)


def mass_query(mass: int) -> QueryNode:
    return QueryNode(QueryKind.MASS, mass)


def explicit_degree_query(degree: int) -> QueryNode:
    return QueryNode(QueryKind.EXPLICIT_DEGREE, degree)


def h_count_query(count: int) -> QueryNode:
    return QueryNode(QueryKind.H_COUNT, count)


def unsaturated_query() -> QueryNode:
    return QueryNode(QueryKind.UNSATURATED)


def ring_bond_count_query(
    count: int | None,
    comparison: Comparison = Comparison.EQUAL,
) -> QueryNode:
    """Ring bond count query; ``count=None`` defers the value."""
    return QueryNode(
        QueryKind.RING_BOND_COUNT,
        count,
        comparison=comparison,
        deferred=count is None,
    )


def bond_order_query(order: BondOrder) -> QueryNode:
    return QueryNode(QueryKind.BOND_ORDER, int(order))


def bond_in_ring_query(negated: bool = False) -> QueryNode:
    return QueryNode(QueryKind.BOND_IN_RING, negated=negated)


def or_query(children: list[QueryNode], negated: bool = False) -> QueryNode:
    return QueryNode(QueryKind.OR, negated=negated, children=list(children))


def and_query(children: list[QueryNode]) -> QueryNode:
    return QueryNode(QueryKind.AND, children=list(children))


def atom_list_query(atomic_numbers: list[int], negated: bool = False) -> QueryNode:
    """Query matching any of the listed elements (none of them if negated)."""
    if len(atomic_numbers) == 1:
        return atomic_num_query(atomic_numbers[0], negated=negated)
    return or_query([atomic_num_query(n) for n in atomic_numbers], negated=negated)


# ============================================================================
# Composition
# ============================================================================

def expand(
    existing: QueryNode | None,
    new: QueryNode,
    combinator: QueryKind = QueryKind.AND,
) -> QueryNode:
    """Compose ``new`` into ``existing`` with AND (default) or OR.

    No wrapping happens when there is no existing query. An existing
    un-negated composite of the same kind receives ``new`` as a sibling;
    anything else is wrapped together with ``new`` under a fresh node.

    Returns:
        Root of the resulting tree.
    """
    if combinator not in _COMPOSITES:
        raise ValueError(f"Invalid query combinator: {combinator}")
    if existing is None:
        return new
    if existing.kind is combinator and not existing.negated:
        existing.children.append(new)
        return existing
    return QueryNode(combinator, children=[existing, new])


def upgrade_to_query(mol: "Molecule", atom_idx: int) -> "Atom":
    """Turn the atom at ``atom_idx`` into an equivalent query atom.

    Idempotent: an atom that already has a query is returned unchanged.
    The generated query carries the element, and the formal charge and
    mass-difference constraints when present.

    Returns:
        The atom now stored at ``atom_idx``.
    """
    atom = mol.get_atom(atom_idx)
    if atom.query is not None:
        return atom

    query = atomic_num_query(atom.atomic_number)
    if atom.charge != 0:
        query = expand(query, formal_charge_query(atom.charge))
    if atom.has_mass_query:
        query = expand(query, mass_query(int(atom.get_mass())))
    return mol.replace_atom(atom_idx, replace(atom, query=query))


def expand_atom_query(
    mol: "Molecule",
    atom_idx: int,
    new: QueryNode,
    combinator: QueryKind = QueryKind.AND,
) -> "Atom":
    """Upgrade the atom if needed and compose ``new`` into its query."""
    atom = upgrade_to_query(mol, atom_idx)
    atom.query = expand(atom.query, new, combinator)
    return atom


def upgrade_bond_to_query(bond: "Bond") -> "Bond":
    """Give a plain bond a query equivalent to its order (in place)."""
    if bond.query is None:
        bond.query = bond_order_query(bond.order)
    return bond


def expand_bond_query(
    bond: "Bond",
    new: QueryNode,
    combinator: QueryKind = QueryKind.AND,
) -> "Bond":
    upgrade_bond_to_query(bond)
    bond.query = expand(bond.query, new, combinator)
    return bond


def complete_queries(mol: "Molecule") -> int:
    """Resolve deferred query values now that the graph is complete.

    A deferred ring bond count becomes the atom's ring bond count as drawn.

    Returns:
        Number of nodes that were resolved.
    """
    ring_bonds: set[int] | None = None
    resolved = 0
    for atom in mol.atoms:
        if atom.query is None:
            continue
        for node in atom.query.walk():
            if not node.deferred:
                continue
            if ring_bonds is None:
                ring_bonds = find_ring_bonds(mol)
            node.value = _ATOM_VALUES[node.kind](mol, atom, ring_bonds)
            node.deferred = False
            resolved += 1
    return resolved


# ============================================================================
# Evaluation
# ============================================================================

def _count_hydrogens(mol: "Molecule", atom: "Atom", ring_bonds: set[int]) -> int:
    bonded_h = sum(1 for n in atom.neighbors(mol) if mol.atoms[n].atomic_number == 1)
    return atom.total_hydrogens() + bonded_h


def _is_unsaturated(mol: "Molecule", atom: "Atom", ring_bonds: set[int]) -> int:
    return int(any(
        b.is_aromatic or b.order in (BondOrder.DOUBLE, BondOrder.TRIPLE, BondOrder.AROMATIC)
        for b in atom.get_bonds(mol)
    ))


_ATOM_VALUES: dict[QueryKind, Callable[["Molecule", "Atom", set[int]], int]] = {
    QueryKind.ATOMIC_NUM: lambda mol, atom, rb: atom.atomic_number,
    QueryKind.FORMAL_CHARGE: lambda mol, atom, rb: atom.charge,
    QueryKind.MASS: lambda mol, atom, rb: int(atom.get_mass()),
    QueryKind.EXPLICIT_DEGREE: lambda mol, atom, rb: len(atom.bond_indices),
    QueryKind.H_COUNT: _count_hydrogens,
    QueryKind.UNSATURATED: _is_unsaturated,
    QueryKind.RING_BOND_COUNT: lambda mol, atom, rb: ring_bond_count(mol, atom.idx, rb),
}


def _compare(node: QueryNode, target: int) -> bool:
    if node.deferred or node.value is None:
        raise ValueError(f"Query value not resolved: {node.describe()}")
    if node.comparison is Comparison.AT_MOST_TARGET:
        return node.value <= target
    return node.value == target


def _evaluate(node: QueryNode, leaf: Callable[[QueryNode], bool]) -> bool:
    if node.kind is QueryKind.AND:
        result = all(_evaluate(child, leaf) for child in node.children)
    elif node.kind is QueryKind.OR:
        result = any(_evaluate(child, leaf) for child in node.children)
    elif node.kind is QueryKind.NULL:
        result = True
    else:
        result = leaf(node)
    return result != node.negated


def atom_matches(
    query: QueryNode,
    mol: "Molecule",
    atom_idx: int,
    ring_bonds: set[int] | None = None,
) -> bool:
    """Test an atom query against atom ``atom_idx`` of ``mol``.

    Args:
        query: Atom query tree.
        mol: Target molecule.
        atom_idx: Index of the target atom.
        ring_bonds: Precomputed ring bonds of ``mol`` (computed if None).

    Raises:
        ValueError: If the tree holds a bond predicate or an unresolved value.
    """
    atom = mol.atoms[atom_idx]
    if ring_bonds is None:
        ring_bonds = mol.ring_bonds if mol.ring_bonds is not None else find_ring_bonds(mol)

    def leaf(node: QueryNode) -> bool:
        if node.kind is QueryKind.UNSATURATED:
            return bool(_is_unsaturated(mol, atom, ring_bonds))
        getter = _ATOM_VALUES.get(node.kind)
        if getter is None:
            raise ValueError(f"Not an atom predicate: {node.kind.value}")
        return _compare(node, getter(mol, atom, ring_bonds))

    return _evaluate(query, leaf)


def bond_matches(
    query: QueryNode,
    mol: "Molecule",
    bond_idx: int,
    ring_bonds: set[int] | None = None,
) -> bool:
    """Test a bond query against bond ``bond_idx`` of ``mol``.

    Raises:
        ValueError: If the tree holds an atom predicate.
    """
    bond = mol.bonds[bond_idx]
    if ring_bonds is None:
        ring_bonds = mol.ring_bonds if mol.ring_bonds is not None else find_ring_bonds(mol)

    def leaf(node: QueryNode) -> bool:
        if node.kind is QueryKind.BOND_ORDER:
            return _compare(node, int(bond.order))
        if node.kind is QueryKind.BOND_IN_RING:
            return bond.idx in ring_bonds
        raise ValueError(f"Not a bond predicate: {node.kind.value}")

    return _evaluate(query, leaf)
