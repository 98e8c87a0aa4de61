"""
plan/nodes.py
-------------
The query plan: a small, mutable tree of relational nodes.

This is the read/write view the tenant rewriter works on. Rendering to SQL is
delegated to SQLAlchemy Core (see plan/render.py), so nodes carry structure
only, never SQL text.

Shapes worth knowing:
  SelectStatement.core         → SelectCore
  SelectCore.source            → JoinSource(left=<relation>, right=[Join, ...])
  Join.left                    → the joined relation
  Join.right                   → On(expr), the mutable join condition
  UpdateStatement / DeleteStatement.relation → the mutation target

Nodes compare by identity; two references to "the same table" are matched
through rewriter.context.RelationFingerprint instead.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional


def _node(value: Any) -> "Node":
    """Wrap plain Python values as Quoted literals."""
    if isinstance(value, Node):
        return value
    ast = getattr(value, "ast", None)  # SelectManager
    if isinstance(ast, Node):
        return ast
    return Quoted(value)


class Node:
    """Base class of every plan node."""

    def children(self) -> Iterator[Node]:
        """Yield every node held in a field, including nodes inside lists."""
        if dataclasses.is_dataclass(self):
            values = [getattr(self, f.name) for f in dataclasses.fields(self)]
        else:
            values = list(vars(self).values())
        for value in values:
            if isinstance(value, Node):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Node):
                        yield item

    def walk(self) -> Iterator[Node]:
        """Depth-first iteration over this node and all of its descendants."""
        stack: List[Node] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(list(node.children())))

    def and_(self, other: Any) -> "And":
        return And([self, _node(other)])

    def or_(self, other: Any) -> "Or":
        return Or(self, _node(other))

    def not_(self) -> "Not":
        return Not(self)

    def to_sql(self, dialect=None, literal_binds: bool = True) -> str:
        from multitenant_sql.plan.render import to_sql

        return to_sql(self, dialect=dialect, literal_binds=literal_binds)


class Predications:
    """Comparison builders shared by column-like nodes."""

    def eq(self, other: Any) -> "Equality":
        return Equality(self, _node(other))

    def not_eq(self, other: Any) -> "NotEqual":
        return NotEqual(self, _node(other))

    def gt(self, other: Any) -> "GreaterThan":
        return GreaterThan(self, _node(other))

    def lt(self, other: Any) -> "LessThan":
        return LessThan(self, _node(other))

    def in_(self, other: Any) -> "In":
        if isinstance(other, (list, tuple, set)):
            return In(self, [_node(v) for v in other])
        return In(self, _node(other))

    def asc(self) -> "Ascending":
        return Ascending(self)

    def desc(self) -> "Descending":
        return Descending(self)


# ── Relations ─────────────────────────────────────────────────────────────────


@dataclass(eq=False)
class Table(Node):
    name: str

    @property
    def table_name(self) -> str:
        return self.name

    @property
    def table_alias(self) -> Optional[str]:
        return None

    def __getitem__(self, column: str) -> "Attribute":
        return Attribute(self, column)

    def alias(self, name: str) -> "TableAlias":
        return TableAlias(self, name)


@dataclass(eq=False)
class TableAlias(Node):
    relation: Node  # Table, or a SelectStatement for derived tables
    name: str

    @property
    def table_name(self) -> Optional[str]:
        if isinstance(self.relation, Table):
            return self.relation.name
        return None

    @property
    def table_alias(self) -> str:
        return self.name

    def __getitem__(self, column: str) -> "Attribute":
        return Attribute(self, column)


def relation_table_name(relation: Node) -> Optional[str]:
    """Real table name behind a relation, or None for derived tables."""
    if isinstance(relation, (Table, TableAlias)):
        return relation.table_name
    return None


@dataclass(eq=False)
class Attribute(Predications, Node):
    relation: Node
    name: str


# ── Values ────────────────────────────────────────────────────────────────────


@dataclass(eq=False)
class Quoted(Node):
    value: Any


@dataclass(eq=False)
class BindParam(Node):
    name: str


@dataclass(eq=False)
class SqlLiteral(Node):
    text: str


# ── Predicates ────────────────────────────────────────────────────────────────


@dataclass(eq=False)
class Equality(Node):
    left: Node
    right: Node


@dataclass(eq=False)
class NotEqual(Node):
    left: Node
    right: Node


@dataclass(eq=False)
class GreaterThan(Node):
    left: Node
    right: Node


@dataclass(eq=False)
class LessThan(Node):
    left: Node
    right: Node


@dataclass(eq=False)
class In(Node):
    left: Node
    right: Any  # list of nodes, or a SelectStatement


@dataclass(eq=False)
class And(Node):
    predicates: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class Or(Node):
    left: Node
    right: Node


@dataclass(eq=False)
class Not(Node):
    expr: Node


@dataclass(eq=False)
class Grouping(Node):
    expr: Node


@dataclass(eq=False)
class Exists(Node):
    expr: Node


class SyntheticClause(Node):
    """
    A predicate built by the rewriter rather than by the caller.

    Subclasses expose the attribute they constrain as ``tenant_attribute`` and
    describe themselves as a plain Equality for rendering.
    """

    tenant_attribute: Attribute

    def to_equality(self) -> Equality:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.to_sql()


# ── Functions / ordering ──────────────────────────────────────────────────────


@dataclass(eq=False)
class NamedFunction(Predications, Node):
    name: str
    expressions: List[Node] = field(default_factory=list)
    alias: Optional[str] = None


@dataclass(eq=False)
class Ascending(Node):
    expr: Node


@dataclass(eq=False)
class Descending(Node):
    expr: Node


# ── Joins ─────────────────────────────────────────────────────────────────────


@dataclass(eq=False)
class On(Node):
    expr: Optional[Node] = None


@dataclass(eq=False)
class Join(Node):
    left: Node
    right: Optional[On] = None

    def add_condition(self, clause: Node) -> None:
        """AND a predicate into this join's condition."""
        if self.right is None:
            self.right = On(clause)
        elif self.right.expr is None:
            self.right.expr = clause
        else:
            self.right.expr = self.right.expr.and_(clause)


@dataclass(eq=False)
class InnerJoin(Join):
    pass


@dataclass(eq=False)
class OuterJoin(Join):
    pass


@dataclass(eq=False)
class RightOuterJoin(OuterJoin):
    pass


@dataclass(eq=False)
class FullOuterJoin(OuterJoin):
    pass


@dataclass(eq=False)
class JoinSource(Node):
    left: Optional[Node] = None
    right: List[Join] = field(default_factory=list)


# ── Statements ────────────────────────────────────────────────────────────────


@dataclass(eq=False)
class SelectCore(Node):
    projections: List[Node] = field(default_factory=list)
    source: JoinSource = field(default_factory=JoinSource)
    wheres: List[Node] = field(default_factory=list)
    groups: List[Node] = field(default_factory=list)
    windows: List[Node] = field(default_factory=list)
    havings: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class SelectStatement(Node):
    core: SelectCore = field(default_factory=SelectCore)
    orders: List[Node] = field(default_factory=list)
    limit: Optional[int] = None
    offset: Optional[int] = None


@dataclass(eq=False)
class Union(Node):
    left: Node
    right: Node


@dataclass(eq=False)
class UnionAll(Node):
    left: Node
    right: Node


@dataclass(eq=False)
class Assignment(Node):
    column: Attribute
    value: Node


@dataclass(eq=False)
class UpdateStatement(Node):
    relation: Node
    values: List[Assignment] = field(default_factory=list)
    wheres: List[Node] = field(default_factory=list)

    def set(self, values: dict) -> "UpdateStatement":
        for column, value in values.items():
            self.values.append(Assignment(Attribute(self.relation, column), _node(value)))
        return self

    def where(self, expr: Node) -> "UpdateStatement":
        self.wheres.append(expr)
        return self


@dataclass(eq=False)
class DeleteStatement(Node):
    relation: Node
    wheres: List[Node] = field(default_factory=list)

    def where(self, expr: Node) -> "DeleteStatement":
        self.wheres.append(expr)
        return self


MutationStatement = (UpdateStatement, DeleteStatement)
