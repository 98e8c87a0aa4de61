"""
plan/manager.py
---------------
Fluent builders for query plans.

    orders = Table("orders")
    items = Table("items")

    query = (
        select_from(orders)
        .project(orders["id"], items["sku"])
        .outer_join(items)
        .on(items["order_id"].eq(orders["id"]))
        .where(orders["status"].eq("open"))
    )
    query.ast  → SelectStatement
"""

from typing import Any, Optional, Type

from multitenant_sql.plan.nodes import (
    And,
    DeleteStatement,
    Exists,
    InnerJoin,
    Join,
    Node,
    On,
    OuterJoin,
    SelectCore,
    SelectStatement,
    SqlLiteral,
    TableAlias,
    Union,
    UnionAll,
    UpdateStatement,
    _node,
)


class SelectManager:
    def __init__(self, relation: Optional[Node] = None) -> None:
        self.ast = SelectStatement()
        if relation is not None:
            self.ast.core.source.left = relation

    @property
    def core(self) -> SelectCore:
        return self.ast.core

    def from_(self, relation: Node) -> "SelectManager":
        self.core.source.left = relation
        return self

    def project(self, *projections: Any) -> "SelectManager":
        for projection in projections:
            if isinstance(projection, str):
                projection = SqlLiteral(projection)
            self.core.projections.append(_node(projection))
        return self

    def join(self, relation: Node, kind: Type[Join] = InnerJoin) -> "SelectManager":
        self.core.source.right.append(kind(relation))
        return self

    def outer_join(self, relation: Node) -> "SelectManager":
        return self.join(relation, OuterJoin)

    def on(self, *exprs: Node) -> "SelectManager":
        if not self.core.source.right:
            raise ValueError("on() called before join()")
        expr = exprs[0] if len(exprs) == 1 else And(list(exprs))
        self.core.source.right[-1].right = On(expr)
        return self

    def where(self, expr: Node) -> "SelectManager":
        self.core.wheres.append(expr)
        return self

    def group(self, *exprs: Node) -> "SelectManager":
        self.core.groups.extend(exprs)
        return self

    def having(self, expr: Node) -> "SelectManager":
        self.core.havings.append(expr)
        return self

    def order(self, *exprs: Node) -> "SelectManager":
        self.ast.orders.extend(exprs)
        return self

    def take(self, limit: int) -> "SelectManager":
        self.ast.limit = limit
        return self

    def skip(self, offset: int) -> "SelectManager":
        self.ast.offset = offset
        return self

    def as_(self, name: str) -> TableAlias:
        """Use this query as a derived table."""
        return TableAlias(self.ast, name)

    def exists(self) -> Exists:
        return Exists(self.ast)

    def union(self, other: "SelectManager", all: bool = False) -> Node:
        node_class = UnionAll if all else Union
        return node_class(self.ast, other.ast)

    def to_sql(self, dialect=None, literal_binds: bool = True) -> str:
        return self.ast.to_sql(dialect=dialect, literal_binds=literal_binds)


def select_from(relation: Optional[Node] = None) -> SelectManager:
    return SelectManager(relation)


def update(relation: Node) -> UpdateStatement:
    return UpdateStatement(relation)


def delete_from(relation: Node) -> DeleteStatement:
    return DeleteStatement(relation)
