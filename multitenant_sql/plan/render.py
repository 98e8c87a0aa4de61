"""
plan/render.py
--------------
Render query plans with SQLAlchemy Core.

SQLAlchemy is the host query builder: every plan node is translated into the
equivalent Core construct (table(), select(), join(), update(), ...) and
SQLAlchemy's compiler produces the SQL text for the chosen dialect.

Tables are built as lightweight table() clauses. Their column collections are
gathered from the whole plan in a first pass, so every Attribute resolves to a
real column of the table it references.
"""

from collections import defaultdict
from typing import Any, Dict, Optional, Set, Tuple, Union as TypingUnion

import sqlalchemy as sa
from sqlalchemy.engine import Dialect
from sqlalchemy.engine.url import make_url
from sqlalchemy.sql.elements import Grouping as SAGrouping

from multitenant_sql.core.config import settings
from multitenant_sql.core.exceptions import PlanRenderError
from multitenant_sql.plan.nodes import (
    And,
    Ascending,
    Assignment,
    Attribute,
    BindParam,
    DeleteStatement,
    Descending,
    Equality,
    Exists,
    FullOuterJoin,
    GreaterThan,
    Grouping,
    In,
    InnerJoin,
    JoinSource,
    LessThan,
    NamedFunction,
    Node,
    Not,
    NotEqual,
    Or,
    OuterJoin,
    Quoted,
    RightOuterJoin,
    SelectCore,
    SelectStatement,
    SqlLiteral,
    SyntheticClause,
    Table,
    TableAlias,
    Union,
    UnionAll,
    UpdateStatement,
    relation_table_name,
)


class SQLAlchemyRenderer:
    """Translate one plan into SQLAlchemy Core. Use a fresh instance per plan."""

    def __init__(self) -> None:
        self._columns: Dict[str, Set[str]] = defaultdict(set)
        self._tables: Dict[str, sa.TableClause] = {}
        self._aliases: Dict[Tuple[str, str], Any] = {}
        self._subqueries: Dict[int, Any] = {}

    def render(self, plan: Node):
        self._collect_columns(plan)
        return self._render(plan)

    # ── Relations ─────────────────────────────────────────────────────────

    def _collect_columns(self, plan: Node) -> None:
        for node in plan.walk():
            if isinstance(node, Attribute):
                table_name = relation_table_name(node.relation)
                if table_name is not None:
                    self._columns[table_name].add(node.name)

    def _table(self, name: str) -> sa.TableClause:
        if name not in self._tables:
            columns = [sa.column(c) for c in sorted(self._columns[name])]
            self._tables[name] = sa.table(name, *columns)
        return self._tables[name]

    def _relation(self, relation: Node):
        if isinstance(relation, Table):
            return self._table(relation.name)
        if isinstance(relation, TableAlias):
            if isinstance(relation.relation, Table):
                key = (relation.relation.name, relation.name)
                if key not in self._aliases:
                    self._aliases[key] = self._table(relation.relation.name).alias(relation.name)
                return self._aliases[key]
            if id(relation) not in self._subqueries:
                inner = self._render(relation.relation)
                self._subqueries[id(relation)] = inner.subquery(relation.name)
            return self._subqueries[id(relation)]
        if isinstance(relation, JoinSource):
            return self._join_source(relation)
        raise PlanRenderError(f"Cannot use {type(relation).__name__} as a relation")

    def _join_source(self, source: JoinSource):
        from_clause = self._relation(source.left)
        for join in source.right:
            right = self._relation(join.left)
            if join.right is not None and join.right.expr is not None:
                onclause = self._render(join.right.expr)
            else:
                onclause = sa.true()

            if isinstance(join, RightOuterJoin):
                # Core has no RIGHT JOIN; swap the sides of a LEFT OUTER JOIN.
                from_clause = sa.join(right, from_clause, onclause, isouter=True)
            elif isinstance(join, FullOuterJoin):
                from_clause = sa.join(from_clause, right, onclause, full=True)
            elif isinstance(join, OuterJoin):
                from_clause = sa.join(from_clause, right, onclause, isouter=True)
            elif isinstance(join, InnerJoin):
                from_clause = sa.join(from_clause, right, onclause)
            else:
                raise PlanRenderError(f"Unsupported join kind {type(join).__name__}")
        return from_clause

    def _attribute(self, node: Attribute):
        relation = node.relation
        if isinstance(relation, (Table, TableAlias)):
            from_clause = self._relation(relation)
            if node.name in from_clause.c:
                return from_clause.c[node.name]
            if isinstance(relation, TableAlias):
                return sa.literal_column(f"{relation.name}.{node.name}")
        return sa.column(node.name)

    # ── Statements ────────────────────────────────────────────────────────

    def _select_core(self, core: SelectCore):
        if core.windows:
            raise PlanRenderError("Named WINDOW clauses cannot be rendered with SQLAlchemy Core")

        projections = [self._projection(p) for p in core.projections]
        stmt = sa.select(*(projections or [sa.literal_column("*")]))
        if core.source.left is not None:
            stmt = stmt.select_from(self._join_source(core.source))
        if core.wheres:
            stmt = stmt.where(*[self._render(w) for w in core.wheres])
        if core.groups:
            stmt = stmt.group_by(*[self._render(g) for g in core.groups])
        for having in core.havings:
            stmt = stmt.having(self._render(having))
        return stmt

    def _select_statement(self, node: SelectStatement):
        stmt = self._select_core(node.core)
        if node.orders:
            stmt = stmt.order_by(*[self._render(o) for o in node.orders])
        if node.limit is not None:
            stmt = stmt.limit(node.limit)
        if node.offset is not None:
            stmt = stmt.offset(node.offset)
        return stmt

    def _projection(self, node: Node):
        if isinstance(node, NamedFunction) and node.alias:
            return self._render(node).label(node.alias)
        return self._operand(node)

    def _operand(self, node: Node):
        """Render a value position; subqueries become scalar subqueries."""
        if isinstance(node, SelectStatement):
            return self._render(node).scalar_subquery()
        return self._render(node)

    def _update(self, node: UpdateStatement):
        stmt = sa.update(self._relation(node.relation))
        if node.values:
            stmt = stmt.values({a.column.name: self._render(a.value) for a in node.values})
        if node.wheres:
            stmt = stmt.where(*[self._render(w) for w in node.wheres])
        return stmt

    def _delete(self, node: DeleteStatement):
        stmt = sa.delete(self._relation(node.relation))
        if node.wheres:
            stmt = stmt.where(*[self._render(w) for w in node.wheres])
        return stmt

    # ── Dispatch ──────────────────────────────────────────────────────────

    def _render(self, node: Node):
        if isinstance(node, SyntheticClause):
            return self._render(node.to_equality())
        if isinstance(node, Attribute):
            return self._attribute(node)
        if isinstance(node, Quoted):
            return sa.null() if node.value is None else sa.literal(node.value)
        if isinstance(node, BindParam):
            return sa.bindparam(node.name)
        if isinstance(node, SqlLiteral):
            return sa.literal_column(node.text)
        if isinstance(node, Equality):
            return self._operand(node.left) == self._operand(node.right)
        if isinstance(node, NotEqual):
            return self._operand(node.left) != self._operand(node.right)
        if isinstance(node, GreaterThan):
            return self._operand(node.left) > self._operand(node.right)
        if isinstance(node, LessThan):
            return self._operand(node.left) < self._operand(node.right)
        if isinstance(node, In):
            left = self._render(node.left)
            if isinstance(node.right, list):
                return left.in_(
                    [v.value if isinstance(v, Quoted) else self._render(v) for v in node.right]
                )
            return left.in_(self._render(node.right))
        if isinstance(node, And):
            return sa.and_(*[self._render(p) for p in node.predicates])
        if isinstance(node, Or):
            return sa.or_(self._render(node.left), self._render(node.right))
        if isinstance(node, Not):
            return sa.not_(self._render(node.expr))
        if isinstance(node, Grouping):
            return SAGrouping(self._render(node.expr))
        if isinstance(node, Exists):
            return self._render(node.expr).exists()
        if isinstance(node, NamedFunction):
            function = getattr(sa.func, node.name)
            return function(*[self._render(e) for e in node.expressions])
        if isinstance(node, Ascending):
            return self._render(node.expr).asc()
        if isinstance(node, Descending):
            return self._render(node.expr).desc()
        if isinstance(node, SelectStatement):
            return self._select_statement(node)
        if isinstance(node, SelectCore):
            return self._select_core(node)
        if isinstance(node, Union):
            return sa.union(self._render(node.left), self._render(node.right))
        if isinstance(node, UnionAll):
            return sa.union_all(self._render(node.left), self._render(node.right))
        if isinstance(node, UpdateStatement):
            return self._update(node)
        if isinstance(node, DeleteStatement):
            return self._delete(node)
        if isinstance(node, Assignment):
            raise PlanRenderError("Assignments only render inside an UPDATE")
        raise PlanRenderError(f"Cannot render {type(node).__name__}")


def resolve_dialect(dialect: TypingUnion[str, Dialect, None]) -> Optional[Dialect]:
    """Accept a Dialect, a dialect name, or None (settings.SQL_DIALECT)."""
    if dialect is None:
        dialect = settings.SQL_DIALECT
    if isinstance(dialect, str):
        return make_url(f"{dialect}://").get_dialect()()
    return dialect


def to_sqlalchemy(plan: Node):
    """Translate a plan into a SQLAlchemy Core construct."""
    return SQLAlchemyRenderer().render(plan)


def to_sql(plan: Node, dialect=None, literal_binds: bool = True) -> str:
    element = to_sqlalchemy(plan)
    compile_kwargs = {"literal_binds": True} if literal_binds else {}
    return str(element.compile(dialect=resolve_dialect(dialect), compile_kwargs=compile_kwargs))
