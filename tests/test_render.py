"""Rendering plans through SQLAlchemy Core."""

import pytest

from multitenant_sql.core.context import with_tenant
from multitenant_sql.core.exceptions import PlanRenderError
from multitenant_sql.plan import (
    FullOuterJoin,
    NamedFunction,
    RightOuterJoin,
    SqlLiteral,
    Table,
    delete_from,
    select_from,
    to_sqlalchemy,
    update,
)
from multitenant_sql.rewriter import TenantEnforcementClause, TenantJoinEnforcementClause

orders = Table("orders")
items = Table("items")


def test_simple_select(render):
    plan = select_from(orders).project(orders["id"]).where(orders["status"].eq("open")).ast

    assert render(plan) == "SELECT orders.id FROM orders WHERE orders.status = 'open'"


def test_select_without_projection_selects_star(render):
    assert render(select_from(orders).ast) == "SELECT * FROM orders"


def test_alias(render):
    o = orders.alias("o")
    plan = select_from(o).project(o["id"]).ast

    assert render(plan) == "SELECT o.id FROM orders AS o"


def test_outer_join(render):
    plan = (
        select_from(orders)
        .project(orders["id"], items["sku"])
        .outer_join(items)
        .on(items["order_id"].eq(orders["id"]))
        .ast
    )

    assert "FROM orders LEFT OUTER JOIN items ON items.order_id = orders.id" in render(plan)


def test_right_outer_join_swaps_sides(render):
    plan = (
        select_from(orders)
        .join(items, RightOuterJoin)
        .on(items["order_id"].eq(orders["id"]))
        .ast
    )

    assert "FROM items LEFT OUTER JOIN orders ON items.order_id = orders.id" in render(plan)


def test_full_outer_join(render):
    plan = select_from(orders).join(items, FullOuterJoin).on(items["order_id"].eq(orders["id"])).ast

    assert "FULL OUTER JOIN items" in render(plan)


def test_or_is_parenthesized_inside_and(render):
    status = orders["status"]
    plan = select_from(orders).where(
        orders["id"].gt(10).and_(status.eq("a").or_(status.eq("b")))
    ).ast

    assert "orders.id > 10 AND (orders.status = 'a' OR orders.status = 'b')" in render(plan)


def test_function_group_order_limit(render):
    plan = (
        select_from(orders)
        .project(orders["status"], NamedFunction("count", [SqlLiteral("*")], alias="n"))
        .group(orders["status"])
        .order(orders["status"].desc())
        .take(10)
        .ast
    )
    sql = render(plan)

    assert "count(*) AS n" in sql
    assert "GROUP BY orders.status" in sql
    assert "ORDER BY orders.status DESC" in sql
    assert "LIMIT" in sql


def test_in_list_and_union(render):
    first = select_from(orders).project(orders["id"]).where(orders["status"].in_(["a", "b"]))
    second = select_from(items).project(items["order_id"])
    sql = render(first.union(second))

    assert "orders.status IN ('a', 'b')" in sql
    assert "UNION" in sql


def test_update_and_delete(render):
    upd = update(orders).set({"status": "shipped"}).where(orders["id"].eq(5))
    dele = delete_from(orders).where(orders["status"].eq("void"))

    assert render(upd).startswith("UPDATE orders SET status=")
    assert "WHERE orders.id = 5" in render(upd)
    assert render(dele) == "DELETE FROM orders WHERE orders.status = 'void'"


def test_enforcement_clause_renders_like_equality():
    clause = TenantEnforcementClause(orders["tenant_id"], tenant_id="t1")

    assert str(clause) == "orders.tenant_id = 't1'"
    assert clause.to_sql() == orders["tenant_id"].eq("t1").to_sql()


def test_enforcement_clause_binds_tenant_at_construction():
    with with_tenant("t9"):
        clause = TenantEnforcementClause(orders["tenant_id"])

    assert clause.tenant_id == "t9"
    assert str(clause) == "orders.tenant_id = 't9'"


def test_integer_tenant_is_not_quoted():
    clause = TenantEnforcementClause(orders["tenant_id"], tenant_id=42)

    assert str(clause) == "orders.tenant_id = 42"


def test_join_clause_renders_both_partition_keys():
    clause = TenantJoinEnforcementClause.between(orders, "tenant_id", items, "tenant_id")

    assert str(clause) == "orders.tenant_id = items.tenant_id"


def test_named_windows_are_rejected():
    plan = select_from(orders).ast
    plan.core.windows.append(SqlLiteral("w AS (PARTITION BY orders.status)"))

    with pytest.raises(PlanRenderError):
        to_sqlalchemy(plan)


def test_dialect_by_name(render):
    plan = select_from(orders).project(orders["id"]).ast

    assert render(plan, dialect="sqlite") == "SELECT orders.id FROM orders"
