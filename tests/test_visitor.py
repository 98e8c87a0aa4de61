"""Discovery pass: scopes, discovered and handled relations."""

import pytest

from multitenant_sql.plan import (
    FullOuterJoin,
    Node,
    OuterJoin,
    RightOuterJoin,
    SelectCore,
    Table,
    select_from,
    update,
)
from multitenant_sql.rewriter import (
    RelationFingerprint,
    TenantDiscoveryVisitor,
    TenantEnforcementClause,
)

orders = Table("orders")
items = Table("items")
countries = Table("countries")

ORDERS = RelationFingerprint("orders")
ITEMS = RelationFingerprint("items")


def test_fingerprint_equality():
    assert RelationFingerprint.of(Table("orders")) == RelationFingerprint.of(Table("orders"))
    assert RelationFingerprint.of(orders.alias("o")) == RelationFingerprint("orders", "o")
    assert RelationFingerprint.of(orders.alias("o")) != RelationFingerprint.of(orders)
    assert RelationFingerprint.of(select_from(orders).as_("sub")) is None


def test_select_core_discovers_source_tables(registry):
    plan = select_from(orders).join(items).on(items["order_id"].eq(orders["id"])).ast

    contexts = TenantDiscoveryVisitor(registry).discover(plan)

    assert len(contexts) == 1
    assert contexts[0].owning_node is plan.core
    assert list(contexts[0].discovered) == [ORDERS, ITEMS]
    assert contexts[0].handled == set()


def test_unregistered_tables_are_ignored(registry):
    plan = select_from(countries).ast

    contexts = TenantDiscoveryVisitor(registry).discover(plan)

    assert contexts[0].discovered == {}


def test_explicit_partition_key_predicate_marks_handled(registry):
    plan = select_from(orders).where(orders["tenant_id"].eq("t1")).ast

    context = TenantDiscoveryVisitor(registry).discover(plan)[0]

    assert context.handled == {ORDERS}
    assert context.unhandled() == []


def test_predicate_on_other_column_does_not_handle(registry):
    plan = select_from(orders).where(orders["status"].eq("open")).ast

    context = TenantDiscoveryVisitor(registry).discover(plan)[0]

    assert [RelationFingerprint.of(r) for r in context.unhandled()] == [ORDERS]


def test_where_references_are_not_discovered(registry):
    # items appears only in WHERE: referenced, but not part of the FROM tree
    plan = select_from(orders).where(items["sku"].eq("x")).ast

    context = TenantDiscoveryVisitor(registry).discover(plan)[0]

    assert list(context.discovered) == [ORDERS]


def test_outer_join_opens_its_own_scope(registry):
    plan = select_from(orders).outer_join(items).on(items["order_id"].eq(orders["id"])).ast

    select_context, join_context = TenantDiscoveryVisitor(registry).discover(plan)

    assert isinstance(select_context.owning_node, SelectCore)
    assert isinstance(join_context.owning_node, OuterJoin)
    assert list(select_context.discovered) == [ORDERS]
    # the joined table plus everything referenced by its ON condition
    assert list(join_context.discovered) == [ITEMS, ORDERS]


def test_subquery_gets_separate_scope(registry):
    inner = select_from(items).project(items["order_id"])
    plan = select_from(orders).where(orders["id"].in_(inner)).ast

    outer_context, inner_context = TenantDiscoveryVisitor(registry).discover(plan)

    assert list(outer_context.discovered) == [ORDERS]
    assert list(inner_context.discovered) == [ITEMS]


def test_derived_table_is_traversed(registry):
    derived = select_from(orders).project(orders["id"]).as_("sub")
    plan = select_from(derived).project(derived["id"]).ast

    outer_context, inner_context = TenantDiscoveryVisitor(registry).discover(plan)

    assert outer_context.discovered == {}
    assert list(inner_context.discovered) == [ORDERS]


def test_synthetic_clause_marks_handled(registry):
    plan = select_from(orders).ast
    plan.core.wheres.append(TenantEnforcementClause(orders["tenant_id"], tenant_id="t1"))

    context = TenantDiscoveryVisitor(registry).discover(plan)[0]

    assert context.handled == {ORDERS}


def test_update_target_has_no_scope(registry):
    plan = update(orders).set({"status": "x"}).where(orders["tenant_id"].eq("t1"))

    assert TenantDiscoveryVisitor(registry).discover(plan) == []


def test_unhandled_is_recomputed(registry):
    plan = select_from(orders).ast
    context = TenantDiscoveryVisitor(registry).discover(plan)[0]

    assert len(context.unhandled()) == 1
    context.visited_handled_relation(Table("orders"))
    assert context.unhandled() == []


@pytest.mark.parametrize("kind", [RightOuterJoin, FullOuterJoin])
def test_right_and_full_joins_open_their_own_scope(registry, kind):
    plan = select_from(orders).join(items, kind).on(items["order_id"].eq(orders["id"])).ast

    select_context, join_context = TenantDiscoveryVisitor(registry).discover(plan)

    assert list(select_context.discovered) == [ORDERS]
    assert isinstance(join_context.owning_node, kind)
    assert join_context.owning_node is plan.core.source.right[0]
    assert list(join_context.discovered) == [ITEMS, ORDERS]


class Wrapped(Node):
    """A node kind the visitor has no rule for."""

    def __init__(self, expr):
        self.expr = expr


def test_unknown_node_kind_is_recursed_into(registry):
    inner = select_from(items).project(items["id"])
    plan = select_from(orders).where(Wrapped(inner.exists())).ast

    outer_context, inner_context = TenantDiscoveryVisitor(registry).discover(plan)

    assert list(Wrapped(orders).children()) == [orders]
    assert list(outer_context.discovered) == [ORDERS]
    assert inner_context.owning_node is inner.ast.core
    assert list(inner_context.discovered) == [ITEMS]
