"""
multitenant_sql
---------------
Automatic tenant scoping for relational query plans.

    from multitenant_sql import Table, default_registry, rewrite, select_from, with_tenant

    default_registry.register("orders", partition_key="tenant_id")
    orders = Table("orders")

    with with_tenant("t1"):
        plan = rewrite(select_from(orders).project(orders["id"]).ast)

    plan.to_sql()  → SELECT orders.id FROM orders WHERE orders.tenant_id = 't1'
"""

from multitenant_sql.core.context import (
    current_tenant_id,
    with_tenant,
    with_write_only_mode,
    without_tenant,
    write_only_mode_enabled,
)
from multitenant_sql.core.exceptions import (
    MultiTenantError,
    PlanRenderError,
    UnrecognizedContextKind,
)
from multitenant_sql.db.registry import TenantModel, TenantRegistry, default_registry
from multitenant_sql.plan import Table, delete_from, select_from, to_sql, to_sqlalchemy, update
from multitenant_sql.rewriter import (
    TenantEnforcementClause,
    TenantJoinEnforcementClause,
    build_statement,
    rewrite,
    scope_mutation,
    scope_statement,
)

__all__ = [
    "MultiTenantError",
    "PlanRenderError",
    "Table",
    "TenantEnforcementClause",
    "TenantJoinEnforcementClause",
    "TenantModel",
    "TenantRegistry",
    "UnrecognizedContextKind",
    "build_statement",
    "current_tenant_id",
    "default_registry",
    "delete_from",
    "rewrite",
    "scope_mutation",
    "scope_statement",
    "select_from",
    "to_sql",
    "to_sqlalchemy",
    "update",
    "with_tenant",
    "with_write_only_mode",
    "without_tenant",
    "write_only_mode_enabled",
]
