"""
rewriter/mutations.py
---------------------
UPDATE / DELETE adapters, plus the composed "build statement" hook.

A mutation has exactly one target relation, so no discovery pass is needed
for it: one TenantEnforcementClause is added to the WHERE list directly.
Subqueries inside the mutation's predicates are still handled by rewrite().
"""

from typing import Any, Optional

from multitenant_sql.core.context import current_tenant_id, write_only_mode_enabled
from multitenant_sql.core.logging import get_logger
from multitenant_sql.db.registry import TenantRegistry, default_registry
from multitenant_sql.plan.nodes import (
    DeleteStatement,
    MutationStatement,
    Node,
    UpdateStatement,
    relation_table_name,
)
from multitenant_sql.plan.render import to_sqlalchemy
from multitenant_sql.rewriter.clauses import TenantEnforcementClause
from multitenant_sql.rewriter.context import RelationFingerprint
from multitenant_sql.rewriter.rewriter import rewrite

logger = get_logger(__name__)

_UNSET: Any = object()


def scope_mutation(
    statement: Node,
    table: Optional[Node] = None,
    write_only_mode: Optional[bool] = None,
    *,
    registry: Optional[TenantRegistry] = None,
    tenant_id: Any = _UNSET,
) -> Node:
    """
    Constrain an UPDATE or DELETE to the current tenant.

    Leaves the statement untouched when the target is not tenant-scoped, when
    write-only mode is on, or when no tenant id is set.
    """
    if not isinstance(statement, MutationStatement):
        raise TypeError(f"Expected an UPDATE or DELETE statement, got {type(statement).__name__}")

    registry = registry if registry is not None else default_registry
    if write_only_mode is None:
        write_only_mode = write_only_mode_enabled()
    if tenant_id is _UNSET:
        tenant_id = current_tenant_id()
    target = table if table is not None else statement.relation

    model = registry.lookup(relation_table_name(target))
    if model is None or write_only_mode:
        return statement
    if tenant_id is None:
        logger.debug("No current tenant, mutation left unscoped", table=model.table_name)
        return statement

    fingerprint = RelationFingerprint.of(target)
    for where in statement.wheres:
        if (
            isinstance(where, TenantEnforcementClause)
            and RelationFingerprint.of(where.tenant_attribute.relation) == fingerprint
        ):
            return statement

    statement.wheres.append(
        TenantEnforcementClause(target[model.partition_key], tenant_id=tenant_id)
    )
    logger.debug(
        "Scoped mutation to tenant",
        table=model.table_name,
        statement=type(statement).__name__,
    )
    return statement


def scope_statement(
    plan: Node,
    *,
    registry: Optional[TenantRegistry] = None,
    tenant_id: Any = _UNSET,
    write_only_mode: Optional[bool] = None,
) -> Node:
    """
    Apply every tenant rule that fits the statement kind.

    UPDATE / DELETE: scope the target, then rewrite subqueries in predicates.
    Anything else:   rewrite().
    """
    if isinstance(plan, (UpdateStatement, DeleteStatement)):
        scope_mutation(
            plan,
            write_only_mode=write_only_mode,
            registry=registry,
            tenant_id=tenant_id,
        )
    kwargs = {"registry": registry, "write_only_mode": write_only_mode}
    if tenant_id is not _UNSET:
        kwargs["tenant_id"] = tenant_id
    return rewrite(plan, **kwargs)


def build_statement(plan: Node, **kwargs):
    """Scope `plan` and hand it to SQLAlchemy, ready for Session.execute()."""
    return to_sqlalchemy(scope_statement(plan, **kwargs))
