"""
rewriter/rewriter.py
--------------------
Rewrite pass: inject tenant predicates wherever discovery found a gap.

For every scope context, for every relation still unhandled:
  1. Re-check the registry (it is the single source of truth).
  2. If a tenant id is set, build a TenantEnforcementClause and inject it:
       join node        → AND into the join condition (ON ...)
       select-core node → front of WHERE
  3. Whether or not a tenant id is set, AND a TenantJoinEnforcementClause into
     every join nested in the node's FROM tree, linking the relation to that
     join's table.

The plan is mutated in place and also returned. Running the rewriter again on
its own output changes nothing.
"""

from typing import Any, Iterator, List, Optional

from multitenant_sql.core.config import settings
from multitenant_sql.core.context import current_tenant_id, write_only_mode_enabled
from multitenant_sql.core.exceptions import UnrecognizedContextKind
from multitenant_sql.core.logging import get_logger
from multitenant_sql.db.registry import TenantModel, TenantRegistry, default_registry
from multitenant_sql.plan.nodes import (
    Join,
    Node,
    SelectCore,
    relation_table_name,
)
from multitenant_sql.rewriter.clauses import TenantEnforcementClause, TenantJoinEnforcementClause
from multitenant_sql.rewriter.context import RelationFingerprint, ScopeContext
from multitenant_sql.rewriter.visitor import TenantDiscoveryVisitor

logger = get_logger(__name__)

_UNSET: Any = object()


class TenantQueryRewriter:

    def __init__(
        self,
        registry: Optional[TenantRegistry] = None,
        tenant_id: Any = _UNSET,
        write_only_mode: Optional[bool] = None,
        forward_links_only: Optional[bool] = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry
        self.tenant_id = current_tenant_id() if tenant_id is _UNSET else tenant_id
        self.write_only_mode = (
            write_only_mode_enabled() if write_only_mode is None else write_only_mode
        )
        self.forward_links_only = (
            settings.FORWARD_JOIN_LINKS_ONLY if forward_links_only is None else forward_links_only
        )

    def rewrite(self, plan: Node) -> Node:
        if self.write_only_mode:
            logger.debug("Write-only mode enabled, skipping tenant rewrite")
            return plan

        contexts = TenantDiscoveryVisitor(self.registry).discover(plan)
        for context in contexts:
            self._apply(context)
        return plan

    # ── Injection ─────────────────────────────────────────────────────────

    def _apply(self, context: ScopeContext) -> None:
        node = context.owning_node
        for relation in context.unhandled():
            model = self.registry.lookup(relation_table_name(relation))
            if model is None:
                logger.debug(
                    "Relation no longer tenant-scoped, skipping",
                    table=relation_table_name(relation),
                )
                continue

            if self.tenant_id is not None:
                clause = TenantEnforcementClause(
                    relation[model.partition_key], tenant_id=self.tenant_id
                )
                self._inject(node, clause)
                logger.debug(
                    "Injected tenant clause",
                    table=model.table_name,
                    alias=relation.table_alias,
                    scope=type(node).__name__,
                )
            else:
                logger.debug("No current tenant, tenant clause skipped", table=model.table_name)

            for join in self._link_targets(relation, nested_joins(node)):
                self._link(relation, model, join)

    def _inject(self, node: Node, clause: TenantEnforcementClause) -> None:
        if isinstance(node, Join):
            node.add_condition(clause)
        elif isinstance(node, SelectCore):
            if not node.wheres:
                node.wheres = [clause]
            else:
                node.wheres[0] = clause.and_(node.wheres[0])
        else:
            raise UnrecognizedContextKind(node)

    def _link_targets(self, relation: Node, joins: List[Join]) -> List[Join]:
        if not self.forward_links_only:
            return joins
        fingerprint = RelationFingerprint.of(relation)
        for position, join in enumerate(joins):
            if RelationFingerprint.of(join.left) == fingerprint:
                return joins[position:]
        return joins

    def _link(self, relation: Node, model: TenantModel, join: Join) -> None:
        other_model = self.registry.lookup(relation_table_name(join.left))
        if other_model is None:
            return
        fingerprint = RelationFingerprint.of(relation)
        other_fingerprint = RelationFingerprint.of(join.left)
        if fingerprint == other_fingerprint:
            return
        if _has_link(join, fingerprint, other_fingerprint):
            return

        join.add_condition(
            TenantJoinEnforcementClause.between(
                relation, model.partition_key, join.left, other_model.partition_key
            )
        )
        logger.debug(
            "Injected tenant join link",
            table=model.table_name,
            joined_table=other_model.table_name,
        )


def nested_joins(node: Optional[Node]) -> List[Join]:
    """
    Joins in the FROM tree of a scope's owning node, excluding the node itself.

    Nested select-cores are not searched: each one owns its own scope.
    """
    if isinstance(node, SelectCore):
        roots: List[Node] = [node.source]
    elif isinstance(node, Join):
        roots = [node.left]
    else:
        raise UnrecognizedContextKind(node)
    return [n for root in roots for n in _walk_from_tree(root) if isinstance(n, Join)]


def _walk_from_tree(node: Node) -> Iterator[Node]:
    yield node
    if isinstance(node, SelectCore):
        return
    for child in node.children():
        if isinstance(child, SelectCore):
            continue
        yield from _walk_from_tree(child)


def _has_link(
    join: Join,
    fingerprint: Optional[RelationFingerprint],
    other_fingerprint: Optional[RelationFingerprint],
) -> bool:
    if join.right is None or join.right.expr is None:
        return False
    for node in join.right.expr.walk():
        if isinstance(node, TenantJoinEnforcementClause):
            if node.fingerprints() == (fingerprint, other_fingerprint):
                return True
    return False


def rewrite(
    plan: Node,
    *,
    registry: Optional[TenantRegistry] = None,
    tenant_id: Any = _UNSET,
    write_only_mode: Optional[bool] = None,
    forward_links_only: Optional[bool] = None,
) -> Node:
    """
    Discover and enforce tenant scoping on `plan`, in place.

    tenant_id and write_only_mode default to the call-scoped values from
    core.context; pass them explicitly to override.
    forward_links_only defaults to settings.FORWARD_JOIN_LINKS_ONLY; when set, a
    relation is linked only into joins from its own join onwards, so every
    link references tables already introduced in FROM.
    """
    rewriter = TenantQueryRewriter(
        registry=registry,
        tenant_id=tenant_id,
        write_only_mode=write_only_mode,
        forward_links_only=forward_links_only,
    )
    return rewriter.rewrite(plan)
